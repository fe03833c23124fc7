"""Logging setup: JSON lines in production, plain text everywhere else."""
import logging
import sys
from pythonjsonlogger import jsonlogger
from procurement.core.config import settings

LOG_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"


def setup_logging() -> None:
    """Install the root handler for the current APP_ENV."""
    if settings.APP_ENV == "production":
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(
            jsonlogger.JsonFormatter(
                LOG_FORMAT,
                rename_fields={"asctime": "timestamp", "levelname": "level", "name": "logger"},
            )
        )
        logging.root.handlers = [handler]
        logging.root.setLevel(logging.INFO)
        # uvicorn installs its own handlers; route them through ours
        for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
            logging.getLogger(name).handlers = []
            logging.getLogger(name).propagate = True
    else:
        logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)
