"""Shared slowapi limiter; routers decorate with it, main.py registers it."""
from slowapi import Limiter
from slowapi.util import get_remote_address

from procurement.core.config import settings

limiter = Limiter(key_func=get_remote_address, enabled=settings.APP_ENV != "test")
