"""Dashboard API endpoints."""
import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from procurement.core.deps import CurrentUser
from procurement.db.session import get_session_factory
from procurement.schemas.dashboard import ChartData, DashboardMetrics, DashboardOut, OverviewChartData
from procurement.services.dashboard import DashboardDataError, DashboardLoader, RequestCache

logger = logging.getLogger(__name__)
router = APIRouter()

FETCH_FAILED_DETAIL = "Failed to fetch dashboard data."


def get_request_cache() -> RequestCache:
    # FastAPI resolves a dependency once per request, so this is request-scoped.
    return RequestCache()


def get_dashboard_loader(
    session_factory: Annotated[async_sessionmaker[AsyncSession], Depends(get_session_factory)],
    cache: Annotated[RequestCache, Depends(get_request_cache)],
) -> DashboardLoader:
    return DashboardLoader(session_factory, cache)


Loader = Annotated[DashboardLoader, Depends(get_dashboard_loader)]


def _unavailable(exc: DashboardDataError) -> HTTPException:
    logger.warning("Dashboard request failed: %s", exc)
    return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=FETCH_FAILED_DETAIL)


@router.get("", response_model=DashboardOut, summary="Full dashboard: metrics, overview and rankings")
async def get_dashboard(loader: Loader, current_user: CurrentUser):
    try:
        return await loader.dashboard()
    except DashboardDataError as exc:
        raise _unavailable(exc)


@router.get("/metrics", response_model=DashboardMetrics, summary="Summary-card metrics with 30-day deltas")
async def get_metrics(loader: Loader, current_user: CurrentUser):
    try:
        return await loader.metrics()
    except DashboardDataError as exc:
        raise _unavailable(exc)


@router.get(
    "/overview",
    response_model=list[OverviewChartData],
    summary="Paid vs unpaid net totals for the last 6 months",
)
async def get_overview(loader: Loader, current_user: CurrentUser):
    try:
        return await loader.overview()
    except DashboardDataError as exc:
        raise _unavailable(exc)


@router.get("/top-suppliers", response_model=list[ChartData], summary="Top 5 suppliers by net amount")
async def get_top_suppliers(loader: Loader, current_user: CurrentUser):
    try:
        return await loader.top_suppliers()
    except DashboardDataError as exc:
        raise _unavailable(exc)


@router.get("/top-departments", response_model=list[ChartData], summary="Top 5 departments by net amount")
async def get_top_departments(loader: Loader, current_user: CurrentUser):
    try:
        return await loader.top_departments()
    except DashboardDataError as exc:
        raise _unavailable(exc)
