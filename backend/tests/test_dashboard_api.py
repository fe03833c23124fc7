"""Tests for the dashboard endpoints (loader and auth overridden)."""
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest
from httpx import AsyncClient, ASGITransport

from procurement.api.v1.dashboard import get_dashboard_loader, get_request_cache
from procurement.core.deps import get_current_user
from procurement.main import app
from procurement.schemas.dashboard import ChartData, DashboardMetrics, DashboardOut, OverviewChartData
from procurement.services.dashboard import DashboardDataError, RequestCache


# ─── Fixtures ─────────────────────────────────────────────────────────────────

class FakeUser:
    id = 1
    email = "admin@example.com"
    name = "Admin User"
    is_active = True


METRICS = DashboardMetrics(
    total_suppliers=3,
    suppliers_last_month=1,
    total_invoices=7,
    invoices_last_month=2,
    paid_invoices_amount=Decimal("180"),
    paid_invoices_last_month=Decimal("0"),
    unpaid_invoices_amount=Decimal("50"),
    unpaid_invoices_last_month=Decimal("50"),
)
TOP = [ChartData(name="Acme", total=Decimal("150"), fill="chart-1")]


def _stub_loader(fail: bool = False):
    loader = AsyncMock()
    if fail:
        error = DashboardDataError("Failed to fetch dashboard metrics")
        for name in ("dashboard", "metrics", "overview", "top_suppliers", "top_departments"):
            getattr(loader, name).side_effect = error
        return loader
    loader.metrics.return_value = METRICS
    loader.overview.return_value = [OverviewChartData(month="Oct 2026", paid=Decimal("1"), unpaid=Decimal("2"))]
    loader.top_suppliers.return_value = TOP
    loader.top_departments.return_value = []
    loader.dashboard.return_value = DashboardOut(
        metrics=METRICS,
        overview=[],
        top_suppliers=TOP,
        top_suppliers_config={"Acme": {"label": "Acme", "color": "chart-1"}},
        top_departments=[],
        top_departments_config={},
        currency="IQD",
    )
    return loader


async def _get(path: str, loader):
    app.dependency_overrides[get_current_user] = lambda: FakeUser()
    app.dependency_overrides[get_dashboard_loader] = lambda: loader
    try:
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            return await client.get(path)
    finally:
        app.dependency_overrides.clear()


# ─── Tests ────────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_dashboard_returns_all_sections():
    response = await _get("/api/v1/dashboard", _stub_loader())

    assert response.status_code == 200
    data = response.json()
    assert data["metrics"]["total_invoices"] == 7
    assert data["top_suppliers"][0]["name"] == "Acme"
    assert data["top_suppliers_config"]["Acme"]["color"] == "chart-1"
    assert data["currency"] == "IQD"


@pytest.mark.asyncio
async def test_metrics_endpoint():
    response = await _get("/api/v1/dashboard/metrics", _stub_loader())

    assert response.status_code == 200
    assert Decimal(response.json()["paid_invoices_amount"]) == Decimal("180")


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "path",
    [
        "/api/v1/dashboard",
        "/api/v1/dashboard/metrics",
        "/api/v1/dashboard/overview",
        "/api/v1/dashboard/top-suppliers",
        "/api/v1/dashboard/top-departments",
    ],
)
async def test_fetch_failure_maps_to_503(path):
    response = await _get(path, _stub_loader(fail=True))

    assert response.status_code == 503
    assert response.json() == {"detail": "Failed to fetch dashboard data."}


@pytest.mark.asyncio
async def test_dashboard_requires_auth():
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        response = await client.get("/api/v1/dashboard")
    assert response.status_code == 401


def test_request_cache_is_fresh_per_call():
    assert isinstance(get_request_cache(), RequestCache)
    assert get_request_cache() is not get_request_cache()
