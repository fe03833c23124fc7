"""Tests for the dashboard loader: fetch fan-out, request cache, atomic failure.

The loader's ``_fetch`` is replaced with a fake that answers based on the
compiled SQL, so no database is needed.
"""
import asyncio
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from procurement.services.dashboard import DashboardDataError, DashboardLoader, RequestCache

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


def _sql(stmt) -> str:
    return str(stmt.compile(compile_kwargs={"literal_binds": True}))


def _money(amount, discount=None, days_ago=1, status="paid"):
    return SimpleNamespace(
        amount=Decimal(str(amount)),
        discount_amount=Decimal(str(discount)) if discount is not None else None,
        created_at=NOW - timedelta(days=days_ago),
        status=status,
    )


class FakeFetch:
    """Stands in for DashboardLoader._fetch; records every statement."""

    def __init__(self, fail_on: str | None = None):
        self.fail_on = fail_on
        self.calls: list[str] = []

    async def __call__(self, stmt):
        sql = _sql(stmt)
        self.calls.append(sql)
        if self.fail_on and self.fail_on in sql:
            raise OperationalError(sql, {}, Exception("connection reset"))

        if "JOIN suppliers" in sql:
            return [
                SimpleNamespace(name="Acme", amount=Decimal("100"), discount_amount=None),
                SimpleNamespace(name="Beta", amount=Decimal("30"), discount_amount=None),
                SimpleNamespace(name="Acme", amount=Decimal("50"), discount_amount=None),
                SimpleNamespace(name=None, amount=Decimal("500"), discount_amount=None),
            ]
        if "JOIN departments" in sql:
            return [SimpleNamespace(name="IT", amount=Decimal("70"), discount_amount=Decimal("20"))]
        if "FROM suppliers" in sql:
            return [
                SimpleNamespace(id=1, created_at=NOW - timedelta(days=2)),
                SimpleNamespace(id=2, created_at=NOW - timedelta(days=90)),
            ]
        if "'paid'" in sql:
            return [_money(200, 20, days_ago=40), _money(100, 0, days_ago=3)]
        if "'unpaid'" in sql:
            return [_money(60, 10, days_ago=5, status="unpaid")]
        if "invoices.status" in sql:
            # overview: all invoices with status
            return [
                _money(100, 10, days_ago=1, status="paid"),
                _money(40, None, days_ago=1, status="partial"),
                _money(25, None, days_ago=1, status=None),
            ]
        # plain invoice id/created_at listing
        return [SimpleNamespace(id=i, created_at=NOW - timedelta(days=i * 20)) for i in range(1, 4)]


def _loader(fetch: FakeFetch, cache: RequestCache | None = None) -> DashboardLoader:
    loader = DashboardLoader(MagicMock(), cache=cache, now=NOW)
    loader._fetch = fetch
    return loader


# ─── Metrics ──────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_metrics_from_four_fetches():
    fetch = FakeFetch()

    metrics = await _loader(fetch).metrics()

    assert len(fetch.calls) == 4
    assert metrics.total_suppliers == 2
    assert metrics.suppliers_last_month == 1
    assert metrics.total_invoices == 3
    assert metrics.invoices_last_month == 1
    assert metrics.paid_invoices_amount == Decimal("280")
    assert metrics.paid_invoices_last_month == Decimal("100")
    assert metrics.unpaid_invoices_amount == Decimal("50")
    assert metrics.unpaid_invoices_last_month == Decimal("50")


@pytest.mark.asyncio
async def test_metrics_fail_atomically():
    """One failed fetch → DashboardDataError, no partial metrics."""
    loader = _loader(FakeFetch(fail_on="'unpaid'"))

    with pytest.raises(DashboardDataError) as exc_info:
        await loader.metrics()

    assert "dashboard metrics" in str(exc_info.value)
    assert isinstance(exc_info.value.__cause__, OperationalError)


# ─── Overview / rankings ──────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_overview_drops_unknown_status():
    series = await _loader(FakeFetch()).overview()

    assert len(series) == 6
    assert series[-1].month == "Oct 2026"
    assert series[-1].paid == Decimal("90")
    assert series[-1].unpaid == Decimal("40")


@pytest.mark.asyncio
async def test_top_suppliers_and_departments():
    loader = _loader(FakeFetch())

    suppliers = await loader.top_suppliers()
    departments = await loader.top_departments()

    assert [(s.name, s.total, s.fill) for s in suppliers] == [
        ("Acme", Decimal("150"), "chart-1"),
        ("Beta", Decimal("30"), "chart-2"),
    ]
    assert [(d.name, d.total) for d in departments] == [("IT", Decimal("50"))]


# ─── Full dashboard ───────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_dashboard_assembles_all_sections():
    out = await _loader(FakeFetch()).dashboard()

    assert out.metrics.total_suppliers == 2
    assert len(out.overview) == 6
    assert out.top_suppliers_config["Acme"].color == "chart-1"
    assert out.top_departments_config["IT"].label == "IT"
    assert out.currency


@pytest.mark.asyncio
async def test_dashboard_fails_when_any_section_fails():
    loader = _loader(FakeFetch(fail_on="JOIN departments"))

    with pytest.raises(DashboardDataError):
        await loader.dashboard()


class SlowFetch(FakeFetch):
    """Fails at once on ``fail_on``; every other statement takes a while."""

    def __init__(self, fail_on: str):
        super().__init__(fail_on)
        self.completed: list[str] = []

    async def __call__(self, stmt):
        sql = _sql(stmt)
        if self.fail_on not in sql:
            await asyncio.sleep(0.2)
        rows = await super().__call__(stmt)
        self.completed.append(sql)
        return rows


@pytest.mark.asyncio
async def test_dashboard_failure_cancels_pending_fetches():
    fetch = SlowFetch(fail_on="JOIN departments")
    loader = _loader(fetch)

    with pytest.raises(DashboardDataError) as exc_info:
        await loader.dashboard()
    await asyncio.sleep(0.3)

    assert "top departments" in str(exc_info.value)
    assert fetch.completed == []


@pytest.mark.asyncio
async def test_metrics_failure_cancels_sibling_fetches():
    fetch = SlowFetch(fail_on="'unpaid'")

    with pytest.raises(DashboardDataError):
        await _loader(fetch).metrics()
    await asyncio.sleep(0.3)

    assert fetch.completed == []


# ─── Request cache ────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_request_cache_memoizes_within_request():
    fetch = FakeFetch()
    loader = _loader(fetch, cache=RequestCache())

    first = await loader.metrics()
    second = await loader.metrics()

    assert first == second
    assert len(fetch.calls) == 4


@pytest.mark.asyncio
async def test_separate_requests_do_not_share_cache():
    fetch = FakeFetch()

    await _loader(fetch, cache=RequestCache()).top_suppliers()
    await _loader(fetch, cache=RequestCache()).top_suppliers()

    assert len(fetch.calls) == 2


@pytest.mark.asyncio
async def test_request_cache_shares_inflight_load():
    calls = []

    async def load():
        calls.append(1)
        return "value"

    cache = RequestCache()
    assert await cache.get_or_load("k", load) == "value"
    assert await cache.get_or_load("k", load) == "value"
    assert "k" in cache
    assert calls == [1]
