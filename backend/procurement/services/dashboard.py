"""Dashboard data loading.

Fetches the raw rows each dashboard section needs, concurrently and on
separate sessions, then hands them to ``services.aggregation``. A failure
in any fetch fails the whole section (and the whole dashboard) and cancels
the fetches still in flight: there is no partial result.
"""
import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from procurement.core.config import settings
from procurement.models.department import Department
from procurement.models.invoice import Invoice, InvoiceStatus
from procurement.models.supplier import Supplier
from procurement.schemas.dashboard import ChartData, DashboardMetrics, DashboardOut, OverviewChartData
from procurement.services.aggregation import (
    CreatedRow,
    InvoiceProjection,
    NamedInvoice,
    build_chart_config,
    build_monthly_overview,
    calculate_dashboard_metrics,
    dashboard_cutoff,
    filter_known_status,
    rank_top_entities,
)

logger = logging.getLogger(__name__)


class DashboardDataError(Exception):
    """One of the dashboard queries failed; nothing was computed."""


class RequestCache:
    """Memoizes awaitables for the lifetime of one request.

    Create one per request (see ``api.v1.dashboard.get_request_cache``);
    never share an instance between requests.
    """

    def __init__(self) -> None:
        self._tasks: dict[str, asyncio.Future] = {}

    async def get_or_load(self, key: str, loader: Callable[[], Awaitable[Any]]) -> Any:
        task = self._tasks.get(key)
        if task is None:
            task = asyncio.ensure_future(loader())
            self._tasks[key] = task
        return await task

    def __contains__(self, key: str) -> bool:
        return key in self._tasks


def _projection(row: Any) -> InvoiceProjection:
    return InvoiceProjection(
        status=row.status,
        amount=row.amount,
        discount_amount=row.discount_amount,
        created_at=row.created_at,
    )


class DashboardLoader:
    """Loads and aggregates every dashboard section for one request."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        cache: RequestCache | None = None,
        now: datetime | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._cache = cache or RequestCache()
        self.now = now or datetime.now(timezone.utc)

    async def _fetch(self, stmt: Select) -> list[Any]:
        async with self._session_factory() as session:
            return list((await session.execute(stmt)).all())

    async def _gather(self, *aws: Awaitable[Any]) -> list[Any]:
        """Run awaitables together; the first failure cancels the rest."""
        try:
            async with asyncio.TaskGroup() as tg:
                tasks = [tg.create_task(aw) for aw in aws]
        except ExceptionGroup as group:
            raise group.exceptions[0]
        return [task.result() for task in tasks]

    async def _guarded(self, key: str, what: str, loader: Callable[[], Awaitable[Any]]) -> Any:
        try:
            return await self._cache.get_or_load(key, loader)
        except DashboardDataError:
            raise
        except Exception as exc:
            logger.error("Error fetching %s: %s", what, exc, exc_info=True)
            raise DashboardDataError(f"Failed to fetch {what}") from exc

    # ─── Sections ───

    async def metrics(self) -> DashboardMetrics:
        return await self._guarded("metrics", "dashboard metrics", self._load_metrics)

    async def _load_metrics(self) -> DashboardMetrics:
        cutoff = dashboard_cutoff(self.now, settings.DASHBOARD_WINDOW_DAYS)
        money_cols = (Invoice.amount, Invoice.discount_amount, Invoice.created_at, Invoice.status)

        suppliers, invoices, paid, unpaid = await self._gather(
            self._fetch(select(Supplier.id, Supplier.created_at)),
            self._fetch(select(Invoice.id, Invoice.created_at)),
            self._fetch(select(*money_cols).where(Invoice.status == InvoiceStatus.paid.value)),
            self._fetch(select(*money_cols).where(Invoice.status == InvoiceStatus.unpaid.value)),
        )

        return calculate_dashboard_metrics(
            suppliers=[CreatedRow(created_at=r.created_at) for r in suppliers],
            invoices=[CreatedRow(created_at=r.created_at) for r in invoices],
            paid_invoices=[_projection(r) for r in paid],
            unpaid_invoices=[_projection(r) for r in unpaid],
            cutoff=cutoff,
        )

    async def overview(self) -> list[OverviewChartData]:
        return await self._guarded("overview", "overview chart data", self._load_overview)

    async def _load_overview(self) -> list[OverviewChartData]:
        rows = await self._fetch(
            select(Invoice.created_at, Invoice.amount, Invoice.discount_amount, Invoice.status)
        )
        invoices = filter_known_status(_projection(r) for r in rows)
        return build_monthly_overview(invoices, self.now, settings.DASHBOARD_OVERVIEW_MONTHS)

    async def top_suppliers(self) -> list[ChartData]:
        return await self._guarded(
            "top_suppliers", "top suppliers data",
            lambda: self._load_top(Supplier, Invoice.supplier_id),
        )

    async def top_departments(self) -> list[ChartData]:
        return await self._guarded(
            "top_departments", "top departments data",
            lambda: self._load_top(Department, Invoice.department_id),
        )

    async def _load_top(self, owner_model, owner_column) -> list[ChartData]:
        # ordered by invoice id so equal totals rank the same way every time
        rows = await self._fetch(
            select(Invoice.amount, Invoice.discount_amount, owner_model.name.label("name"))
            .outerjoin(owner_model, owner_model.id == owner_column)
            .order_by(Invoice.id)
        )
        return rank_top_entities(
            (NamedInvoice(name=r.name, amount=r.amount, discount_amount=r.discount_amount) for r in rows),
            settings.DASHBOARD_TOP_N,
        )

    async def dashboard(self) -> DashboardOut:
        metrics, overview, top_suppliers, top_departments = await self._gather(
            self.metrics(),
            self.overview(),
            self.top_suppliers(),
            self.top_departments(),
        )
        return DashboardOut(
            metrics=metrics,
            overview=overview,
            top_suppliers=top_suppliers,
            top_suppliers_config=build_chart_config(top_suppliers),
            top_departments=top_departments,
            top_departments_config=build_chart_config(top_departments),
            currency=settings.CURRENCY,
        )
