"""Derived invoice statistics for entity tables and the dashboard.

Every function here is a pure transformation over rows that were already
fetched: no I/O, no shared state, a fresh result on every call. Callers
(see ``services.dashboard`` and ``services.entities``) own the queries.

Two amount conventions coexist:

* unpaid stats per entity sum the raw ``amount``;
* dashboard metrics, the monthly overview and the top-N rankings use the
  net amount ``amount - (discount_amount or 0)``.

The difference is long-standing behaviour that the UI relies on, so it is
kept as-is.
"""
import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Any

from procurement.models.invoice import INVOICE_STATUSES, InvoiceStatus
from procurement.schemas.dashboard import (
    ChartData,
    ChartLegendEntry,
    DashboardMetrics,
    OverviewChartData,
    UnpaidStats,
)

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
DEFAULT_WINDOW_DAYS = 30
DEFAULT_OVERVIEW_MONTHS = 6
DEFAULT_TOP_N = 5
MONTH_LABEL_FORMAT = "%b %Y"  # "Oct 2026"


# ─── Projections ──────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class InvoiceProjection:
    """The invoice columns the aggregations read."""

    status: str | None
    amount: Decimal | None
    discount_amount: Decimal | None = None
    created_at: datetime | None = None


@dataclass(frozen=True)
class NamedInvoice:
    """An invoice carrying the name of its supplier or department."""

    name: str | None
    amount: Decimal | None
    discount_amount: Decimal | None = None


@dataclass(frozen=True)
class CreatedRow:
    """Any row reduced to its creation timestamp (used for supplier counts)."""

    created_at: datetime | None


# ─── Helpers ──────────────────────────────────────────────────────────────────

def to_decimal(value: Any) -> Decimal:
    """Coerce a DB/JSON number to Decimal; None counts as zero."""
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def net_amount(amount: Any, discount_amount: Any) -> Decimal:
    return to_decimal(amount) - to_decimal(discount_amount)


def as_utc(value: datetime) -> datetime:
    """Naive timestamps are stored as UTC; aware ones are converted."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def dashboard_cutoff(now: datetime, days: int = DEFAULT_WINDOW_DAYS) -> datetime:
    return as_utc(now) - timedelta(days=days)


def _created_after(created_at: datetime | None, cutoff: datetime) -> bool:
    return created_at is not None and as_utc(created_at) > cutoff


def filter_known_status(invoices: Iterable[InvoiceProjection]) -> list[InvoiceProjection]:
    """Drop rows whose status is null or not one of the four known values."""
    kept = []
    dropped = 0
    for inv in invoices:
        if inv.status in INVOICE_STATUSES:
            kept.append(inv)
        else:
            dropped += 1
    if dropped:
        logger.debug("filter_known_status: dropped %d invoice row(s) with unknown status", dropped)
    return kept


# ─── Per-entity unpaid stats ──────────────────────────────────────────────────

def calculate_unpaid_stats(invoices: Iterable[InvoiceProjection]) -> UnpaidStats:
    """Count and total the unpaid invoices belonging to one entity.

    Expects rows that already went through ``filter_known_status``.
    NOTE: sums the raw amount; discounts are not netted here, unlike the
    dashboard aggregations below.
    """
    count = 0
    total = ZERO
    for inv in invoices:
        if inv.status != InvoiceStatus.unpaid.value:
            continue
        count += 1
        total += to_decimal(inv.amount)
    return UnpaidStats(unpaid_invoice_count=count, unpaid_invoice_total=total)


# ─── Dashboard metrics ────────────────────────────────────────────────────────

def _net_totals(rows: Iterable[InvoiceProjection], cutoff: datetime) -> tuple[Decimal, Decimal]:
    """Return (all-time net total, net total of rows created after cutoff)."""
    total = ZERO
    recent = ZERO
    for row in rows:
        amount = net_amount(row.amount, row.discount_amount)
        total += amount
        if _created_after(row.created_at, cutoff):
            recent += amount
    return total, recent


def calculate_dashboard_metrics(
    suppliers: Sequence[Any],
    invoices: Sequence[Any],
    paid_invoices: Sequence[InvoiceProjection],
    unpaid_invoices: Sequence[InvoiceProjection],
    cutoff: datetime,
) -> DashboardMetrics:
    """Reduce the four dashboard data sets to the summary-card figures.

    ``suppliers`` and ``invoices`` only need a ``created_at`` attribute.
    ``paid_invoices`` and ``unpaid_invoices`` are already filtered by
    status at the query. "Last month" means created strictly after
    ``cutoff`` (normally now - 30 days).
    """
    cutoff = as_utc(cutoff)

    paid_total, paid_recent = _net_totals(paid_invoices, cutoff)
    unpaid_total, unpaid_recent = _net_totals(unpaid_invoices, cutoff)

    return DashboardMetrics(
        total_suppliers=len(suppliers),
        suppliers_last_month=sum(1 for s in suppliers if _created_after(s.created_at, cutoff)),
        total_invoices=len(invoices),
        invoices_last_month=sum(1 for i in invoices if _created_after(i.created_at, cutoff)),
        paid_invoices_amount=paid_total,
        paid_invoices_last_month=paid_recent,
        unpaid_invoices_amount=unpaid_total,
        unpaid_invoices_last_month=unpaid_recent,
    )


# ─── Monthly paid/unpaid overview ─────────────────────────────────────────────

def month_label(value: datetime) -> str:
    return as_utc(value).strftime(MONTH_LABEL_FORMAT)


def month_buckets(now: datetime, months: int = DEFAULT_OVERVIEW_MONTHS) -> list[str]:
    """Labels of the last ``months`` calendar months, oldest first, ending at now's month."""
    now = as_utc(now)
    labels = []
    for back in range(months - 1, -1, -1):
        year, month = now.year, now.month - back
        while month <= 0:
            month += 12
            year -= 1
        labels.append(datetime(year, month, 1, tzinfo=timezone.utc).strftime(MONTH_LABEL_FORMAT))
    return labels


def build_monthly_overview(
    invoices: Iterable[InvoiceProjection],
    now: datetime,
    months: int = DEFAULT_OVERVIEW_MONTHS,
) -> list[OverviewChartData]:
    """Net paid/unpaid totals per month for the trailing window.

    Anything that is not "paid" (partial, cancelled, unpaid) is counted
    as unpaid. Invoices outside the window are skipped.
    """
    buckets: dict[str, dict[str, Decimal]] = {
        label: {"paid": ZERO, "unpaid": ZERO} for label in month_buckets(now, months)
    }

    for inv in invoices:
        if inv.created_at is None:
            continue
        bucket = buckets.get(month_label(inv.created_at))
        if bucket is None:
            continue
        key = "paid" if inv.status == InvoiceStatus.paid.value else "unpaid"
        bucket[key] += net_amount(inv.amount, inv.discount_amount)

    return [
        OverviewChartData(month=label, paid=data["paid"], unpaid=data["unpaid"])
        for label, data in buckets.items()
    ]


# ─── Top-N ranking ────────────────────────────────────────────────────────────

def rank_top_entities(
    invoices: Iterable[NamedInvoice],
    limit: int = DEFAULT_TOP_N,
) -> list[ChartData]:
    """Rank suppliers or departments by net invoiced amount.

    Rows without a name are ignored. Equal totals keep the order in which
    the name first appeared in ``invoices``.
    """
    totals: dict[str, Decimal] = {}
    for inv in invoices:
        if not inv.name:
            continue
        totals[inv.name] = totals.get(inv.name, ZERO) + net_amount(inv.amount, inv.discount_amount)

    # sorted() is stable, so dict insertion order breaks ties
    ranked = sorted(totals.items(), key=lambda item: item[1], reverse=True)[:limit]
    return [
        ChartData(name=name, total=total, fill=f"chart-{rank}")
        for rank, (name, total) in enumerate(ranked, start=1)
    ]


def build_chart_config(data: Iterable[ChartData]) -> dict[str, ChartLegendEntry]:
    """Legend mapping keyed by entity name for the ranked bar charts."""
    return {item.name: ChartLegendEntry(label=item.name, color=item.fill) for item in data}
