"""Dashboard Pydantic schemas."""
from decimal import Decimal
from pydantic import BaseModel


class UnpaidStats(BaseModel):
    unpaid_invoice_count: int = 0
    unpaid_invoice_total: Decimal = Decimal("0")   # raw amount, discounts not netted


class DashboardMetrics(BaseModel):
    total_suppliers: int
    suppliers_last_month: int        # created in the last 30 days
    total_invoices: int
    invoices_last_month: int
    paid_invoices_amount: Decimal    # net of discount
    paid_invoices_last_month: Decimal
    unpaid_invoices_amount: Decimal
    unpaid_invoices_last_month: Decimal


class OverviewChartData(BaseModel):
    month: str   # "Oct 2026"
    paid: Decimal
    unpaid: Decimal


class ChartData(BaseModel):
    name: str
    total: Decimal
    fill: str    # "chart-1" .. "chart-5" by rank


class ChartLegendEntry(BaseModel):
    label: str
    color: str


class DashboardOut(BaseModel):
    metrics: DashboardMetrics
    overview: list[OverviewChartData]
    top_suppliers: list[ChartData]
    top_suppliers_config: dict[str, ChartLegendEntry]
    top_departments: list[ChartData]
    top_departments_config: dict[str, ChartLegendEntry]
    currency: str
