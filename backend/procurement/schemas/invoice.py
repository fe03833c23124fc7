"""Pydantic schemas for invoice API endpoints."""
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from procurement.models.invoice import Currency, InvoiceStatus
from procurement.schemas.department import DepartmentOut
from procurement.schemas.supplier import SupplierOut


class InvoiceCreate(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    invoice_number: str = Field(min_length=1)
    amount: Decimal = Field(ge=0)
    currency: Currency | None = None
    status: InvoiceStatus | None = None
    supplier_id: int | None = None
    department_id: int | None = None
    issue_date: datetime
    due_date: datetime
    payment_date: datetime | None = None
    discount_amount: Decimal | None = None
    tax_amount: Decimal | None = None
    notes: str | None = None


class InvoiceUpdate(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    invoice_number: str | None = Field(default=None, min_length=1)
    amount: Decimal | None = Field(default=None, ge=0)
    currency: Currency | None = None
    status: InvoiceStatus | None = None
    supplier_id: int | None = None
    department_id: int | None = None
    issue_date: datetime | None = None
    due_date: datetime | None = None
    payment_date: datetime | None = None
    discount_amount: Decimal | None = None
    tax_amount: Decimal | None = None
    notes: str | None = None

    # may be omitted, but not cleared: the columns are NOT NULL
    @field_validator("invoice_number", "amount", "issue_date", "due_date")
    @classmethod
    def required_not_null(cls, v, info):
        if v is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return v


class PayInvoice(BaseModel):
    payment_date: datetime


class InvoiceOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    invoice_number: str
    amount: Decimal
    currency: str | None
    status: str | None
    supplier_id: int | None
    department_id: int | None
    issue_date: datetime
    due_date: datetime
    payment_date: datetime | None
    discount_amount: Decimal | None
    tax_amount: Decimal | None
    notes: str | None
    created_at: datetime | None
    updated_at: datetime | None


class EnrichedInvoice(InvoiceOut):
    supplier: SupplierOut | None = None
    department: DepartmentOut | None = None


class BulkDelete(BaseModel):
    ids: list[int] = Field(min_length=1)


class BulkDeleteResult(BaseModel):
    deleted: int
