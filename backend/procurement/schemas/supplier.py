"""Pydantic schemas for supplier API endpoints."""
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

_OPTIONAL_TEXT = ("address", "contact_person", "email", "phone", "tax_id", "notes")


class _SupplierFields(BaseModel):
    address: str | None = None
    contact_person: str | None = None
    email: EmailStr | None = None
    phone: str | None = None
    tax_id: str | None = None
    notes: str | None = None

    @field_validator(*_OPTIONAL_TEXT, mode="before")
    @classmethod
    def blank_to_none(cls, v):
        # form posts send "" for untouched inputs
        return v or None


class SupplierCreate(_SupplierFields):
    name: str = Field(min_length=1)


class SupplierUpdate(_SupplierFields):
    name: str | None = Field(default=None, min_length=1)

    @field_validator("name")
    @classmethod
    def name_not_null(cls, v):
        if v is None:
            raise ValueError("name cannot be null")
        return v


class SupplierOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    address: str | None
    contact_person: str | None
    email: str | None
    phone: str | None
    tax_id: str | None
    notes: str | None
    created_at: datetime | None
    updated_at: datetime | None


class SupplierWithStats(SupplierOut):
    unpaid_invoice_count: int = 0
    unpaid_invoice_total: Decimal = Decimal("0")
