"""Pydantic schemas for department API endpoints."""
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator


class DepartmentCreate(BaseModel):
    name: str = Field(min_length=1)
    description: str | None = None

    @field_validator("description", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        return v or None


class DepartmentUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1)
    description: str | None = None

    @field_validator("name")
    @classmethod
    def name_not_null(cls, v):
        if v is None:
            raise ValueError("name cannot be null")
        return v

    @field_validator("description", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        return v or None


class DepartmentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: str | None
    created_at: datetime | None
    updated_at: datetime | None


class DepartmentWithStats(DepartmentOut):
    unpaid_invoice_count: int = 0
    unpaid_invoice_total: Decimal = Decimal("0")
