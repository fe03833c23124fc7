"""Tests for attaching unpaid-invoice stats to department/supplier rows."""
from datetime import datetime, timezone
from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from procurement.schemas.department import DepartmentWithStats
from procurement.services.entities import attach_unpaid_stats, list_suppliers_with_stats

NOW = datetime(2026, 10, 19, tzinfo=timezone.utc)


def _dept(dept_id: int, name: str):
    return SimpleNamespace(id=dept_id, name=name, description=None, created_at=NOW, updated_at=NOW)


def _row(owner_id, status, amount):
    return SimpleNamespace(owner_id=owner_id, status=status, amount=amount)


def test_attach_stats_per_owner():
    departments = [_dept(2, "IT"), _dept(1, "Finance"), _dept(3, "Empty")]
    rows = [
        _row(1, "unpaid", Decimal("100")),
        _row(1, "unpaid", Decimal("50")),
        _row(1, "paid", Decimal("30")),
        _row(2, "unpaid", Decimal("7")),
        _row(2, None, Decimal("1000")),        # unknown status, dropped
        _row(2, "not-paid", Decimal("1000")),  # unknown status, dropped
    ]

    items = attach_unpaid_stats(departments, rows, DepartmentWithStats)

    assert [i.name for i in items] == ["IT", "Finance", "Empty"]
    by_name = {i.name: i for i in items}
    assert (by_name["Finance"].unpaid_invoice_count, by_name["Finance"].unpaid_invoice_total) == (2, Decimal("150"))
    assert (by_name["IT"].unpaid_invoice_count, by_name["IT"].unpaid_invoice_total) == (1, Decimal("7"))
    assert (by_name["Empty"].unpaid_invoice_count, by_name["Empty"].unpaid_invoice_total) == (0, 0)


@pytest.mark.asyncio
async def test_list_suppliers_with_stats_runs_two_queries():
    supplier = SimpleNamespace(
        id=1, name="Acme", address=None, contact_person=None, email=None, phone=None,
        tax_id=None, notes=None, created_at=NOW, updated_at=NOW,
    )
    entity_result = MagicMock()
    entity_result.scalars.return_value.all.return_value = [supplier]
    invoice_result = MagicMock()
    invoice_result.all.return_value = [_row(1, "unpaid", Decimal("25.50"))]

    db = AsyncMock()
    db.execute = AsyncMock(side_effect=[entity_result, invoice_result])

    [item] = await list_suppliers_with_stats(db)

    assert db.execute.await_count == 2
    assert item.name == "Acme"
    assert item.unpaid_invoice_count == 1
    assert item.unpaid_invoice_total == Decimal("25.50")
