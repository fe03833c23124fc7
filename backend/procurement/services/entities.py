"""Department/supplier listings with their unpaid-invoice stats attached."""
import logging
from collections import defaultdict
from collections.abc import Iterable, Sequence
from typing import Any, TypeVar

from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from procurement.models.department import Department
from procurement.models.invoice import Invoice
from procurement.models.supplier import Supplier
from procurement.schemas.department import DepartmentWithStats
from procurement.schemas.supplier import SupplierWithStats
from procurement.services.aggregation import (
    InvoiceProjection,
    calculate_unpaid_stats,
    filter_known_status,
)

logger = logging.getLogger(__name__)

OutT = TypeVar("OutT", bound=BaseModel)


def attach_unpaid_stats(
    entities: Sequence[Any],
    invoice_rows: Iterable[Any],
    out_schema: type[OutT],
) -> list[OutT]:
    """Merge each entity with the unpaid stats of the invoices it owns.

    ``invoice_rows`` carry ``owner_id``, ``status`` and ``amount``. Entity
    order is preserved; entities without invoices get zero stats.
    """
    by_owner: dict[int, list[InvoiceProjection]] = defaultdict(list)
    for row in invoice_rows:
        by_owner[row.owner_id].append(InvoiceProjection(status=row.status, amount=row.amount))

    items = []
    for entity in entities:
        invoices = filter_known_status(by_owner.get(entity.id, []))
        stats = calculate_unpaid_stats(invoices)
        base = out_schema.model_validate(entity, from_attributes=True).model_dump(
            exclude={"unpaid_invoice_count", "unpaid_invoice_total"}
        )
        items.append(out_schema(**base, **stats.model_dump()))
    return items


async def _list_with_stats(db: AsyncSession, model, owner_column, out_schema: type[OutT]) -> list[OutT]:
    entities = (await db.execute(select(model).order_by(model.created_at.desc()))).scalars().all()
    invoice_rows = (
        await db.execute(
            select(owner_column.label("owner_id"), Invoice.status, Invoice.amount)
            .where(owner_column.is_not(None))
        )
    ).all()
    logger.debug(
        "Loaded %d %s row(s) with %d invoice projection(s)",
        len(entities), model.__tablename__, len(invoice_rows),
    )
    return attach_unpaid_stats(entities, invoice_rows, out_schema)


async def list_departments_with_stats(db: AsyncSession) -> list[DepartmentWithStats]:
    return await _list_with_stats(db, Department, Invoice.department_id, DepartmentWithStats)


async def list_suppliers_with_stats(db: AsyncSession) -> list[SupplierWithStats]:
    return await _list_with_stats(db, Supplier, Invoice.supplier_id, SupplierWithStats)
