"""Invoice API endpoints — CRUD, bulk delete and payment."""
import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from procurement.core.deps import CurrentUser
from procurement.db.session import get_session
from procurement.models.invoice import Invoice, InvoiceStatus
from procurement.schemas.invoice import (
    BulkDelete,
    BulkDeleteResult,
    EnrichedInvoice,
    InvoiceCreate,
    InvoiceOut,
    InvoiceUpdate,
    PayInvoice,
)

logger = logging.getLogger(__name__)

router = APIRouter()


async def _get_or_404(db: AsyncSession, invoice_id: int) -> Invoice:
    invoice = (
        await db.execute(select(Invoice).where(Invoice.id == invoice_id))
    ).scalar_one_or_none()
    if invoice is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Invoice not found.")
    return invoice


async def _commit(db: AsyncSession, invoice: Invoice) -> None:
    """Commit, mapping FK violations (unknown supplier/department) to 409."""
    try:
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        logger.warning("Invoice write rejected by database: %s", exc.orig)
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Referenced supplier or department does not exist.",
        )
    await db.refresh(invoice)


# ─── List invoices ───

@router.get(
    "",
    response_model=list[EnrichedInvoice],
    summary="List invoices with their supplier and department",
)
async def list_invoices(
    db: Annotated[AsyncSession, Depends(get_session)],
    current_user: CurrentUser,
):
    stmt = (
        select(Invoice)
        .options(selectinload(Invoice.supplier), selectinload(Invoice.department))
        .order_by(Invoice.created_at.desc())
    )
    invoices = (await db.execute(stmt)).scalars().all()
    return [EnrichedInvoice.model_validate(inv) for inv in invoices]


@router.get("/{invoice_id}", response_model=InvoiceOut, summary="Get one invoice")
async def get_invoice(
    invoice_id: int,
    db: Annotated[AsyncSession, Depends(get_session)],
    current_user: CurrentUser,
):
    return await _get_or_404(db, invoice_id)


# ─── Create / update ───

@router.post(
    "",
    response_model=InvoiceOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create an invoice",
)
async def create_invoice(
    body: InvoiceCreate,
    db: Annotated[AsyncSession, Depends(get_session)],
    current_user: CurrentUser,
):
    invoice = Invoice(**body.model_dump())
    db.add(invoice)
    await _commit(db, invoice)
    logger.info("Invoice %s (%s) created by %s", invoice.id, invoice.invoice_number, current_user.email)
    return invoice


@router.patch("/{invoice_id}", response_model=InvoiceOut, summary="Partially update an invoice")
async def update_invoice(
    invoice_id: int,
    body: InvoiceUpdate,
    db: Annotated[AsyncSession, Depends(get_session)],
    current_user: CurrentUser,
):
    invoice = await _get_or_404(db, invoice_id)
    for field, value in body.model_dump(exclude_unset=True).items():
        setattr(invoice, field, value)
    db.add(invoice)
    await _commit(db, invoice)
    return invoice


# ─── Pay ───

@router.post("/{invoice_id}/pay", response_model=InvoiceOut, summary="Mark an invoice as paid")
async def pay_invoice(
    invoice_id: int,
    body: PayInvoice,
    db: Annotated[AsyncSession, Depends(get_session)],
    current_user: CurrentUser,
):
    invoice = await _get_or_404(db, invoice_id)
    old_status = invoice.status
    invoice.payment_date = body.payment_date
    invoice.status = InvoiceStatus.paid.value
    db.add(invoice)
    await _commit(db, invoice)
    logger.info(
        "Invoice %s paid (%s -> paid) by %s", invoice_id, old_status, current_user.email,
    )
    return invoice


# ─── Delete ───

@router.delete("/{invoice_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete an invoice")
async def delete_invoice(
    invoice_id: int,
    db: Annotated[AsyncSession, Depends(get_session)],
    current_user: CurrentUser,
):
    invoice = await _get_or_404(db, invoice_id)
    await db.delete(invoice)
    await db.commit()
    logger.info("Invoice %s deleted by %s", invoice_id, current_user.email)


@router.post("/bulk-delete", response_model=BulkDeleteResult, summary="Delete several invoices at once")
async def bulk_delete_invoices(
    body: BulkDelete,
    db: Annotated[AsyncSession, Depends(get_session)],
    current_user: CurrentUser,
):
    result = await db.execute(delete(Invoice).where(Invoice.id.in_(body.ids)))
    await db.commit()
    return BulkDeleteResult(deleted=result.rowcount or 0)
