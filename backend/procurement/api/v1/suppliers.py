"""Supplier API endpoints — CRUD plus unpaid-invoice stats per supplier."""
import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from procurement.core.deps import CurrentUser
from procurement.db.session import get_session
from procurement.models.supplier import Supplier
from procurement.schemas.invoice import BulkDelete, BulkDeleteResult
from procurement.schemas.supplier import (
    SupplierCreate,
    SupplierOut,
    SupplierUpdate,
    SupplierWithStats,
)
from procurement.services.entities import list_suppliers_with_stats

logger = logging.getLogger(__name__)

router = APIRouter()

IN_USE_DETAIL = "Supplier still has invoices; reassign or delete them first."


async def _get_or_404(db: AsyncSession, supplier_id: int) -> Supplier:
    supplier = (
        await db.execute(select(Supplier).where(Supplier.id == supplier_id))
    ).scalar_one_or_none()
    if supplier is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Supplier not found.")
    return supplier


@router.get(
    "",
    response_model=list[SupplierWithStats],
    summary="List suppliers (newest first) with unpaid invoice stats",
)
async def list_suppliers(
    db: Annotated[AsyncSession, Depends(get_session)],
    current_user: CurrentUser,
):
    return await list_suppliers_with_stats(db)


@router.get("/{supplier_id}", response_model=SupplierOut, summary="Get one supplier")
async def get_supplier(
    supplier_id: int,
    db: Annotated[AsyncSession, Depends(get_session)],
    current_user: CurrentUser,
):
    return await _get_or_404(db, supplier_id)


@router.post(
    "",
    response_model=SupplierOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create a supplier",
)
async def create_supplier(
    body: SupplierCreate,
    db: Annotated[AsyncSession, Depends(get_session)],
    current_user: CurrentUser,
):
    supplier = Supplier(**body.model_dump())
    db.add(supplier)
    await db.commit()
    await db.refresh(supplier)
    logger.info("Supplier %s created by %s", supplier.id, current_user.email)
    return supplier


@router.patch("/{supplier_id}", response_model=SupplierOut, summary="Partially update a supplier")
async def update_supplier(
    supplier_id: int,
    body: SupplierUpdate,
    db: Annotated[AsyncSession, Depends(get_session)],
    current_user: CurrentUser,
):
    supplier = await _get_or_404(db, supplier_id)
    for field, value in body.model_dump(exclude_unset=True).items():
        setattr(supplier, field, value)
    db.add(supplier)
    await db.commit()
    await db.refresh(supplier)
    return supplier


@router.delete("/{supplier_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a supplier")
async def delete_supplier(
    supplier_id: int,
    db: Annotated[AsyncSession, Depends(get_session)],
    current_user: CurrentUser,
):
    supplier = await _get_or_404(db, supplier_id)
    try:
        await db.delete(supplier)
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=IN_USE_DETAIL)
    logger.info("Supplier %s deleted by %s", supplier_id, current_user.email)


@router.post("/bulk-delete", response_model=BulkDeleteResult, summary="Delete several suppliers at once")
async def bulk_delete_suppliers(
    body: BulkDelete,
    db: Annotated[AsyncSession, Depends(get_session)],
    current_user: CurrentUser,
):
    try:
        result = await db.execute(delete(Supplier).where(Supplier.id.in_(body.ids)))
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=IN_USE_DETAIL)
    return BulkDeleteResult(deleted=result.rowcount or 0)
