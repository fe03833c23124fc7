"""Department API endpoints — CRUD plus unpaid-invoice stats per department."""
import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from procurement.core.deps import CurrentUser
from procurement.db.session import get_session
from procurement.models.department import Department
from procurement.schemas.department import (
    DepartmentCreate,
    DepartmentOut,
    DepartmentUpdate,
    DepartmentWithStats,
)
from procurement.schemas.invoice import BulkDelete, BulkDeleteResult
from procurement.services.entities import list_departments_with_stats

logger = logging.getLogger(__name__)

router = APIRouter()

IN_USE_DETAIL = "Department still has invoices; reassign or delete them first."


async def _get_or_404(db: AsyncSession, department_id: int) -> Department:
    department = (
        await db.execute(select(Department).where(Department.id == department_id))
    ).scalar_one_or_none()
    if department is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Department not found.")
    return department


# ─── List departments ───

@router.get(
    "",
    response_model=list[DepartmentWithStats],
    summary="List departments (newest first) with unpaid invoice stats",
)
async def list_departments(
    db: Annotated[AsyncSession, Depends(get_session)],
    current_user: CurrentUser,
):
    return await list_departments_with_stats(db)


# ─── Create department ───

@router.post(
    "",
    response_model=DepartmentOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create a department",
)
async def create_department(
    body: DepartmentCreate,
    db: Annotated[AsyncSession, Depends(get_session)],
    current_user: CurrentUser,
):
    department = Department(name=body.name, description=body.description)
    db.add(department)
    await db.commit()
    await db.refresh(department)
    logger.info("Department %s created by %s", department.id, current_user.email)
    return department


# ─── Update department ───

@router.patch(
    "/{department_id}",
    response_model=DepartmentOut,
    summary="Partially update a department",
)
async def update_department(
    department_id: int,
    body: DepartmentUpdate,
    db: Annotated[AsyncSession, Depends(get_session)],
    current_user: CurrentUser,
):
    department = await _get_or_404(db, department_id)
    for field, value in body.model_dump(exclude_unset=True).items():
        setattr(department, field, value)
    db.add(department)
    await db.commit()
    await db.refresh(department)
    return department


# ─── Delete department(s) ───

@router.delete(
    "/{department_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a department",
)
async def delete_department(
    department_id: int,
    db: Annotated[AsyncSession, Depends(get_session)],
    current_user: CurrentUser,
):
    department = await _get_or_404(db, department_id)
    try:
        await db.delete(department)
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=IN_USE_DETAIL)
    logger.info("Department %s deleted by %s", department_id, current_user.email)


@router.post(
    "/bulk-delete",
    response_model=BulkDeleteResult,
    summary="Delete several departments at once",
)
async def bulk_delete_departments(
    body: BulkDelete,
    db: Annotated[AsyncSession, Depends(get_session)],
    current_user: CurrentUser,
):
    try:
        result = await db.execute(delete(Department).where(Department.id.in_(body.ids)))
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=IN_USE_DETAIL)
    return BulkDeleteResult(deleted=result.rowcount or 0)
