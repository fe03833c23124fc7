"""Seed script — creates a dev user, departments, suppliers and invoices.

Idempotent: checks for existing records before inserting.
Run: python backend/scripts/seed.py
"""
import asyncio
import logging
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from procurement.core.security import hash_password
from procurement.db.session import AsyncSessionLocal, engine
from procurement.models.department import Department
from procurement.models.invoice import Invoice, InvoiceStatus
from procurement.models.supplier import Supplier
from procurement.models.user import User

logger = logging.getLogger(__name__)

NOW = datetime.now(timezone.utc)

DEPARTMENTS = ["Finance", "Operations", "IT", "Facilities"]
SUPPLIERS = [
    ("Acme Trading", "Baghdad"),
    ("Tigris Supplies", "Basra"),
    ("Northern Office Co", "Erbil"),
]

# (invoice_number, supplier_idx, department_idx, amount, discount, status, days_ago)
INVOICES = [
    ("INV-1001", 0, 0, "1500000", "50000", InvoiceStatus.paid, 150),
    ("INV-1002", 0, 1, "820000", None, InvoiceStatus.unpaid, 95),
    ("INV-1003", 1, 2, "2300000", "100000", InvoiceStatus.paid, 62),
    ("INV-1004", 1, 0, "450000", None, InvoiceStatus.partial, 40),
    ("INV-1005", 2, 3, "300000", None, InvoiceStatus.unpaid, 12),
    ("INV-1006", 2, 2, "990000", "90000", InvoiceStatus.paid, 5),
    ("INV-1007", 0, 3, "120000", None, InvoiceStatus.cancelled, 2),
]


async def _get_or_create(db: AsyncSession, model, name: str, **fields):
    existing = (await db.execute(select(model).where(model.name == name))).scalars().first()
    if existing:
        logger.info("[skip] %s %s", model.__tablename__, name)
        return existing
    row = model(name=name, **fields)
    db.add(row)
    await db.flush()
    return row


async def seed() -> None:
    async with AsyncSessionLocal() as db:
        if (await db.execute(select(User).where(User.email == "admin@example.com"))).scalars().first() is None:
            db.add(User(
                email="admin@example.com",
                name="Admin User",
                password_hash=hash_password("changeme123"),
                is_active=True,
            ))

        departments = [await _get_or_create(db, Department, name) for name in DEPARTMENTS]
        suppliers = [
            await _get_or_create(db, Supplier, name, address=city)
            for name, city in SUPPLIERS
        ]

        for number, s_idx, d_idx, amount, discount, status, days_ago in INVOICES:
            exists = (
                await db.execute(select(Invoice).where(Invoice.invoice_number == number))
            ).scalars().first()
            if exists:
                logger.info("[skip] invoice %s", number)
                continue
            created = NOW - timedelta(days=days_ago)
            db.add(Invoice(
                invoice_number=number,
                amount=Decimal(amount),
                discount_amount=Decimal(discount) if discount else None,
                currency="IQD",
                status=status.value,
                supplier_id=suppliers[s_idx].id,
                department_id=departments[d_idx].id,
                issue_date=created,
                due_date=created + timedelta(days=30),
                payment_date=created + timedelta(days=10) if status is InvoiceStatus.paid else None,
                created_at=created,
            ))

        await db.commit()
    await engine.dispose()
    logger.info("Seed complete. Login: admin@example.com / changeme123")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(seed())
