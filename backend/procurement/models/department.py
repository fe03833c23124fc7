from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from procurement.db.base import Base, IntegerIDMixin, TimestampMixin


class Department(Base, IntegerIDMixin, TimestampMixin):
    __tablename__ = "departments"

    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    invoices: Mapped[list["Invoice"]] = relationship(  # noqa: F821
        "Invoice", back_populates="department", passive_deletes="all"
    )
