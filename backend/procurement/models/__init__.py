from procurement.models.user import User
from procurement.models.department import Department
from procurement.models.supplier import Supplier
from procurement.models.invoice import Currency, Invoice, InvoiceStatus, INVOICE_STATUSES

__all__ = [
    "User",
    "Department",
    "Supplier",
    "Invoice", "InvoiceStatus", "Currency", "INVOICE_STATUSES",
]
