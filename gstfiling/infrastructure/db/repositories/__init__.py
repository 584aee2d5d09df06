from .business_repository import BusinessRepository
from .gst_return_repository import GstReturnRepository
from .invoice_repository import InvoiceRepository
from .purchase_repository import PurchaseRepository

__all__ = [
    "BusinessRepository",
    "InvoiceRepository",
    "PurchaseRepository",
    "GstReturnRepository",
]
