from .auditlog import AuditLog
from .base import AggregateModel, LineItemBase, TimeStampedModel
from .contact import Contact
from .credit import Credit
from .estimate import Estimate, EstimateLineItem
from .expense import Expense
from .invoice import Invoice, InvoiceLineItem
from .payment import CustomerPayment, PurchaseOrderPayment
from .portal import PortalAccess, PortalSession
from .product import Product
from .purchase_order import PurchaseOrder, PurchaseOrderLine

__all__ = [
    "AggregateModel",
    "AuditLog",
    "Contact",
    "Credit",
    "CustomerPayment",
    "Estimate",
    "EstimateLineItem",
    "Expense",
    "Invoice",
    "InvoiceLineItem",
    "LineItemBase",
    "PortalAccess",
    "PortalSession",
    "Product",
    "PurchaseOrder",
    "PurchaseOrderLine",
    "PurchaseOrderPayment",
    "TimeStampedModel",
]
