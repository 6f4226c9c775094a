from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone

from ..managers import PaymentQuerySet
from .base import TimeStampedModel, money_field
from .contact import Contact
from .invoice import Invoice
from .purchase_order import PurchaseOrder

PAYMENT_APPROVAL_CHOICES = [
    ("pending", "Pending"),
    ("approved", "Approved"),
    ("rejected", "Rejected"),
]

PAYMENT_METHOD_CHOICES = [
    ("cash", "Cash"),
    ("bank_transfer", "Bank transfer"),
    ("card", "Card"),
    ("cheque", "Cheque"),
    ("other", "Other"),
]


class PaymentBase(TimeStampedModel):
    """
    Money settled against one document. Only approved payments count
    towards the document's total_paid.
    """

    # name of the FK to the paid document, the contact is copied from it
    document_field = None
    # subclasses declare contact (blank: copied from the document) and status

    amount = money_field()
    payment_date = models.DateField(default=timezone.localdate)
    payment_method = models.CharField(
        max_length=20, choices=PAYMENT_METHOD_CHOICES, default="bank_transfer"
    )
    notes = models.TextField(blank=True, default="")

    objects = PaymentQuerySet.as_manager()

    class Meta:
        abstract = True

    def clean(self):
        if self.amount is not None and self.amount <= 0:
            raise ValidationError({"amount": "Payment amount must be positive."})
        document = getattr(self, self.document_field, None)
        if document is not None and self.contact_id and document.contact_id != self.contact_id:
            raise ValidationError({"contact": "Payment contact must match the document contact."})

    def save(self, *args, **kwargs):
        document_id = getattr(self, f"{self.document_field}_id")
        if not self.contact_id and document_id:
            self.contact_id = getattr(self, self.document_field).contact_id
        self.full_clean()
        return super().save(*args, **kwargs)


class CustomerPayment(PaymentBase):  # Receipt against an invoice (AR)
    document_field = "invoice"

    contact = models.ForeignKey(
        Contact,
        on_delete=models.PROTECT,
        related_name="customer_payments",
        blank=True,
    )
    invoice = models.ForeignKey(
        Invoice, on_delete=models.CASCADE, related_name="payments"
    )
    # recorded payments wait for approval before they count
    status = models.CharField(
        max_length=10, choices=PAYMENT_APPROVAL_CHOICES, default="pending"
    )

    class Meta:
        db_table = "customer_payments"
        ordering = ["-payment_date", "-id"]
        indexes = [
            models.Index(fields=["invoice", "status"], name="cust_pay_invoice_status_idx"),
        ]

    def __str__(self):
        return f"Payment {self.amount} on {self.invoice_id} ({self.status})"


class PurchaseOrderPayment(PaymentBase):  # Payment made to a vendor (AP)
    document_field = "purchase_order"

    contact = models.ForeignKey(
        Contact,
        on_delete=models.PROTECT,
        related_name="vendor_payments",
        blank=True,
    )
    purchase_order = models.ForeignKey(
        PurchaseOrder, on_delete=models.CASCADE, related_name="payments"
    )
    # outgoing payments are entered by staff and count immediately
    status = models.CharField(
        max_length=10, choices=PAYMENT_APPROVAL_CHOICES, default="approved"
    )

    class Meta:
        db_table = "vendor_payments"
        ordering = ["-payment_date", "-id"]
        indexes = [
            models.Index(fields=["purchase_order", "status"], name="vend_pay_po_status_idx"),
        ]

    def __str__(self):
        return f"Payment {self.amount} on PO {self.purchase_order_id} ({self.status})"
