from django.db import models
from django.utils import timezone

from ..managers import DocumentQuerySet
from ..services.numbering import assign_uid
from ..utils import ZERO
from .base import AggregateModel, LineItemBase, money_field
from .contact import Contact
from .invoice import PAYMENT_STATUS_CHOICES


# Mirrors Invoice for the payable side
class PurchaseOrder(AggregateModel):
    UID_PREFIX = "PO"
    uid_field = "po_uid"
    derived_fields = (
        "total_amount",
        "total_paid",
        "balance",
        "payment_status",
        "product_count",
    )

    po_uid = models.CharField(max_length=16, unique=True, editable=False)

    contact = models.ForeignKey(
        Contact, on_delete=models.PROTECT, related_name="purchase_orders"
    )
    issue_date = models.DateField(default=timezone.localdate)
    # when the goods are expected; doubles as the payment due date
    expected_date = models.DateField(null=True, blank=True)
    notes = models.TextField(blank=True, default="")

    # Derived: Σ line_total, Σ approved payments, total_amount - total_paid
    total_amount = money_field(default=ZERO, editable=False)
    total_paid = money_field(default=ZERO, editable=False)
    balance = money_field(default=ZERO, editable=False)
    payment_status = models.CharField(
        max_length=10,
        choices=PAYMENT_STATUS_CHOICES,
        default="pending",
        editable=False,
    )
    # number of lines on the order
    product_count = models.PositiveIntegerField(default=0, editable=False)

    objects = DocumentQuerySet.as_manager()

    class Meta:
        db_table = "purchase_orders"
        ordering = ["-issue_date", "-id"]
        indexes = [
            models.Index(fields=["contact", "payment_status"], name="po_contact_status_idx"),
        ]

    def __str__(self):
        return f"PO {self.po_uid or self.pk}"

    def save(self, *args, **kwargs):
        if not self.po_uid:
            assign_uid(self)
        return super().save(*args, **kwargs)


class PurchaseOrderLine(LineItemBase):
    price_field = "unit_cost"

    purchase_order = models.ForeignKey(
        PurchaseOrder, on_delete=models.CASCADE, related_name="lines"
    )
    unit_cost = money_field(blank=True)

    class Meta:
        db_table = "purchase_order_lines"
        ordering = ["id"]

    def __str__(self):
        return f"{self.purchase_order} - {self.description} - {self.line_total}"
