from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone

from ..managers import DocumentQuerySet
from ..services.numbering import assign_uid
from ..utils import ZERO
from .base import AggregateModel, LineItemBase, money_field
from .contact import Contact

PAYMENT_STATUS_CHOICES = [
    ("pending", "Pending"),
    ("partial", "Partial"),
    ("paid", "Paid"),
    ("overdue", "Overdue"),
]


class Invoice(AggregateModel):  # Represents a customer invoice (AR document)
    UID_PREFIX = "INV"
    uid_field = "invoice_uid"
    derived_fields = (
        "total_amount",
        "total_paid",
        "total_credits",
        "balance",
        "payment_status",
    )

    # human-readable (e.g. "INV-4K9T2B")
    invoice_uid = models.CharField(max_length=16, unique=True, editable=False)

    contact = models.ForeignKey(
        Contact,
        # prevent deleting a contact who has an invoice
        on_delete=models.PROTECT,
        related_name="invoices",
    )
    # Set when the invoice was produced by converting an estimate
    estimate = models.ForeignKey(
        "finance_core.Estimate",
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="invoices",
    )

    issue_date = models.DateField(default=timezone.localdate)
    due_date = models.DateField(null=True, blank=True)
    notes = models.TextField(blank=True, default="")

    """ Derived totals, maintained by the recalculator:
        total_amount  = Σ line_total
        total_paid    = Σ approved payment amount
        total_credits = Σ credit amount
        balance       = total_amount - total_paid - total_credits
        (negative balance = overpayment, kept as-is) """
    total_amount = money_field(default=ZERO, editable=False)
    total_paid = money_field(default=ZERO, editable=False)
    total_credits = money_field(default=ZERO, editable=False)
    balance = money_field(default=ZERO, editable=False)
    payment_status = models.CharField(
        max_length=10,
        choices=PAYMENT_STATUS_CHOICES,
        default="pending",
        editable=False,
    )

    objects = DocumentQuerySet.as_manager()

    class Meta:
        db_table = "invoices"
        ordering = ["-issue_date", "-id"]
        indexes = [
            models.Index(fields=["contact", "payment_status"], name="invoices_contact_status_idx"),
        ]

    def __str__(self):
        return f"Inv {self.invoice_uid or self.pk}"

    def clean(self):
        if self.due_date and self.issue_date and self.due_date < self.issue_date:
            raise ValidationError({"due_date": "Due date cannot be before the issue date."})

    def save(self, *args, **kwargs):
        if not self.invoice_uid:
            assign_uid(self)
        return super().save(*args, **kwargs)


class InvoiceLineItem(LineItemBase):
    # Owned exclusively by one invoice
    invoice = models.ForeignKey(
        Invoice, on_delete=models.CASCADE, related_name="line_items"
    )
    unit_price = money_field(blank=True)

    class Meta:
        db_table = "invoice_line_items"
        ordering = ["id"]

    def __str__(self):
        return f"{self.invoice} - {self.description} - {self.line_total}"
