from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone

from ..managers import DocumentQuerySet
from ..services.numbering import assign_uid
from ..utils import ZERO
from .base import AggregateModel, LineItemBase, money_field
from .contact import Contact

ESTIMATE_STATUS_CHOICES = [
    ("draft", "Draft"),
    ("sent", "Sent"),
    ("accepted", "Accepted"),
    ("rejected", "Rejected"),
    ("expired", "Expired"),
]


class Estimate(AggregateModel):  # Quote that may become exactly one invoice
    UID_PREFIX = "EST"
    uid_field = "estimate_uid"
    derived_fields = ("total_amount", "total_credits", "balance")

    estimate_uid = models.CharField(max_length=16, unique=True, editable=False)

    contact = models.ForeignKey(
        Contact, on_delete=models.PROTECT, related_name="estimates"
    )
    issue_date = models.DateField(default=timezone.localdate)
    expiry_date = models.DateField(null=True, blank=True)
    status = models.CharField(
        max_length=10, choices=ESTIMATE_STATUS_CHOICES, default="draft"
    )
    notes = models.TextField(blank=True, default="")

    # Derived: Σ line_total, Σ credits, total_amount - total_credits
    total_amount = money_field(default=ZERO, editable=False)
    total_credits = money_field(default=ZERO, editable=False)
    balance = money_field(default=ZERO, editable=False)

    # One-way conversion marker, only set by the conversion workflow
    converted_to_invoice = models.BooleanField(default=False, editable=False)
    invoice = models.ForeignKey(
        "finance_core.Invoice",
        null=True,
        blank=True,
        editable=False,
        on_delete=models.SET_NULL,
        related_name="source_estimates",
    )

    objects = DocumentQuerySet.as_manager()

    class Meta:
        db_table = "estimates"
        ordering = ["-issue_date", "-id"]

    def __str__(self):
        return f"Est {self.estimate_uid or self.pk}"

    def clean(self):
        if self.expiry_date and self.issue_date and self.expiry_date < self.issue_date:
            raise ValidationError({"expiry_date": "Expiry date cannot be before the issue date."})

    def save(self, *args, **kwargs):
        if not self.estimate_uid:
            assign_uid(self)
        return super().save(*args, **kwargs)


class EstimateLineItem(LineItemBase):
    estimate = models.ForeignKey(
        Estimate, on_delete=models.CASCADE, related_name="line_items"
    )
    unit_price = money_field(blank=True)

    class Meta:
        db_table = "estimate_line_items"
        ordering = ["id"]

    def __str__(self):
        return f"{self.estimate} - {self.description} - {self.line_total}"
