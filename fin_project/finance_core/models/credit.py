from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone

from .base import TimeStampedModel, money_field
from .contact import Contact
from .estimate import Estimate
from .invoice import Invoice


class Credit(TimeStampedModel):
    """
    A credit note for a customer. It reduces the balance of the invoice
    and/or estimate it points at; a credit with neither just sits on the
    contact.
    """

    contact = models.ForeignKey(
        Contact, on_delete=models.PROTECT, related_name="credits", blank=True
    )
    invoice = models.ForeignKey(
        Invoice,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="credits",
    )
    estimate = models.ForeignKey(
        Estimate,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="credits",
    )
    amount = money_field()
    issue_date = models.DateField(default=timezone.localdate)
    notes = models.TextField(blank=True, default="")

    class Meta:
        db_table = "customer_credits"
        ordering = ["-issue_date", "-id"]

    def __str__(self):
        return f"Credit {self.amount} for {self.contact_id}"

    def clean(self):
        if not self.contact_id:
            # a document credit belongs to the document's contact
            source = self.invoice or self.estimate
            if source is not None:
                self.contact_id = source.contact_id
        if self.amount is not None and self.amount <= 0:
            raise ValidationError({"amount": "Credit amount must be positive."})
        if not self.contact_id:
            raise ValidationError({"contact": "A credit needs a contact, an invoice or an estimate."})
        for field in ("invoice", "estimate"):
            document = getattr(self, field)
            if document is not None and self.contact_id and document.contact_id != self.contact_id:
                raise ValidationError({field: "Credit contact must match the document contact."})

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)
