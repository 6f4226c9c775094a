from django.core.exceptions import ValidationError
from django.db import models

from ..managers import ContactQuerySet
from ..services.numbering import assign_uid
from ..utils import ZERO
from .base import AggregateModel, money_field


# ---------- Contact ----------
# One party record for both sides of the business:
# customers receive invoices/estimates (AR), vendors receive purchase orders (AP)
class Contact(AggregateModel):
    UID_PREFIX = "ACC"
    uid_field = "contact_uid"
    derived_fields = ("customer_balance", "vendor_balance", "net_balance")

    # human-readable code (e.g. "ACC-7Q2M0Z"), distinct from the primary key
    contact_uid = models.CharField(max_length=16, unique=True, editable=False)

    name = models.CharField(max_length=200)
    email = models.EmailField(null=True, blank=True)
    phone = models.CharField(max_length=50, blank=True, default="")
    address = models.TextField(blank=True, default="")
    notes = models.TextField(blank=True, default="")

    is_customer = models.BooleanField(default=False)
    is_vendor = models.BooleanField(default=False)

    # Σ balance of this contact's invoices
    customer_balance = money_field(default=ZERO, editable=False)
    # Σ balance of this contact's purchase orders
    vendor_balance = money_field(default=ZERO, editable=False)
    # customer_balance - vendor_balance
    net_balance = money_field(default=ZERO, editable=False)

    objects = ContactQuerySet.as_manager()

    class Meta:
        db_table = "contacts"
        ordering = ["name", "id"]
        indexes = [
            models.Index(fields=["email"], name="contacts_email_idx"),
        ]

    def __str__(self):
        return f"{self.name} ({self.contact_uid})"

    def clean(self):
        if not self.name or not self.name.strip():
            raise ValidationError({"name": "Name is required."})

    def save(self, *args, **kwargs):
        if not self.contact_uid:
            assign_uid(self)
        return super().save(*args, **kwargs)
