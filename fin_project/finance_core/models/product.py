from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models

from .base import TimeStampedModel, money_field
from .contact import Contact


# ---------- Products / inventory ----------
class Product(TimeStampedModel):
    sku = models.CharField(max_length=80, unique=True)
    name = models.CharField(max_length=200)
    description = models.TextField(blank=True, default="")

    # sell price, default for estimate/invoice lines
    unit_price = money_field()
    # buy price, default for purchase order lines
    unit_cost = money_field(null=True, blank=True)

    stock_quantity = models.IntegerField(default=0)
    reorder_level = models.IntegerField(default=5)

    # Optional preferred supplier
    vendor = models.ForeignKey(
        Contact,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="supplied_products",
    )

    class Meta:
        db_table = "products"
        ordering = ["name", "id"]

    def __str__(self):
        return f"{self.sku} {self.name}"

    @property
    def stock_value(self):
        return Decimal(self.stock_quantity or 0) * (self.unit_cost or Decimal("0"))

    @property
    def needs_reorder(self):
        return self.stock_quantity <= self.reorder_level

    def clean(self):
        if self.unit_price is not None and self.unit_price < 0:
            raise ValidationError({"unit_price": "Unit price must be >= 0."})
        if self.unit_cost is not None and self.unit_cost < 0:
            raise ValidationError({"unit_cost": "Unit cost must be >= 0."})
        if self.vendor_id and not self.vendor.is_vendor:
            raise ValidationError({"vendor": "Preferred supplier must be a vendor."})
