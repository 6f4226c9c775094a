from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models

from ..utils import ZERO, to_money


def money_field(**kwargs):
    kwargs.setdefault("max_digits", 18)
    kwargs.setdefault("decimal_places", 2)
    return models.DecimalField(**kwargs)


class TimeStampedModel(models.Model):
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class AggregateModel(TimeStampedModel):
    """
    A row carrying denormalised totals derived from its children.

    The fields named in `derived_fields` are written only by the
    recalculator (a versioned queryset update). Regular saves never
    touch them, so an instance held in memory while children changed
    cannot overwrite fresh totals with stale ones.
    """

    derived_fields = ()

    # bumped by every recompute write, used to detect lost updates
    row_version = models.PositiveIntegerField(default=0, editable=False)

    class Meta:
        abstract = True

    def save(self, *args, **kwargs):
        if self._state.adding or self.pk is None:
            return super().save(*args, **kwargs)

        guarded = set(self.derived_fields) | {"row_version"}
        # reload derived values so post_save observers see what is stored
        self.refresh_from_db(fields=list(guarded))

        if kwargs.get("update_fields") is None:
            kwargs["update_fields"] = [
                f.name
                for f in self._meta.concrete_fields
                if not f.primary_key and f.name not in guarded
            ]
        else:
            kwargs["update_fields"] = [
                name for name in kwargs["update_fields"] if name not in guarded
            ]
        return super().save(*args, **kwargs)


class LineItemBase(TimeStampedModel):
    """quantity x price = line_total, shared by every kind of document line."""

    # name of the price column, also read from Product for defaults
    price_field = "unit_price"

    product = models.ForeignKey(
        "finance_core.Product",
        null=True,
        blank=True,
        # Prevent deleting a product which has been sold or ordered
        on_delete=models.PROTECT,
        related_name="+",
    )
    description = models.TextField(blank=True, default="")
    quantity = models.DecimalField(
        max_digits=14, decimal_places=4, default=Decimal("1")
    )
    line_total = money_field(default=ZERO, editable=False)

    class Meta:
        abstract = True

    def clean(self):
        price = getattr(self, self.price_field)
        if self.quantity is not None and self.quantity <= 0:
            raise ValidationError({"quantity": "Quantity must be greater than 0."})
        if price is not None and price < 0:
            raise ValidationError({self.price_field: "Price must be >= 0."})

    def compute_line_total(self):
        price = getattr(self, self.price_field) or ZERO
        return to_money((self.quantity or ZERO) * price)

    def save(self, *args, **kwargs):
        # default price and description from the product when omitted
        if getattr(self, self.price_field) is None:
            if self.product_id is None:
                raise ValidationError(
                    {self.price_field: "A price is required when no product is given."}
                )
            setattr(self, self.price_field, getattr(self.product, self.price_field) or ZERO)
        if not self.description and self.product_id is not None:
            self.description = self.product.name

        # line_total is always derived, regardless of input
        self.line_total = self.compute_line_total()
        self.full_clean()
        return super().save(*args, **kwargs)
