from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone

from .base import TimeStampedModel, money_field


class Expense(TimeStampedModel):
    """
    A running cost of the business (rent, fuel, subscriptions).
    Stands alone: no document or contact balance depends on it.
    """

    # Who recorded it
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="expenses",
    )
    description = models.TextField()
    amount = money_field()
    date = models.DateField(default=timezone.localdate)
    category = models.CharField(max_length=100, blank=True, default="")
    notes = models.TextField(blank=True, default="")

    class Meta:
        db_table = "expenses"
        ordering = ["-date", "-id"]
        indexes = [
            models.Index(fields=["category", "date"], name="expenses_category_date_idx"),
        ]

    def __str__(self):
        return f"{self.date} {self.description} {self.amount}"

    def clean(self):
        if self.amount is not None and self.amount <= 0:
            raise ValidationError({"amount": "Expense amount must be positive."})

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)
