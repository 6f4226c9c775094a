import logging

from django.core.exceptions import ValidationError
from django.db.models.signals import post_delete, post_save, pre_delete, pre_save
from django.dispatch import receiver

from .models import (
    Contact,
    Credit,
    CustomerPayment,
    EstimateLineItem,
    Invoice,
    InvoiceLineItem,
    PurchaseOrder,
    PurchaseOrderLine,
    PurchaseOrderPayment,
)
from .serializers import to_row
from .services import dispatcher
from .services.events import DELETE, INSERT, UPDATE, ChangeEvent

logger = logging.getLogger(__name__)

# Every table whose writes can move a derived balance
TRACKED_MODELS = (
    InvoiceLineItem,
    EstimateLineItem,
    PurchaseOrderLine,
    CustomerPayment,
    PurchaseOrderPayment,
    Credit,
    Invoice,
    PurchaseOrder,
    Contact,
)


""" Block invoice deletion if any approved payments are applied."""


# pre_delete signal auto-fires just before Django deletes a model instance
@receiver(pre_delete, sender=Invoice)
def prevent_delete_invoice_with_payments(sender, instance, **kwargs):
    if CustomerPayment.objects.filter(invoice=instance).approved().exists():
        raise ValidationError("Cannot delete invoice with approved payments.")


"""
    Change capture: every committed write to a tracked table becomes a
    ChangeEvent that the dispatcher routes to the recomputes it affects.
"""


def remember_previous_row(sender, instance, raw=False, **kwargs):
    # before image for UPDATE events, read from the database
    instance._previous_row = None
    if raw or instance._state.adding or instance.pk is None:
        return
    previous = sender._default_manager.filter(pk=instance.pk).first()
    if previous is not None:
        instance._previous_row = to_row(previous)


def row_saved(sender, instance, created, raw=False, **kwargs):
    # fixtures load rows as-is
    if raw:
        return
    op = INSERT if created else UPDATE
    event = ChangeEvent.for_instance(
        instance, op, old_row=getattr(instance, "_previous_row", None)
    )
    dispatcher.dispatch(event)


def row_deleted(sender, instance, **kwargs):
    dispatcher.dispatch(ChangeEvent.for_instance(instance, DELETE))


for model in TRACKED_MODELS:
    label = model._meta.db_table
    pre_save.connect(remember_previous_row, sender=model, dispatch_uid=f"{label}_pre_save")
    post_save.connect(row_saved, sender=model, dispatch_uid=f"{label}_post_save")
    post_delete.connect(row_deleted, sender=model, dispatch_uid=f"{label}_post_delete")
