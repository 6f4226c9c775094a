import functools
import logging

from django.db import transaction
from django.db.models import Count, F, Sum, Value
from django.db.models.functions import Coalesce
from django.utils import timezone

from ..exceptions import ConcurrencyConflict
from ..models import (
    Contact,
    Credit,
    CustomerPayment,
    Estimate,
    EstimateLineItem,
    Invoice,
    InvoiceLineItem,
    PurchaseOrder,
    PurchaseOrderLine,
    PurchaseOrderPayment,
)
from ..utils import ZERO, to_money
from .events import UPDATE, ChangeEvent

logger = logging.getLogger(__name__)

MONEY_ZERO = Value(ZERO)


def derive_payment_status(total_amount, total_paid, total_credits, balance, due_date, today=None):
    """
    paid     balance settled on a non-empty document
    partial  something received, but less than the total
    overdue  still owing after the due date
    pending  anything else
    """
    today = today or timezone.localdate()
    settled = total_paid + total_credits
    if balance <= 0 and total_amount > 0:
        return "paid"
    if 0 < settled < total_amount:
        return "partial"
    if balance > 0 and due_date is not None and due_date < today:
        return "overdue"
    return "pending"


def _sum(queryset, field_name):
    return queryset.aggregate(total=Coalesce(Sum(field_name), MONEY_ZERO))["total"]


def retry_on_conflict(func):
    """Run a recompute again once when its versioned write lost a race."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except ConcurrencyConflict:
            logger.warning("%s hit a concurrent write, retrying once", func.__name__)
            return func(*args, **kwargs)

    return wrapper


def _write_aggregate(instance, values):
    """
    Store the recomputed values of a locked aggregate row.

    Returns None when every value already matches what is stored, else the
    UPDATE change event describing the write. The update only matches the
    row_version that was read, so a concurrent writer makes it hit zero rows.
    """
    from ..serializers import to_row

    changed = {
        name: value for name, value in values.items() if getattr(instance, name) != value
    }
    model = type(instance)
    if not changed:
        logger.debug("%s %s unchanged", model.__name__, instance.pk)
        return None

    old_row = to_row(instance)
    read_version = instance.row_version
    updated = model._default_manager.filter(
        pk=instance.pk, row_version=read_version
    ).update(row_version=F("row_version") + 1, **values)
    if updated != 1:
        raise ConcurrencyConflict(
            f"{model.__name__} {instance.pk} changed during recompute"
        )

    for name, value in values.items():
        setattr(instance, name, value)
    instance.row_version = read_version + 1
    logger.info(
        "%s %s recomputed: %s",
        model.__name__,
        instance.pk,
        ", ".join(f"{name}={value}" for name, value in changed.items()),
    )
    return ChangeEvent.for_instance(instance, UPDATE, old_row=old_row)


@retry_on_conflict
def recompute_invoice(invoice_id):
    with transaction.atomic():
        invoice = Invoice.objects.select_for_update().get(pk=invoice_id)

        total_amount = to_money(
            _sum(InvoiceLineItem.objects.filter(invoice_id=invoice_id), "line_total")
        )
        total_paid = to_money(
            _sum(CustomerPayment.objects.filter(invoice_id=invoice_id).approved(), "amount")
        )
        total_credits = to_money(
            _sum(Credit.objects.filter(invoice_id=invoice_id), "amount")
        )
        # overpayment stays negative
        balance = to_money(total_amount - total_paid - total_credits)

        return _write_aggregate(
            invoice,
            {
                "total_amount": total_amount,
                "total_paid": total_paid,
                "total_credits": total_credits,
                "balance": balance,
                "payment_status": derive_payment_status(
                    total_amount, total_paid, total_credits, balance, invoice.due_date
                ),
            },
        )


@retry_on_conflict
def recompute_estimate(estimate_id):
    with transaction.atomic():
        estimate = Estimate.objects.select_for_update().get(pk=estimate_id)

        total_amount = to_money(
            _sum(EstimateLineItem.objects.filter(estimate_id=estimate_id), "line_total")
        )
        total_credits = to_money(
            _sum(Credit.objects.filter(estimate_id=estimate_id), "amount")
        )

        return _write_aggregate(
            estimate,
            {
                "total_amount": total_amount,
                "total_credits": total_credits,
                "balance": to_money(total_amount - total_credits),
            },
        )


@retry_on_conflict
def recompute_purchase_order(po_id):
    with transaction.atomic():
        po = PurchaseOrder.objects.select_for_update().get(pk=po_id)

        lines = PurchaseOrderLine.objects.filter(purchase_order_id=po_id).aggregate(
            total=Coalesce(Sum("line_total"), MONEY_ZERO),
            count=Count("id"),
        )
        total_amount = to_money(lines["total"])
        total_paid = to_money(
            _sum(
                PurchaseOrderPayment.objects.filter(purchase_order_id=po_id).approved(),
                "amount",
            )
        )
        balance = to_money(total_amount - total_paid)

        return _write_aggregate(
            po,
            {
                "total_amount": total_amount,
                "total_paid": total_paid,
                "balance": balance,
                # the expected delivery date doubles as the due date
                "payment_status": derive_payment_status(
                    total_amount, total_paid, ZERO, balance, po.expected_date
                ),
                "product_count": lines["count"],
            },
        )


@retry_on_conflict
def recompute_contact_balance(contact_id):
    with transaction.atomic():
        contact = Contact.objects.select_for_update().get(pk=contact_id)

        customer_balance = to_money(
            _sum(Invoice.objects.filter(contact_id=contact_id), "balance")
        )
        vendor_balance = to_money(
            _sum(PurchaseOrder.objects.filter(contact_id=contact_id), "balance")
        )
        return _write_aggregate(
            contact,
            {
                "customer_balance": customer_balance,
                "vendor_balance": vendor_balance,
                "net_balance": to_money(customer_balance - vendor_balance),
            },
        )


@retry_on_conflict
def recompute_net_balance(contact_id):
    """
    Re-derive net_balance from the stored customer and vendor balances.
    recompute_contact_balance already writes it; this covers balances
    changed some other way (a webhook replay, a manual fix).
    """
    with transaction.atomic():
        contact = Contact.objects.select_for_update().get(pk=contact_id)
        return _write_aggregate(
            contact,
            {"net_balance": to_money(contact.customer_balance - contact.vendor_balance)},
        )
