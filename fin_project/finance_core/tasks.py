import logging

from celery import shared_task
from django.utils import timezone

logger = logging.getLogger(__name__)


@shared_task  # register this function as a Celery task
def recompute_all_balances():
    """
    Walk every document and then every contact through the recalculator.
    Repairs totals that drifted (bulk imports, raw SQL); returns how many
    aggregates were rewritten.
    """
    # import lazily to avoid circular imports at module import time
    from .models import Contact, Estimate, Invoice, PurchaseOrder
    from .services import recalculator

    changed = 0
    passes = (
        (Invoice, recalculator.recompute_invoice),
        (Estimate, recalculator.recompute_estimate),
        (PurchaseOrder, recalculator.recompute_purchase_order),
        # contacts last, so they sum the repaired document balances
        (Contact, recalculator.recompute_contact_balance),
        (Contact, recalculator.recompute_net_balance),
    )
    for model, recompute in passes:
        for pk in model.objects.order_by("pk").values_list("pk", flat=True).iterator():
            if recompute(pk) is not None:
                changed += 1

    logger.info("Balance repair rewrote %s aggregates", changed)
    return changed


@shared_task
def refresh_overdue():
    """
    Move documents whose due date has passed to "overdue".

    Status is derived when a document's children change; a due date
    passing is not a write, so this runs on a schedule (see
    CELERY_BEAT_SCHEDULE). Partial and settled documents keep their status.
    """
    from .models import Invoice, PurchaseOrder
    from .services import recalculator

    today = timezone.localdate()
    candidates = (
        (Invoice.objects.filter(due_date__lt=today), recalculator.recompute_invoice),
        (
            PurchaseOrder.objects.filter(expected_date__lt=today),
            recalculator.recompute_purchase_order,
        ),
    )
    changed = 0
    for queryset, recompute in candidates:
        stale = queryset.filter(balance__gt=0).exclude(payment_status__in=("overdue", "partial"))
        # collect first: each recompute takes the row out of the filter
        for pk in list(stale.values_list("pk", flat=True)):
            if recompute(pk) is not None:
                changed += 1

    logger.info("Overdue refresh updated %s documents", changed)
    return changed
