import logging
from datetime import timedelta

from django.db import transaction
from django.utils import timezone

from ..conf import app_setting
from ..exceptions import AlreadyConverted
from ..models import Estimate, Invoice, InvoiceLineItem
from .audit_helper import log_action
from .recalculator import recompute_invoice

logger = logging.getLogger(__name__)


def _copy_line_item(invoice, line):
    return InvoiceLineItem.objects.create(
        invoice=invoice,
        product_id=line.product_id,
        description=line.description,
        quantity=line.quantity,
        unit_price=line.unit_price,
    )


def convert_estimate_to_invoice(estimate_id: int, user=None) -> Invoice:
    """
    Turn an estimate into a new invoice carrying the same lines.

    All or nothing: the invoice, its lines, its totals and the estimate's
    converted marker commit together. A second conversion of the same
    estimate raises AlreadyConverted.
    """
    with transaction.atomic():
        # Lock the estimate so two concurrent conversions serialize here
        estimate = Estimate.objects.select_for_update().get(pk=estimate_id)
        if estimate.converted_to_invoice:
            raise AlreadyConverted(
                f"Estimate {estimate.estimate_uid} was already converted to invoice {estimate.invoice_id}"
            )

        today = timezone.localdate()
        invoice = Invoice.objects.create(
            contact_id=estimate.contact_id,
            estimate=estimate,
            issue_date=today,
            due_date=today + timedelta(days=app_setting("INVOICE_DUE_DAYS")),
            notes=estimate.notes,
        )

        lines = list(estimate.line_items.all())
        for line in lines:
            _copy_line_item(invoice, line)

        # settle the totals even when the estimate had no lines
        recompute_invoice(invoice.pk)

        estimate.converted_to_invoice = True
        estimate.invoice = invoice
        estimate.save(update_fields=["converted_to_invoice", "invoice", "updated_at"])

        log_action(
            action="convert",
            instance=estimate,
            user=user,
            changes={
                "invoice_id": invoice.pk,
                "invoice_uid": invoice.invoice_uid,
                "line_count": len(lines),
            },
        )

    invoice.refresh_from_db()
    logger.info(
        "Estimate %s converted to invoice %s (%s)",
        estimate.estimate_uid,
        invoice.invoice_uid,
        invoice.total_amount,
    )
    return invoice
