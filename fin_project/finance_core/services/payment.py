from django.core.exceptions import ValidationError
from django.db import transaction

from ..models import CustomerPayment
from .audit_helper import log_action


# ----------------------------
# Payment approval workflows
# ----------------------------
def approve_customer_payment(payment_id: int, user=None) -> CustomerPayment:
    """
    Approve a recorded customer payment so it counts towards the invoice.
    Approving twice is a no-op; a rejected payment stays rejected.
    """
    # Everything inside either succeeds
    # as one unit or rolls back if something fails
    with transaction.atomic():
        # Lock the payment row until the transaction finishes
        payment = CustomerPayment.objects.select_for_update().get(pk=payment_id)

        if payment.status == "approved":
            return payment
        if payment.status == "rejected":
            raise ValidationError("A rejected payment cannot be approved.")

        previous = payment.status
        payment.status = "approved"
        # post_save recomputes the invoice and the contact behind it
        payment.save(update_fields=["status", "updated_at"])

        log_action(
            action="approve",
            instance=payment,
            user=user,
            changes={
                "invoice_id": payment.invoice_id,
                "amount": str(payment.amount),
                "status": [previous, payment.status],
            },
        )

    return payment


def reject_customer_payment(payment_id: int, user=None) -> CustomerPayment:
    """Reject a payment; an approved one drops out of the invoice's total_paid."""
    with transaction.atomic():
        payment = CustomerPayment.objects.select_for_update().get(pk=payment_id)

        if payment.status == "rejected":
            return payment

        previous = payment.status
        payment.status = "rejected"
        payment.save(update_fields=["status", "updated_at"])

        log_action(
            action="reject",
            instance=payment,
            user=user,
            changes={
                "invoice_id": payment.invoice_id,
                "amount": str(payment.amount),
                "status": [previous, payment.status],
            },
        )

    return payment
