from django.contrib import admin, messages
from django.core.exceptions import ValidationError

from ..exceptions import AlreadyConverted
from ..services.conversion import convert_estimate_to_invoice
from ..services.payment import approve_customer_payment, reject_customer_payment

# ---------- Admin actions ----------


def _run_each(modeladmin, request, queryset, service, verb):
    # one transaction per row (the services open their own)
    success = 0
    for obj in queryset:
        try:
            service(obj.pk, user=request.user)
            success += 1
        except (ValidationError, AlreadyConverted) as exc:
            modeladmin.message_user(
                request, f"Could not {verb} {obj}: {exc}", level=messages.ERROR
            )
    modeladmin.message_user(
        request, f"{verb.capitalize()}d {success} of {queryset.count()} rows.", level=messages.SUCCESS
    )


@admin.action(description="Approve selected payments")
def approve_payments(modeladmin, request, queryset):
    _run_each(modeladmin, request, queryset, approve_customer_payment, "approve")


@admin.action(description="Reject selected payments")
def reject_payments(modeladmin, request, queryset):
    _run_each(modeladmin, request, queryset, reject_customer_payment, "reject")


@admin.action(description="Convert selected estimates to invoices")
def convert_estimates(modeladmin, request, queryset):
    _run_each(modeladmin, request, queryset, convert_estimate_to_invoice, "convert")
