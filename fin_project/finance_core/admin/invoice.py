from django.contrib import admin

from finance_core.models import Estimate, Invoice, PurchaseOrder

from .actions import convert_estimates
from .inlines import (
    CustomerPaymentInline,
    EstimateLineItemInline,
    InvoiceLineItemInline,
    PurchaseOrderLineInline,
    PurchaseOrderPaymentInline,
)


class DocumentAdmin(admin.ModelAdmin):
    list_filter = ("issue_date",)
    search_fields = ("contact__name",)
    autocomplete_fields = ("contact",)

    # derived totals are shown, never edited
    def get_readonly_fields(self, request, obj=None):
        return tuple(self.model.derived_fields) + ("row_version",)

    # Use a SQL join so it fetches the contact in the same query
    def get_queryset(self, request):
        return super().get_queryset(request).select_related("contact")


# Register `Invoice` model
@admin.register(Invoice)
class InvoiceAdmin(DocumentAdmin):
    list_display = (
        "invoice_uid",
        "contact",
        "issue_date",
        "due_date",
        "total_amount",
        "balance",
        "payment_status",
    )
    list_filter = ("payment_status", "issue_date")
    search_fields = ("invoice_uid", "contact__name")
    inlines = [InvoiceLineItemInline, CustomerPaymentInline]


@admin.register(Estimate)
class EstimateAdmin(DocumentAdmin):
    list_display = (
        "estimate_uid",
        "contact",
        "issue_date",
        "status",
        "total_amount",
        "converted_to_invoice",
    )
    list_filter = ("status", "converted_to_invoice")
    search_fields = ("estimate_uid", "contact__name")
    actions = [convert_estimates]
    inlines = [EstimateLineItemInline]

    def get_readonly_fields(self, request, obj=None):
        return super().get_readonly_fields(request, obj) + ("converted_to_invoice", "invoice")


@admin.register(PurchaseOrder)
class PurchaseOrderAdmin(DocumentAdmin):
    list_display = (
        "po_uid",
        "contact",
        "issue_date",
        "expected_date",
        "total_amount",
        "balance",
        "payment_status",
    )
    list_filter = ("payment_status", "issue_date")
    search_fields = ("po_uid", "contact__name")
    inlines = [PurchaseOrderLineInline, PurchaseOrderPaymentInline]
