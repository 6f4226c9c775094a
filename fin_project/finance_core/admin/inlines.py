from django.contrib import admin

from finance_core.models import (
    CustomerPayment,
    EstimateLineItem,
    InvoiceLineItem,
    PurchaseOrderLine,
    PurchaseOrderPayment,
)

# ---------- Line / payment inline admin classes ----------


class LineItemInline(admin.TabularInline):
    extra = 0  # don't show "empty" rows by default (prevents clutter)
    # line_total is always derived from quantity x price
    readonly_fields = ("line_total",)
    autocomplete_fields = ("product",)
    ordering = ("id",)  # lines appear in creation order


class EstimateLineItemInline(LineItemInline):
    model = EstimateLineItem
    fields = ("product", "description", "quantity", "unit_price", "line_total")


class InvoiceLineItemInline(LineItemInline):
    model = InvoiceLineItem
    fields = ("product", "description", "quantity", "unit_price", "line_total")


class PurchaseOrderLineInline(LineItemInline):
    model = PurchaseOrderLine
    fields = ("product", "description", "quantity", "unit_cost", "line_total")


class CustomerPaymentInline(admin.TabularInline):
    model = CustomerPayment
    extra = 0
    fields = ("payment_date", "amount", "payment_method", "status")
    # approval goes through the payment actions
    readonly_fields = ("status",)
    show_change_link = True


class PurchaseOrderPaymentInline(admin.TabularInline):
    model = PurchaseOrderPayment
    extra = 0
    fields = ("payment_date", "amount", "payment_method", "status")
    show_change_link = True
