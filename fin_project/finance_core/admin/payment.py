from django.contrib import admin

from finance_core.models import Credit, CustomerPayment, Expense, PurchaseOrderPayment

from .actions import approve_payments, reject_payments


@admin.register(CustomerPayment)
class CustomerPaymentAdmin(admin.ModelAdmin):
    list_display = ("id", "invoice", "contact", "payment_date", "amount", "status")
    list_filter = ("status", "payment_method")
    search_fields = ("invoice__invoice_uid", "contact__name")
    actions = [approve_payments, reject_payments]
    readonly_fields = ("status",)

    # Fetch everything in one SQL join
    def get_queryset(self, request):
        return super().get_queryset(request).select_related("invoice", "contact")


@admin.register(PurchaseOrderPayment)
class PurchaseOrderPaymentAdmin(admin.ModelAdmin):
    list_display = ("id", "purchase_order", "contact", "payment_date", "amount", "status")
    list_filter = ("status", "payment_method")
    search_fields = ("purchase_order__po_uid", "contact__name")

    def get_queryset(self, request):
        return super().get_queryset(request).select_related("purchase_order", "contact")


@admin.register(Credit)
class CreditAdmin(admin.ModelAdmin):
    list_display = ("id", "contact", "invoice", "estimate", "issue_date", "amount")
    search_fields = ("contact__name",)


@admin.register(Expense)
class ExpenseAdmin(admin.ModelAdmin):
    list_display = ("id", "date", "description", "category", "amount", "user")
    list_filter = ("category",)
    search_fields = ("description", "notes")
    date_hierarchy = "date"

    def save_model(self, request, obj, form, change):
        if obj.user_id is None:
            obj.user = request.user
        super().save_model(request, obj, form, change)
