from django.contrib import admin

from finance_core.models import Contact, PortalAccess, Product


@admin.register(Contact)
class ContactAdmin(admin.ModelAdmin):
    list_display = (
        "contact_uid",
        "name",
        "email",
        "is_customer",
        "is_vendor",
        "customer_balance",
        "vendor_balance",
        "net_balance",
    )
    list_filter = ("is_customer", "is_vendor")
    search_fields = ("contact_uid", "name", "email")
    readonly_fields = ("contact_uid",) + Contact.derived_fields + ("row_version",)


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ("sku", "name", "unit_price", "unit_cost", "stock_quantity", "reorder_level")
    search_fields = ("sku", "name")
    autocomplete_fields = ("vendor",)


@admin.register(PortalAccess)
class PortalAccessAdmin(admin.ModelAdmin):
    list_display = ("contact", "is_active", "last_login_at")
    list_filter = ("is_active",)
    # PINs are set through the API, the hash is never shown
    exclude = ("pin",)
    readonly_fields = ("contact", "last_login_at")

    def has_add_permission(self, request):
        return False
