from django.db.models import DecimalField, ExpressionWrapper, F, Sum, Value
from django.db.models.functions import Coalesce

from ..models import Contact, CustomerPayment, Invoice, Product, PurchaseOrder
from ..utils import ZERO, to_money

RECENT_INVOICES = 5


def _total(queryset, expression):
    return to_money(
        queryset.aggregate(
            total=Coalesce(Sum(expression), Value(ZERO), output_field=DecimalField())
        )["total"]
    )


def dashboard_summary():
    """KPIs for the back-office dashboard, all read from stored totals."""
    stock_value = ExpressionWrapper(
        F("stock_quantity") * F("unit_cost"),
        output_field=DecimalField(max_digits=18, decimal_places=2),
    )
    outstanding_invoices = Invoice.objects.outstanding()

    return {
        "total_revenue": _total(CustomerPayment.objects.approved(), "amount"),
        "accounts_receivable": _total(outstanding_invoices, "balance"),
        "accounts_payable": _total(PurchaseOrder.objects.outstanding(), "balance"),
        "inventory_value": _total(Product.objects.filter(unit_cost__isnull=False), stock_value),
        "open_invoices": outstanding_invoices.count(),
        "overdue_invoices": Invoice.objects.filter(payment_status="overdue").count(),
        "customers": Contact.objects.customers().count(),
        "vendors": Contact.objects.vendors().count(),
        "recent_invoices": list(
            Invoice.objects.select_related("contact").order_by("-created_at", "-id")[:RECENT_INVOICES]
        ),
        "low_stock_products": list(
            Product.objects.filter(stock_quantity__lte=F("reorder_level")).order_by("stock_quantity", "name")
        ),
    }
