import datetime
from decimal import Decimal

from django.utils import timezone

from ..models import (
    Contact,
    Credit,
    CustomerPayment,
    Estimate,
    EstimateLineItem,
    Invoice,
    InvoiceLineItem,
    Product,
    PurchaseOrder,
    PurchaseOrderLine,
    PurchaseOrderPayment,
)


def make_customer(name="Acme Stores", **kwargs):
    kwargs.setdefault("is_customer", True)
    return Contact.objects.create(name=name, **kwargs)


def make_vendor(name="Parts Supply", **kwargs):
    kwargs.setdefault("is_vendor", True)
    return Contact.objects.create(name=name, **kwargs)


def make_product(sku="SKU-1", unit_price="10.00", unit_cost="6.00", **kwargs):
    return Product.objects.create(
        sku=sku,
        name=kwargs.pop("name", f"Product {sku}"),
        unit_price=Decimal(unit_price),
        unit_cost=Decimal(unit_cost) if unit_cost is not None else None,
        **kwargs,
    )


def make_invoice(contact, lines=(), **kwargs):
    """`lines` is a list of (quantity, unit_price) tuples."""
    invoice = Invoice.objects.create(contact=contact, **kwargs)
    for quantity, price in lines:
        InvoiceLineItem.objects.create(
            invoice=invoice,
            description="Service",
            quantity=Decimal(str(quantity)),
            unit_price=Decimal(str(price)),
        )
    invoice.refresh_from_db()
    return invoice


def make_estimate(contact, lines=(), **kwargs):
    estimate = Estimate.objects.create(contact=contact, **kwargs)
    for quantity, price in lines:
        EstimateLineItem.objects.create(
            estimate=estimate,
            description="Quoted work",
            quantity=Decimal(str(quantity)),
            unit_price=Decimal(str(price)),
        )
    estimate.refresh_from_db()
    return estimate


def make_purchase_order(contact, lines=(), **kwargs):
    po = PurchaseOrder.objects.create(contact=contact, **kwargs)
    for quantity, cost in lines:
        PurchaseOrderLine.objects.create(
            purchase_order=po,
            description="Stock",
            quantity=Decimal(str(quantity)),
            unit_cost=Decimal(str(cost)),
        )
    po.refresh_from_db()
    return po


def pay_invoice(invoice, amount, status="approved"):
    return CustomerPayment.objects.create(
        invoice=invoice, amount=Decimal(str(amount)), status=status
    )


def pay_purchase_order(po, amount, status="approved"):
    return PurchaseOrderPayment.objects.create(
        purchase_order=po, amount=Decimal(str(amount)), status=status
    )


def credit(amount, invoice=None, estimate=None, contact=None):
    return Credit.objects.create(
        invoice=invoice, estimate=estimate, contact=contact, amount=Decimal(str(amount))
    )


def yesterday():
    return timezone.localdate() - datetime.timedelta(days=1)
