import decimal

import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


def money(**kwargs):
    return models.DecimalField(max_digits=18, decimal_places=2, **kwargs)


def timestamps():
    return [
        ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
        ("created_at", models.DateTimeField(auto_now_add=True)),
        ("updated_at", models.DateTimeField(auto_now=True)),
    ]


def line_item_fields():
    return timestamps() + [
        ("description", models.TextField(blank=True, default="")),
        ("quantity", models.DecimalField(decimal_places=4, default=decimal.Decimal("1"), max_digits=14)),
        ("line_total", money(default=decimal.Decimal("0.00"), editable=False)),
        ("product", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="+", to="finance_core.product")),
    ]


PAYMENT_STATUS = [("pending", "Pending"), ("partial", "Partial"), ("paid", "Paid"), ("overdue", "Overdue")]
APPROVAL_STATUS = [("pending", "Pending"), ("approved", "Approved"), ("rejected", "Rejected")]
PAYMENT_METHODS = [
    ("cash", "Cash"),
    ("bank_transfer", "Bank transfer"),
    ("card", "Card"),
    ("cheque", "Cheque"),
    ("other", "Other"),
]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Contact",
            fields=timestamps() + [
                ("row_version", models.PositiveIntegerField(default=0, editable=False)),
                ("contact_uid", models.CharField(editable=False, max_length=16, unique=True)),
                ("name", models.CharField(max_length=200)),
                ("email", models.EmailField(blank=True, max_length=254, null=True)),
                ("phone", models.CharField(blank=True, default="", max_length=50)),
                ("address", models.TextField(blank=True, default="")),
                ("notes", models.TextField(blank=True, default="")),
                ("is_customer", models.BooleanField(default=False)),
                ("is_vendor", models.BooleanField(default=False)),
                ("customer_balance", money(default=decimal.Decimal("0.00"), editable=False)),
                ("vendor_balance", money(default=decimal.Decimal("0.00"), editable=False)),
                ("net_balance", money(default=decimal.Decimal("0.00"), editable=False)),
            ],
            options={
                "db_table": "contacts",
                "ordering": ["name", "id"],
                "indexes": [models.Index(fields=["email"], name="contacts_email_idx")],
            },
        ),
        migrations.CreateModel(
            name="Product",
            fields=timestamps() + [
                ("sku", models.CharField(max_length=80, unique=True)),
                ("name", models.CharField(max_length=200)),
                ("description", models.TextField(blank=True, default="")),
                ("unit_price", money()),
                ("unit_cost", money(blank=True, null=True)),
                ("stock_quantity", models.IntegerField(default=0)),
                ("reorder_level", models.IntegerField(default=5)),
                ("vendor", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="supplied_products", to="finance_core.contact")),
            ],
            options={
                "db_table": "products",
                "ordering": ["name", "id"],
            },
        ),
        migrations.CreateModel(
            name="Invoice",
            fields=timestamps() + [
                ("row_version", models.PositiveIntegerField(default=0, editable=False)),
                ("invoice_uid", models.CharField(editable=False, max_length=16, unique=True)),
                ("issue_date", models.DateField(default=django.utils.timezone.localdate)),
                ("due_date", models.DateField(blank=True, null=True)),
                ("notes", models.TextField(blank=True, default="")),
                ("total_amount", money(default=decimal.Decimal("0.00"), editable=False)),
                ("total_paid", money(default=decimal.Decimal("0.00"), editable=False)),
                ("total_credits", money(default=decimal.Decimal("0.00"), editable=False)),
                ("balance", money(default=decimal.Decimal("0.00"), editable=False)),
                ("payment_status", models.CharField(choices=PAYMENT_STATUS, default="pending", editable=False, max_length=10)),
                ("contact", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="invoices", to="finance_core.contact")),
            ],
            options={
                "db_table": "invoices",
                "ordering": ["-issue_date", "-id"],
                "indexes": [models.Index(fields=["contact", "payment_status"], name="invoices_contact_status_idx")],
            },
        ),
        migrations.CreateModel(
            name="Estimate",
            fields=timestamps() + [
                ("row_version", models.PositiveIntegerField(default=0, editable=False)),
                ("estimate_uid", models.CharField(editable=False, max_length=16, unique=True)),
                ("issue_date", models.DateField(default=django.utils.timezone.localdate)),
                ("expiry_date", models.DateField(blank=True, null=True)),
                ("status", models.CharField(choices=[("draft", "Draft"), ("sent", "Sent"), ("accepted", "Accepted"), ("rejected", "Rejected"), ("expired", "Expired")], default="draft", max_length=10)),
                ("notes", models.TextField(blank=True, default="")),
                ("total_amount", money(default=decimal.Decimal("0.00"), editable=False)),
                ("total_credits", money(default=decimal.Decimal("0.00"), editable=False)),
                ("balance", money(default=decimal.Decimal("0.00"), editable=False)),
                ("converted_to_invoice", models.BooleanField(default=False, editable=False)),
                ("contact", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="estimates", to="finance_core.contact")),
                ("invoice", models.ForeignKey(blank=True, editable=False, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="source_estimates", to="finance_core.invoice")),
            ],
            options={
                "db_table": "estimates",
                "ordering": ["-issue_date", "-id"],
            },
        ),
        migrations.AddField(
            model_name="invoice",
            name="estimate",
            field=models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="invoices", to="finance_core.estimate"),
        ),
        migrations.CreateModel(
            name="EstimateLineItem",
            fields=line_item_fields() + [
                ("unit_price", money(blank=True)),
                ("estimate", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="line_items", to="finance_core.estimate")),
            ],
            options={
                "db_table": "estimate_line_items",
                "ordering": ["id"],
            },
        ),
        migrations.CreateModel(
            name="InvoiceLineItem",
            fields=line_item_fields() + [
                ("unit_price", money(blank=True)),
                ("invoice", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="line_items", to="finance_core.invoice")),
            ],
            options={
                "db_table": "invoice_line_items",
                "ordering": ["id"],
            },
        ),
        migrations.CreateModel(
            name="PurchaseOrder",
            fields=timestamps() + [
                ("row_version", models.PositiveIntegerField(default=0, editable=False)),
                ("po_uid", models.CharField(editable=False, max_length=16, unique=True)),
                ("issue_date", models.DateField(default=django.utils.timezone.localdate)),
                ("expected_date", models.DateField(blank=True, null=True)),
                ("notes", models.TextField(blank=True, default="")),
                ("total_amount", money(default=decimal.Decimal("0.00"), editable=False)),
                ("total_paid", money(default=decimal.Decimal("0.00"), editable=False)),
                ("balance", money(default=decimal.Decimal("0.00"), editable=False)),
                ("payment_status", models.CharField(choices=PAYMENT_STATUS, default="pending", editable=False, max_length=10)),
                ("product_count", models.PositiveIntegerField(default=0, editable=False)),
                ("contact", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="purchase_orders", to="finance_core.contact")),
            ],
            options={
                "db_table": "purchase_orders",
                "ordering": ["-issue_date", "-id"],
                "indexes": [models.Index(fields=["contact", "payment_status"], name="po_contact_status_idx")],
            },
        ),
        migrations.CreateModel(
            name="PurchaseOrderLine",
            fields=line_item_fields() + [
                ("unit_cost", money(blank=True)),
                ("purchase_order", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="lines", to="finance_core.purchaseorder")),
            ],
            options={
                "db_table": "purchase_order_lines",
                "ordering": ["id"],
            },
        ),
        migrations.CreateModel(
            name="CustomerPayment",
            fields=timestamps() + [
                ("amount", money()),
                ("payment_date", models.DateField(default=django.utils.timezone.localdate)),
                ("payment_method", models.CharField(choices=PAYMENT_METHODS, default="bank_transfer", max_length=20)),
                ("notes", models.TextField(blank=True, default="")),
                ("status", models.CharField(choices=APPROVAL_STATUS, default="pending", max_length=10)),
                ("contact", models.ForeignKey(blank=True, on_delete=django.db.models.deletion.PROTECT, related_name="customer_payments", to="finance_core.contact")),
                ("invoice", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="payments", to="finance_core.invoice")),
            ],
            options={
                "db_table": "customer_payments",
                "ordering": ["-payment_date", "-id"],
                "indexes": [models.Index(fields=["invoice", "status"], name="cust_pay_invoice_status_idx")],
            },
        ),
        migrations.CreateModel(
            name="PurchaseOrderPayment",
            fields=timestamps() + [
                ("amount", money()),
                ("payment_date", models.DateField(default=django.utils.timezone.localdate)),
                ("payment_method", models.CharField(choices=PAYMENT_METHODS, default="bank_transfer", max_length=20)),
                ("notes", models.TextField(blank=True, default="")),
                ("status", models.CharField(choices=APPROVAL_STATUS, default="approved", max_length=10)),
                ("contact", models.ForeignKey(blank=True, on_delete=django.db.models.deletion.PROTECT, related_name="vendor_payments", to="finance_core.contact")),
                ("purchase_order", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="payments", to="finance_core.purchaseorder")),
            ],
            options={
                "db_table": "vendor_payments",
                "ordering": ["-payment_date", "-id"],
                "indexes": [models.Index(fields=["purchase_order", "status"], name="vend_pay_po_status_idx")],
            },
        ),
        migrations.CreateModel(
            name="Credit",
            fields=timestamps() + [
                ("amount", money()),
                ("issue_date", models.DateField(default=django.utils.timezone.localdate)),
                ("notes", models.TextField(blank=True, default="")),
                ("contact", models.ForeignKey(blank=True, on_delete=django.db.models.deletion.PROTECT, related_name="credits", to="finance_core.contact")),
                ("estimate", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="credits", to="finance_core.estimate")),
                ("invoice", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="credits", to="finance_core.invoice")),
            ],
            options={
                "db_table": "customer_credits",
                "ordering": ["-issue_date", "-id"],
            },
        ),
        migrations.CreateModel(
            name="PortalAccess",
            fields=timestamps() + [
                ("pin", models.CharField(max_length=128)),
                ("is_active", models.BooleanField(default=True)),
                ("last_login_at", models.DateTimeField(blank=True, null=True)),
                ("contact", models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name="portal_access", to="finance_core.contact")),
            ],
            options={
                "db_table": "portal_access",
            },
        ),
        migrations.CreateModel(
            name="PortalSession",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("token", models.CharField(max_length=64, unique=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("expires_at", models.DateTimeField()),
                ("contact", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="portal_sessions", to="finance_core.contact")),
            ],
            options={
                "db_table": "portal_sessions",
                "indexes": [models.Index(fields=["expires_at"], name="portal_sess_expires_idx")],
            },
        ),
        migrations.CreateModel(
            name="AuditLog",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("action", models.CharField(max_length=50)),
                ("object_type", models.CharField(max_length=100)),
                ("object_id", models.CharField(max_length=100)),
                ("changes", models.JSONField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("user", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "db_table": "audit_log",
                "ordering": ["-created_at", "-id"],
                "indexes": [
                    models.Index(fields=["object_type", "object_id"], name="audit_log_object_idx"),
                    models.Index(fields=["created_at"], name="audit_log_created_idx"),
                ],
            },
        ),
    ]
