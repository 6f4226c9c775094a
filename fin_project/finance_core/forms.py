from decimal import Decimal

from django import forms
from django.contrib.auth import get_user_model
from django.contrib.auth.password_validation import validate_password
from django.core.exceptions import NON_FIELD_ERRORS, ValidationError

from .models import (
    Contact,
    Credit,
    CustomerPayment,
    Estimate,
    EstimateLineItem,
    Expense,
    Invoice,
    InvoiceLineItem,
    Product,
    PurchaseOrder,
    PurchaseOrderLine,
    PurchaseOrderPayment,
)
from .utils import camelize, decamelize

# legacy API names -> model field names
FIELD_ALIASES = {"account": "contact"}


def normalize_input(payload):
    """
    Map a camelCase JSON body onto model field names:
    {"accountId": 3, "unitPrice": "9.50"} -> {"contact": 3, "unit_price": "9.50"}
    """
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object.")
    data = {}
    for key, value in payload.items():
        name = decamelize(key)
        if name.endswith("_id"):
            name = name[: -len("_id")]
        data[FIELD_ALIASES.get(name, name)] = value
    return data


def form_errors(form):
    # camelCase field names, the way the client sent them
    return ValidationError(
        {
            (name if name == NON_FIELD_ERRORS else camelize(name)): errors
            for name, errors in form.errors.as_data().items()
        }
    )


class ApiModelForm(forms.ModelForm):
    """ModelForm fed from JSON: fields with a model default may be omitted."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        opts = self._meta.model._meta
        for name, field in self.fields.items():
            if opts.get_field(name).has_default():
                field.required = False


# ---------- Parties / catalogue ----------
class ContactForm(ApiModelForm):
    class Meta:
        model = Contact
        fields = ["name", "email", "phone", "address", "notes", "is_customer", "is_vendor"]


class ProductForm(ApiModelForm):
    class Meta:
        model = Product
        fields = [
            "sku",
            "name",
            "description",
            "unit_price",
            "unit_cost",
            "stock_quantity",
            "reorder_level",
            "vendor",
        ]


# ---------- Documents ----------
class EstimateForm(ApiModelForm):
    class Meta:
        model = Estimate
        fields = ["contact", "issue_date", "expiry_date", "status", "notes"]


class InvoiceForm(ApiModelForm):
    class Meta:
        model = Invoice
        fields = ["contact", "estimate", "issue_date", "due_date", "notes"]


class PurchaseOrderForm(ApiModelForm):
    class Meta:
        model = PurchaseOrder
        fields = ["contact", "issue_date", "expected_date", "notes"]


# ---------- Lines ----------
class LineItemForm(ApiModelForm):
    def clean_quantity(self):
        quantity = self.cleaned_data.get("quantity")
        return Decimal("1") if quantity is None else quantity


class EstimateLineItemForm(LineItemForm):
    class Meta:
        model = EstimateLineItem
        fields = ["estimate", "product", "description", "quantity", "unit_price"]


class InvoiceLineItemForm(LineItemForm):
    class Meta:
        model = InvoiceLineItem
        fields = ["invoice", "product", "description", "quantity", "unit_price"]


class PurchaseOrderLineForm(LineItemForm):
    class Meta:
        model = PurchaseOrderLine
        fields = ["purchase_order", "product", "description", "quantity", "unit_cost"]


# ---------- Money movements ----------
class CustomerPaymentForm(ApiModelForm):
    # status only moves through approve / reject
    class Meta:
        model = CustomerPayment
        fields = ["contact", "invoice", "amount", "payment_date", "payment_method", "notes"]


class PurchaseOrderPaymentForm(ApiModelForm):
    class Meta:
        model = PurchaseOrderPayment
        fields = [
            "contact",
            "purchase_order",
            "amount",
            "payment_date",
            "payment_method",
            "status",
            "notes",
        ]


class CreditForm(ApiModelForm):
    class Meta:
        model = Credit
        fields = ["contact", "invoice", "estimate", "amount", "issue_date", "notes"]


# ---------- Portal ----------
class PortalPinForm(forms.Form):
    pin = forms.RegexField(regex=r"^\d{4,6}$", error_messages={"invalid": "PIN must be 4 to 6 digits."})
    is_active = forms.BooleanField(required=False, initial=True)

    def clean_is_active(self):
        # omitted means active
        if "is_active" not in self.data:
            return True
        return self.cleaned_data["is_active"]


class PortalLoginForm(forms.Form):
    # contact code (ACC-XXXXXX) or email address
    identifier = forms.CharField(max_length=254)
    pin = forms.CharField(max_length=6)

    def __init__(self, data=None, *args, **kwargs):
        if data is not None:
            data = dict(data)
            for alias in ("account_identifier", "contact_uid", "email"):
                if not data.get("identifier") and data.get(alias):
                    data["identifier"] = data[alias]
        super().__init__(data, *args, **kwargs)


# ---------- Expenses ----------
class ExpenseForm(ApiModelForm):
    # the recording user comes from the session, never from the body
    class Meta:
        model = Expense
        fields = ["description", "amount", "date", "category", "notes"]


# ---------- Staff users ----------
class UserRegistrationForm(forms.Form):
    ROLE_CHOICES = [("user", "User"), ("admin", "Admin")]

    # defaults to the email address
    username = forms.CharField(max_length=150, required=False)
    email = forms.EmailField()
    password = forms.CharField(strip=False)
    full_name = forms.CharField(max_length=150, required=False)
    role = forms.ChoiceField(choices=ROLE_CHOICES, required=False)

    def clean_email(self):
        email = self.cleaned_data["email"].lower()
        if get_user_model().objects.filter(email__iexact=email).exists():
            raise ValidationError("Email already in use.")
        return email

    def clean(self):
        cleaned = super().clean()
        username = cleaned.get("username") or cleaned.get("email")
        if username and get_user_model().objects.filter(username=username).exists():
            self.add_error("username", "Username already in use.")
        cleaned["username"] = username

        password = cleaned.get("password")
        if password:
            try:
                validate_password(password)
            except ValidationError as exc:
                self.add_error("password", exc)
        return cleaned

    def save(self, allow_admin=False):
        data = self.cleaned_data
        first_name, _, last_name = (data.get("full_name") or "").partition(" ")
        return get_user_model().objects.create_user(
            username=data["username"],
            email=data["email"],
            password=data["password"],
            first_name=first_name,
            last_name=last_name,
            # only an existing staff member can hand out admin rights
            is_staff=allow_admin and data.get("role") == "admin",
        )
