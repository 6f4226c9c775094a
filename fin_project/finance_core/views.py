import functools
import hmac
import json
import logging

from django.contrib.auth import authenticate, login, logout
from django.core.exceptions import PermissionDenied, ValidationError
from django.forms.models import model_to_dict
from django.http import JsonResponse
from django.shortcuts import get_object_or_404
from django.views import View
from django.views.decorators.csrf import csrf_exempt, ensure_csrf_cookie

from .conf import app_setting
from .forms import (
    ContactForm,
    CreditForm,
    CustomerPaymentForm,
    EstimateForm,
    EstimateLineItemForm,
    ExpenseForm,
    InvoiceForm,
    InvoiceLineItemForm,
    PortalLoginForm,
    PortalPinForm,
    ProductForm,
    PurchaseOrderForm,
    PurchaseOrderLineForm,
    PurchaseOrderPaymentForm,
    UserRegistrationForm,
    form_errors,
    normalize_input,
)
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
from .serializers import (
    serialize_document_with_contact,
    serialize_product,
    to_json_value,
    to_row,
    to_rows,
)
from .services import dispatcher
from .services.conversion import convert_estimate_to_invoice
from .services.dashboard import dashboard_summary
from .services.events import ChangeEvent
from .services.payment import approve_customer_payment, reject_customer_payment
from .services.portal import authenticate_portal, end_portal_session, set_portal_pin
from .utils import ZERO, camelize

logger = logging.getLogger(__name__)

WEBHOOK_SECRET_HEADER = "HTTP_X_WEBHOOK_SECRET"


def parse_json(request):
    if not request.body:
        return {}
    try:
        return json.loads(request.body)
    except (ValueError, UnicodeDecodeError):
        raise ValidationError("Invalid JSON body.")


def unauthorized(message="Authentication required"):
    return JsonResponse({"message": message}, status=401)


def staff_only(view):
    # admin endpoints need a Django session login
    @functools.wraps(view)
    def wrapper(request, *args, **kwargs):
        if not request.user.is_authenticated:
            return unauthorized()
        return view(request, *args, **kwargs)

    return wrapper


def portal_only(view):
    @functools.wraps(view)
    def wrapper(request, *args, **kwargs):
        if getattr(request, "portal_contact", None) is None:
            return unauthorized("Portal login required")
        return view(request, *args, **kwargs)

    return wrapper


# ----------------------------
# Generic resource views
# ----------------------------
class ApiView(View):
    login_required = True

    def dispatch(self, request, *args, **kwargs):
        if self.login_required and not request.user.is_authenticated:
            return unauthorized()
        return super().dispatch(request, *args, **kwargs)

    def http_method_not_allowed(self, request, *args, **kwargs):
        return JsonResponse({"message": "Method not allowed"}, status=405)


class ResourceMixin:
    model = None
    form_class = None
    # query parameter -> queryset filter
    filters = {}
    select_related = ()

    def get_queryset(self):
        return self.model._default_manager.select_related(*self.select_related)

    def serialize(self, obj):
        return to_row(obj)

    def serialize_detail(self, obj):
        return self.serialize(obj)

    def save_form(self, data, instance=None):
        form = self.form_class(data=data, instance=instance)
        if not form.is_valid():
            raise form_errors(form)
        obj = form.save()
        # the recompute chain may have rewritten derived columns
        obj.refresh_from_db()
        return obj


class CollectionView(ResourceMixin, ApiView):
    def get(self, request):
        queryset = self.get_queryset()
        for param, lookup in self.filters.items():
            value = request.GET.get(param)
            if value in (None, ""):
                continue
            if value.lower() in ("true", "false"):
                value = value.lower() == "true"
            queryset = queryset.filter(**{lookup: value})
        return JsonResponse([self.serialize(obj) for obj in queryset], safe=False)

    def post(self, request):
        obj = self.save_form(normalize_input(parse_json(request)))
        return JsonResponse(self.serialize_detail(obj), status=201)


class DetailView(ResourceMixin, ApiView):
    def get_object(self, pk):
        return get_object_or_404(self.get_queryset(), pk=pk)

    def get(self, request, pk):
        return JsonResponse(self.serialize_detail(self.get_object(pk)))

    def put(self, request, pk):
        instance = self.get_object(pk)
        # partial updates: unspecified fields keep their stored values
        data = model_to_dict(instance, fields=self.form_class._meta.fields)
        data.update(normalize_input(parse_json(request)))
        obj = self.save_form(data, instance=instance)
        return JsonResponse(self.serialize_detail(obj))

    patch = put

    def delete(self, request, pk):
        self.get_object(pk).delete()
        return JsonResponse({"success": True})


class ChildListView(ApiView):
    """Rows hanging off one parent, e.g. /invoices/<pk>/payments."""

    parent_model = None
    relation = None
    serializer = staticmethod(to_row)

    def get(self, request, pk):
        parent = get_object_or_404(self.parent_model, pk=pk)
        children = getattr(parent, self.relation).all()
        return JsonResponse([self.serializer(child) for child in children], safe=False)


# ---------- Contacts ----------
class ContactMixin:
    model = Contact
    form_class = ContactForm
    filters = {"isCustomer": "is_customer", "isVendor": "is_vendor"}


class ContactListView(ContactMixin, CollectionView):
    pass


class ContactDetailView(ContactMixin, DetailView):
    pass


# ---------- Products ----------
class ProductMixin:
    model = Product
    form_class = ProductForm
    filters = {"vendorId": "vendor_id"}

    def serialize(self, obj):
        return serialize_product(obj)


class ProductListView(ProductMixin, CollectionView):
    pass


class ProductDetailView(ProductMixin, DetailView):
    pass


# ---------- Estimates ----------
class EstimateMixin:
    model = Estimate
    form_class = EstimateForm
    filters = {"contactId": "contact_id", "status": "status"}
    select_related = ("contact",)

    def serialize(self, obj):
        return serialize_document_with_contact(obj)

    def serialize_detail(self, obj):
        return {
            "estimate": self.serialize(obj),
            "lineItems": to_rows(obj.line_items.all()),
        }


class EstimateListView(EstimateMixin, CollectionView):
    def serialize_detail(self, obj):
        return self.serialize(obj)


class EstimateDetailView(EstimateMixin, DetailView):
    pass


# ---------- Invoices ----------
class InvoiceMixin:
    model = Invoice
    form_class = InvoiceForm
    filters = {"contactId": "contact_id", "paymentStatus": "payment_status"}
    select_related = ("contact",)

    def serialize(self, obj):
        return serialize_document_with_contact(obj)

    def serialize_detail(self, obj):
        return {
            "invoice": self.serialize(obj),
            "lineItems": to_rows(obj.line_items.all()),
        }


class InvoiceListView(InvoiceMixin, CollectionView):
    def serialize_detail(self, obj):
        return self.serialize(obj)


class InvoiceDetailView(InvoiceMixin, DetailView):
    pass


# ---------- Purchase orders ----------
class PurchaseOrderMixin:
    model = PurchaseOrder
    form_class = PurchaseOrderForm
    filters = {"contactId": "contact_id", "paymentStatus": "payment_status"}
    select_related = ("contact",)

    def serialize(self, obj):
        return serialize_document_with_contact(obj)

    def serialize_detail(self, obj):
        return {
            "purchaseOrder": self.serialize(obj),
            "lines": to_rows(obj.lines.all()),
        }


class PurchaseOrderListView(PurchaseOrderMixin, CollectionView):
    def serialize_detail(self, obj):
        return self.serialize(obj)


class PurchaseOrderDetailView(PurchaseOrderMixin, DetailView):
    pass


# ---------- Lines, payments, credits ----------
class EstimateLineItemListView(CollectionView):
    model = EstimateLineItem
    form_class = EstimateLineItemForm
    http_method_names = ["post"]


class EstimateLineItemDetailView(DetailView):
    model = EstimateLineItem
    form_class = EstimateLineItemForm
    http_method_names = ["get", "put", "patch", "delete"]


class InvoiceLineItemListView(CollectionView):
    model = InvoiceLineItem
    form_class = InvoiceLineItemForm
    http_method_names = ["post"]


class InvoiceLineItemDetailView(DetailView):
    model = InvoiceLineItem
    form_class = InvoiceLineItemForm
    http_method_names = ["get", "put", "patch", "delete"]


class PurchaseOrderLineListView(CollectionView):
    model = PurchaseOrderLine
    form_class = PurchaseOrderLineForm
    http_method_names = ["post"]


class PurchaseOrderLineDetailView(DetailView):
    model = PurchaseOrderLine
    form_class = PurchaseOrderLineForm
    http_method_names = ["get", "put", "patch", "delete"]


class CustomerPaymentListView(CollectionView):
    model = CustomerPayment
    form_class = CustomerPaymentForm
    filters = {"contactId": "contact_id", "invoiceId": "invoice_id", "status": "status"}


class CustomerPaymentDetailView(DetailView):
    model = CustomerPayment
    form_class = CustomerPaymentForm
    http_method_names = ["get", "delete"]


class VendorPaymentListView(CollectionView):
    model = PurchaseOrderPayment
    form_class = PurchaseOrderPaymentForm
    filters = {"contactId": "contact_id", "purchaseOrderId": "purchase_order_id"}


class VendorPaymentDetailView(DetailView):
    model = PurchaseOrderPayment
    form_class = PurchaseOrderPaymentForm
    http_method_names = ["get", "delete"]


class CreditListView(CollectionView):
    model = Credit
    form_class = CreditForm
    filters = {"contactId": "contact_id", "invoiceId": "invoice_id", "estimateId": "estimate_id"}


class CreditDetailView(DetailView):
    model = Credit
    form_class = CreditForm
    http_method_names = ["get", "delete"]


# ---------- Expenses ----------
class ExpenseMixin:
    model = Expense
    form_class = ExpenseForm
    filters = {"category": "category"}
    select_related = ("user",)


class ExpenseListView(ExpenseMixin, CollectionView):
    def save_form(self, data, instance=None):
        if instance is None:
            instance = Expense(user=self.request.user)
        return super().save_form(data, instance=instance)


class ExpenseDetailView(ExpenseMixin, DetailView):
    pass


class EstimateLineItemsView(ChildListView):
    parent_model = Estimate
    relation = "line_items"


class InvoiceLineItemsView(ChildListView):
    parent_model = Invoice
    relation = "line_items"


class InvoicePaymentsView(ChildListView):
    parent_model = Invoice
    relation = "payments"


class PurchaseOrderLinesView(ChildListView):
    parent_model = PurchaseOrder
    relation = "lines"


class PurchaseOrderPaymentsView(ChildListView):
    parent_model = PurchaseOrder
    relation = "payments"


# ----------------------------
# Workflow endpoints
# ----------------------------
@staff_only
def convert_estimate_view(request, pk):
    if request.method != "POST":
        return JsonResponse({"message": "Method not allowed"}, status=405)
    invoice = convert_estimate_to_invoice(pk, user=request.user)
    return JsonResponse({"success": True, "invoiceId": invoice.pk, "invoiceUid": invoice.invoice_uid})


@staff_only
def approve_payment_view(request, pk):
    if request.method != "POST":
        return JsonResponse({"message": "Method not allowed"}, status=405)
    return JsonResponse(to_row(approve_customer_payment(pk, user=request.user)))


@staff_only
def reject_payment_view(request, pk):
    if request.method != "POST":
        return JsonResponse({"message": "Method not allowed"}, status=405)
    return JsonResponse(to_row(reject_customer_payment(pk, user=request.user)))


@staff_only
def portal_access_view(request, pk):
    """Set (or reset) the portal PIN of a contact."""
    if request.method != "POST":
        return JsonResponse({"message": "Method not allowed"}, status=405)
    contact = get_object_or_404(Contact, pk=pk)
    form = PortalPinForm(data=normalize_input(parse_json(request)))
    if not form.is_valid():
        raise form_errors(form)
    access = set_portal_pin(contact, form.cleaned_data["pin"], form.cleaned_data["is_active"])
    return JsonResponse({"success": True, "contactId": contact.pk, "isActive": access.is_active})


@staff_only
def dashboard_view(request):
    summary = dashboard_summary()
    body = {camelize(key): to_json_value(value) for key, value in summary.items()}
    body["recentInvoices"] = [serialize_document_with_contact(inv) for inv in summary["recent_invoices"]]
    body["lowStockProducts"] = [serialize_product(p) for p in summary["low_stock_products"]]
    return JsonResponse(body)


@staff_only
def inventory_view(request):
    products = list(Product.objects.select_related("vendor"))
    total = sum((p.stock_value for p in products), ZERO)
    return JsonResponse(
        {
            "products": [serialize_product(p) for p in products],
            "totalValue": to_json_value(total),
            "lowStock": [serialize_product(p) for p in products if p.needs_reorder],
        }
    )


@csrf_exempt
def webhook_view(request):
    """
    Change notifications from internal callers: {table, id, op, row, old_row}.
    Guarded by a shared secret; with no secret configured nothing gets in.
    """
    if request.method != "POST":
        return JsonResponse({"message": "Method not allowed"}, status=405)

    expected = app_setting("WEBHOOK_SECRET") or ""
    supplied = request.META.get(WEBHOOK_SECRET_HEADER, "")
    if not expected or not hmac.compare_digest(supplied.encode(), expected.encode()):
        logger.warning("Rejected webhook call from %s", request.META.get("REMOTE_ADDR"))
        raise PermissionDenied("Invalid webhook secret")

    event = ChangeEvent.from_payload(parse_json(request))
    processed = dispatcher.dispatch(event)
    return JsonResponse({"success": True, "processed": len(processed)})


# ----------------------------
# Staff session
# ----------------------------
def serialize_user(user):
    return {
        "id": user.pk,
        "username": user.get_username(),
        "email": user.email,
        "fullName": user.get_full_name(),
        "isStaff": user.is_staff,
    }


def login_view(request):
    if request.method != "POST":
        return JsonResponse({"message": "Method not allowed"}, status=405)
    data = parse_json(request)
    user = authenticate(request, username=data.get("username"), password=data.get("password"))
    if user is None:
        return unauthorized("Invalid username or password")
    login(request, user)
    return JsonResponse({"user": serialize_user(user)})


def logout_view(request):
    if request.method != "POST":
        return JsonResponse({"message": "Method not allowed"}, status=405)
    logout(request)
    return JsonResponse({"success": True})


@ensure_csrf_cookie
def session_view(request):
    if not request.user.is_authenticated:
        return unauthorized()
    return JsonResponse({"user": serialize_user(request.user)})


def _create_user(request, allow_admin=False):
    form = UserRegistrationForm(normalize_input(parse_json(request)))
    if not form.is_valid():
        raise form_errors(form)
    user = form.save(allow_admin=allow_admin)
    logger.info("Created user %s", user.get_username())
    return user


def register_view(request):
    """Self sign-up; signs the new user straight in."""
    if request.method != "POST":
        return JsonResponse({"message": "Method not allowed"}, status=405)
    if not app_setting("ALLOW_REGISTRATION"):
        raise PermissionDenied("Registration is closed")
    user = _create_user(request)
    login(request, user)
    return JsonResponse({"user": serialize_user(user)}, status=201)


@staff_only
def users_view(request):
    if request.method != "POST":
        return JsonResponse({"message": "Method not allowed"}, status=405)
    user = _create_user(request, allow_admin=request.user.is_staff)
    return JsonResponse(serialize_user(user), status=201)


# ----------------------------
# Customer / vendor portal
# ----------------------------
def portal_contact_summary(contact):
    return {"id": contact.pk, "name": contact.name, "contactUid": contact.contact_uid}


@csrf_exempt
def portal_auth_view(request):
    if request.method != "POST":
        return JsonResponse({"message": "Method not allowed"}, status=405)
    form = PortalLoginForm(data=normalize_input(parse_json(request)))
    if not form.is_valid():
        raise form_errors(form)
    try:
        session = authenticate_portal(form.cleaned_data["identifier"], form.cleaned_data["pin"])
    except PermissionDenied as exc:
        return unauthorized(str(exc))
    return JsonResponse(
        {
            "success": True,
            "token": session.token,
            "expiresAt": to_json_value(session.expires_at),
            "account": portal_contact_summary(session.contact),
        }
    )


@csrf_exempt
@portal_only
def portal_logout_view(request):
    if request.method != "POST":
        return JsonResponse({"message": "Method not allowed"}, status=405)
    end_portal_session(request.portal_token)
    return JsonResponse({"success": True})


@portal_only
def portal_account_view(request):
    return JsonResponse(to_row(request.portal_contact))


@portal_only
def portal_invoices_view(request):
    invoices = Invoice.objects.for_contact(request.portal_contact)
    return JsonResponse(to_rows(invoices), safe=False)


@portal_only
def portal_estimates_view(request):
    estimates = Estimate.objects.for_contact(request.portal_contact)
    return JsonResponse(to_rows(estimates), safe=False)


@portal_only
def portal_purchase_orders_view(request):
    orders = PurchaseOrder.objects.for_contact(request.portal_contact)
    return JsonResponse(to_rows(orders), safe=False)


@portal_only
def portal_payments_view(request):
    contact = request.portal_contact
    return JsonResponse(
        {
            "customerPayments": to_rows(CustomerPayment.objects.for_contact(contact)),
            "vendorPayments": to_rows(PurchaseOrderPayment.objects.for_contact(contact)),
        }
    )

