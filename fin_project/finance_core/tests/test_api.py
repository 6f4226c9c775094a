import json
from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model

from ..models import Contact, CustomerPayment, Invoice
from .helpers import make_customer, make_estimate, make_invoice, make_vendor, pay_invoice

pytestmark = pytest.mark.django_db

User = get_user_model()


@pytest.fixture
def staff(client, django_user_model):
    user = django_user_model.objects.create_user(username="staff", password="secret")
    client.force_login(user)
    return client


def post(client, url, data):
    return client.post(url, data, content_type="application/json")


def put(client, url, data):
    return client.put(url, json.dumps(data), content_type="application/json")


def test_admin_endpoints_require_login(client):
    for url in ("/api/accounts", "/api/invoices", "/api/dashboard", "/api/estimates/1/convert"):
        response = client.get(url)
        assert response.status_code == 401, url
        assert response.json() == {"message": "Authentication required"}


def test_login_and_session(client, django_user_model):
    django_user_model.objects.create_user(username="ana", password="pw-123")

    assert post(client, "/api/auth/login", {"username": "ana", "password": "bad"}).status_code == 401
    response = post(client, "/api/auth/login", {"username": "ana", "password": "pw-123"})
    assert response.status_code == 200
    assert client.get("/api/auth/session").json()["user"]["username"] == "ana"

    post(client, "/api/auth/logout", {})
    assert client.get("/api/auth/session").status_code == 401


def test_create_contact_camel_case(staff):
    response = post(staff, "/api/accounts", {"name": "Globex", "isCustomer": True, "email": "ap@globex.test"})

    assert response.status_code == 201
    body = response.json()
    assert body["contactUid"].startswith("ACC-")
    assert body["isCustomer"] is True
    assert body["customerBalance"] == "0.00"
    # contacts is an alias of accounts
    assert staff.get(f"/api/contacts/{body['id']}").json()["name"] == "Globex"


def test_contact_filters(staff):
    make_customer("Buyer")
    make_vendor("Seller")

    vendors = staff.get("/api/accounts?isVendor=true").json()
    assert [row["name"] for row in vendors] == ["Seller"]


def test_invoice_flow_through_api(staff):
    customer = make_customer()
    invoice = post(staff, "/api/invoices", {"accountId": customer.pk, "totalAmount": "999.00"}).json()
    # derived fields are never taken from input
    assert invoice["totalAmount"] == "0.00"
    assert invoice["contactId"] == customer.pk
    assert invoice["contactName"] == customer.name

    line = post(
        staff,
        "/api/invoice-line-items",
        {"invoiceId": invoice["id"], "description": "Consulting", "quantity": 4, "unitPrice": "25.00"},
    )
    assert line.status_code == 201
    assert line.json()["lineTotal"] == "100.00"

    payment = post(staff, "/api/customer-payments", {"invoiceId": invoice["id"], "amount": "40.00"}).json()
    assert payment["status"] == "pending"
    assert post(staff, f"/api/customer-payments/{payment['id']}/approve", {}).json()["status"] == "approved"
    assert post(staff, "/api/customer-credits", {"invoiceId": invoice["id"], "amount": "10.00"}).status_code == 201

    detail = staff.get(f"/api/invoices/{invoice['id']}").json()
    assert detail["invoice"]["totalAmount"] == "100.00"
    assert detail["invoice"]["totalPaid"] == "40.00"
    assert detail["invoice"]["totalCredits"] == "10.00"
    assert detail["invoice"]["balance"] == "50.00"
    assert detail["invoice"]["paymentStatus"] == "partial"
    assert [row["description"] for row in detail["lineItems"]] == ["Consulting"]

    payments = staff.get(f"/api/invoices/{invoice['id']}/payments").json()
    assert [row["amount"] for row in payments] == ["40.00"]

    contact = staff.get(f"/api/accounts/{customer.pk}").json()
    assert contact["customerBalance"] == "50.00"
    assert contact["netBalance"] == "50.00"


def test_line_item_update_and_delete(staff):
    invoice = make_invoice(make_customer(), lines=[(1, "10.00")])
    line = invoice.line_items.get()

    response = put(staff, f"/api/invoice-line-items/{line.pk}", {"quantity": "3"})
    assert response.status_code == 200
    assert response.json()["lineTotal"] == "30.00"
    assert staff.get(f"/api/invoices/{invoice.pk}").json()["invoice"]["totalAmount"] == "30.00"

    assert staff.delete(f"/api/invoice-line-items/{line.pk}").json() == {"success": True}
    assert staff.get(f"/api/invoices/{invoice.pk}").json()["invoice"]["totalAmount"] == "0.00"


def test_purchase_order_detail_shape(staff):
    vendor = make_vendor()
    po = post(staff, "/api/purchase-orders", {"contactId": vendor.pk}).json()
    post(staff, "/api/purchase-order-lines", {"purchaseOrderId": po["id"], "description": "Bolts", "unitCost": "2.00", "quantity": 5})
    post(staff, "/api/vendor-payments", {"purchaseOrderId": po["id"], "amount": "4.00"})

    detail = staff.get(f"/api/purchase-orders/{po['id']}").json()
    assert set(detail) == {"purchaseOrder", "lines"}
    assert detail["purchaseOrder"]["totalAmount"] == "10.00"
    assert detail["purchaseOrder"]["totalPaid"] == "4.00"
    assert detail["purchaseOrder"]["productCount"] == 1
    assert staff.get(f"/api/accounts/{vendor.pk}").json()["vendorBalance"] == "6.00"


def test_convert_endpoint(staff):
    estimate = make_estimate(make_customer(), lines=[(1, "25.00")])

    response = post(staff, f"/api/estimates/{estimate.pk}/convert", {})
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert Invoice.objects.get(pk=body["invoiceId"]).total_amount == Decimal("25.00")

    again = post(staff, f"/api/estimates/{estimate.pk}/convert", {})
    assert again.status_code == 409
    assert "message" in again.json()


def test_not_found_and_validation_errors(staff):
    missing = staff.get("/api/invoices/999999")
    assert missing.status_code == 404
    assert missing.json() == {"message": "Not found"}

    assert post(staff, "/api/estimates/999999/convert", {}).status_code == 404

    invalid = post(staff, "/api/invoice-line-items", {"description": "no invoice", "unitPrice": "1.00"})
    assert invalid.status_code == 400
    assert "invoice" in invalid.json()["errors"]

    bad_json = staff.generic("POST", "/api/accounts", "{not json", content_type="application/json")
    assert bad_json.status_code == 400


def test_protected_deletes_are_conflicts(staff):
    customer = make_customer()
    make_invoice(customer, lines=[(1, "5.00")])

    response = staff.delete(f"/api/accounts/{customer.pk}")
    assert response.status_code == 409
    assert Contact.objects.filter(pk=customer.pk).exists()


def test_invoice_with_approved_payment_cannot_be_deleted(staff):
    invoice = make_invoice(make_customer(), lines=[(1, "5.00")])
    pay_invoice(invoice, "5.00")

    response = staff.delete(f"/api/invoices/{invoice.pk}")
    assert response.status_code == 400
    assert Invoice.objects.filter(pk=invoice.pk).exists()


def test_reject_endpoint(staff):
    invoice = make_invoice(make_customer(), lines=[(1, "5.00")])
    payment = pay_invoice(invoice, "5.00")

    assert post(staff, f"/api/customer-payments/{payment.pk}/reject", {}).json()["status"] == "rejected"
    assert CustomerPayment.objects.get(pk=payment.pk).status == "rejected"
    assert staff.get(f"/api/invoices/{invoice.pk}").json()["invoice"]["balance"] == "5.00"


def test_portal_access_endpoint(staff):
    customer = make_customer()

    assert post(staff, f"/api/accounts/{customer.pk}/portal-access", {"pin": "12"}).status_code == 400
    response = post(staff, f"/api/accounts/{customer.pk}/portal-access", {"pin": "2468"})
    assert response.json() == {"success": True, "contactId": customer.pk, "isActive": True}


def test_dashboard(staff):
    customer = make_customer()
    invoice = make_invoice(customer, lines=[(1, "100.00")])
    pay_invoice(invoice, "30.00")
    make_invoice(customer, lines=[(1, "20.00")])

    body = staff.get("/api/dashboard").json()
    assert body["totalRevenue"] == "30.00"
    assert body["accountsReceivable"] == "90.00"
    assert body["accountsPayable"] == "0.00"
    assert body["openInvoices"] == 2
    assert len(body["recentInvoices"]) == 2


# ---------- webhook ----------
@pytest.fixture
def webhook_secret(settings):
    settings.FINVENTORY = {**settings.FINVENTORY, "WEBHOOK_SECRET": "s3cret"}
    return "s3cret"


def test_webhook_refuses_when_secret_unset(client, settings):
    settings.FINVENTORY = {**settings.FINVENTORY, "WEBHOOK_SECRET": ""}
    response = post(client, "/api/webhook", {"table": "invoices", "id": 1, "op": "UPDATE"})
    assert response.status_code == 403


def test_webhook_refuses_wrong_secret(client, webhook_secret):
    response = client.post(
        "/api/webhook",
        {"table": "invoices", "id": 1, "op": "UPDATE"},
        content_type="application/json",
        HTTP_X_WEBHOOK_SECRET="guess",
    )
    assert response.status_code == 403
    response = post(client, "/api/webhook", {"table": "invoices", "id": 1, "op": "UPDATE"})
    assert response.status_code == 403


def test_webhook_repairs_drifted_invoice(client, webhook_secret):
    invoice = make_invoice(make_customer(), lines=[(1, "12.00")])
    line = invoice.line_items.get()
    Invoice.objects.filter(pk=invoice.pk).update(total_amount=Decimal("0"), balance=Decimal("0"))

    response = client.post(
        "/api/webhook",
        {"table": "invoice_line_items", "id": line.pk, "op": "INSERT", "row": {"invoiceId": invoice.pk}},
        content_type="application/json",
        HTTP_X_WEBHOOK_SECRET=webhook_secret,
    )

    assert response.status_code == 200
    assert response.json()["success"] is True
    invoice.refresh_from_db()
    assert invoice.total_amount == Decimal("12.00")
    assert invoice.balance == Decimal("12.00")


def test_webhook_rejects_malformed_event(client, webhook_secret):
    response = client.post(
        "/api/webhook",
        {"table": "invoices", "op": "EXPLODE", "id": 1},
        content_type="application/json",
        HTTP_X_WEBHOOK_SECRET=webhook_secret,
    )
    assert response.status_code == 400


# ---------- credits ----------
def test_document_credit_takes_contact_from_document(staff):
    customer = make_customer()
    invoice = make_invoice(customer, lines=[(1, "30.00")])
    estimate = make_estimate(customer, lines=[(1, "20.00")])

    response = post(staff, "/api/customer-credits", {"invoiceId": invoice.pk, "amount": "5.00"})
    assert response.status_code == 201
    assert response.json()["contactId"] == customer.pk

    response = post(staff, "/api/customer-credits", {"estimateId": estimate.pk, "amount": "5.00"})
    assert response.status_code == 201
    assert response.json()["contactId"] == customer.pk

    assert staff.get(f"/api/invoices/{invoice.pk}").json()["invoice"]["balance"] == "25.00"
    assert staff.get(f"/api/estimates/{estimate.pk}").json()["estimate"]["balance"] == "15.00"


def test_credit_without_contact_or_document_rejected(staff):
    response = post(staff, "/api/customer-credits", {"amount": "5.00"})
    assert response.status_code == 400
    assert "contact" in response.json()["errors"]


# ---------- expenses ----------
def test_expenses_create_and_list(staff):
    response = post(
        staff,
        "/api/expenses",
        {"description": "Van fuel", "amount": "62.40", "date": "2025-03-02", "category": "travel"},
    )
    assert response.status_code == 201
    body = response.json()
    assert body["amount"] == "62.40"
    assert body["userId"] == User.objects.get(username="staff").pk

    post(staff, "/api/expenses", {"description": "Office rent", "amount": "900.00", "date": "2025-03-01", "category": "rent"})

    # newest first
    rows = staff.get("/api/expenses").json()
    assert [row["description"] for row in rows] == ["Van fuel", "Office rent"]
    assert [row["description"] for row in staff.get("/api/expenses?category=rent").json()] == ["Office rent"]


def test_expense_validation(staff):
    response = post(staff, "/api/expenses", {"description": "Refund?", "amount": "-5.00"})
    assert response.status_code == 400
    assert "amount" in response.json()["errors"]

    assert post(staff, "/api/expenses", {"amount": "5.00"}).status_code == 400


def test_expenses_require_login(client):
    assert client.get("/api/expenses").status_code == 401


def test_expense_update_and_delete(staff):
    expense = post(staff, "/api/expenses", {"description": "Paper", "amount": "10.00"}).json()

    response = put(staff, f"/api/expenses/{expense['id']}", {"amount": "12.50"})
    assert response.status_code == 200
    assert response.json()["amount"] == "12.50"
    assert response.json()["description"] == "Paper"

    assert staff.delete(f"/api/expenses/{expense['id']}").json() == {"success": True}
    assert staff.get(f"/api/expenses/{expense['id']}").status_code == 404


# ---------- users ----------
def test_register_creates_and_signs_in(client):
    response = post(
        client,
        "/api/auth/register",
        {"email": "Maria@Example.test", "password": "ledger-horse-42", "fullName": "Maria Lopez"},
    )

    assert response.status_code == 201
    user = response.json()["user"]
    assert user["username"] == "maria@example.test"
    assert user["fullName"] == "Maria Lopez"
    assert user["isStaff"] is False
    assert client.get("/api/auth/session").json()["user"]["email"] == "maria@example.test"


def test_register_cannot_grant_admin(client):
    response = post(
        client,
        "/api/auth/register",
        {"email": "eve@example.test", "password": "ledger-horse-42", "role": "admin"},
    )
    assert response.status_code == 201
    assert User.objects.get(email="eve@example.test").is_staff is False


def test_register_rejects_duplicate_email_and_weak_password(client):
    User.objects.create_user(username="taken", email="taken@example.test", password="x")

    response = post(client, "/api/auth/register", {"email": "TAKEN@example.test", "password": "ledger-horse-42"})
    assert response.status_code == 400
    assert response.json()["errors"]["email"] == ["Email already in use."]

    response = post(client, "/api/auth/register", {"email": "new@example.test", "password": "123"})
    assert response.status_code == 400
    assert "password" in response.json()["errors"]
    assert not User.objects.filter(email="new@example.test").exists()


def test_register_can_be_closed(client, settings):
    settings.FINVENTORY = {**settings.FINVENTORY, "ALLOW_REGISTRATION": False}
    response = post(client, "/api/auth/register", {"email": "late@example.test", "password": "ledger-horse-42"})
    assert response.status_code == 403


def test_staff_creates_users(staff):
    User.objects.filter(username="staff").update(is_staff=True)

    response = post(
        staff,
        "/api/users",
        {"username": "clerk", "email": "clerk@example.test", "password": "ledger-horse-42", "role": "admin"},
    )

    assert response.status_code == 201
    assert response.json()["username"] == "clerk"
    assert User.objects.get(username="clerk").is_staff is True


def test_user_create_requires_login(client):
    response = post(client, "/api/users", {"email": "x@example.test", "password": "ledger-horse-42"})
    assert response.status_code == 401
