import datetime

import pytest
from django.core.exceptions import PermissionDenied, ValidationError
from django.utils import timezone

from ..models import PortalAccess, PortalSession
from ..services.portal import authenticate_portal, resolve_portal_session, set_portal_pin
from .helpers import make_customer, make_invoice, make_vendor

pytestmark = pytest.mark.django_db


@pytest.fixture
def customer():
    contact = make_customer(email="buyer@example.com")
    set_portal_pin(contact, "1234")
    return contact


def test_pin_is_hashed(customer):
    access = PortalAccess.objects.get(contact=customer)
    assert access.pin != "1234"
    assert access.pin.startswith(("pbkdf2_", "argon2", "bcrypt", "scrypt", "md5"))


@pytest.mark.parametrize("pin", ["123", "1234567", "12a4", ""])
def test_pin_format_is_enforced(customer, pin):
    with pytest.raises(ValidationError):
        set_portal_pin(customer, pin)


def test_login_by_uid_or_email(customer):
    by_uid = authenticate_portal(customer.contact_uid, "1234")
    by_email = authenticate_portal("BUYER@example.com", "1234")

    assert by_uid.contact == customer
    assert by_email.contact == customer
    assert by_uid.token != by_email.token
    assert resolve_portal_session(by_uid.token) == customer


def test_wrong_pin_is_denied(customer):
    with pytest.raises(PermissionDenied):
        authenticate_portal(customer.contact_uid, "9999")
    assert not PortalSession.objects.exists()


def test_unknown_contact_is_a_validation_error():
    with pytest.raises(ValidationError):
        authenticate_portal("ACC-NOPE00", "1234")


def test_inactive_access_is_denied(customer):
    set_portal_pin(customer, "1234", is_active=False)
    with pytest.raises(PermissionDenied):
        authenticate_portal(customer.contact_uid, "1234")


def test_expired_session_resolves_to_nobody(customer):
    session = authenticate_portal(customer.contact_uid, "1234")
    PortalSession.objects.filter(pk=session.pk).update(
        expires_at=timezone.now() - datetime.timedelta(minutes=1)
    )
    assert resolve_portal_session(session.token) is None
    assert resolve_portal_session("") is None


def test_portal_api_shows_only_own_documents(client, customer):
    other = make_customer("Someone Else")
    mine = make_invoice(customer, lines=[(1, "10.00")])
    make_invoice(other, lines=[(1, "99.00")])

    response = client.post(
        "/api/portal/auth",
        {"accountIdentifier": customer.contact_uid, "pin": "1234"},
        content_type="application/json",
    )
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["account"]["contactUid"] == customer.contact_uid

    headers = {"HTTP_X_PORTAL_TOKEN": body["token"]}
    invoices = client.get("/api/portal/invoices", **headers).json()
    assert [row["id"] for row in invoices] == [mine.pk]
    assert invoices[0]["balance"] == "10.00"

    account = client.get("/api/portal/account", **headers).json()
    assert account["id"] == customer.pk
    assert "pin" not in account


def test_portal_api_requires_token(client):
    assert client.get("/api/portal/invoices").status_code == 401
    assert client.get("/api/portal/account", HTTP_X_PORTAL_TOKEN="bogus").status_code == 401


def test_portal_api_wrong_pin_is_401(client, customer):
    response = client.post(
        "/api/portal/auth",
        {"accountIdentifier": customer.contact_uid, "pin": "0000"},
        content_type="application/json",
    )
    assert response.status_code == 401
    assert response.json() == {"message": "Invalid PIN."}


def test_portal_api_unknown_account_is_400(client):
    response = client.post(
        "/api/portal/auth",
        {"accountIdentifier": "nobody@example.com", "pin": "1234"},
        content_type="application/json",
    )
    assert response.status_code == 400


def test_vendor_sees_purchase_orders(client):
    vendor = make_vendor(email="sales@parts.example")
    set_portal_pin(vendor, "55555")
    token = authenticate_portal(vendor.email, "55555").token

    response = client.get("/api/portal/purchase-orders", HTTP_X_PORTAL_TOKEN=token)
    assert response.status_code == 200
    assert response.json() == []
