import logging
import re
import secrets
from datetime import timedelta

from django.contrib.auth.hashers import check_password, make_password
from django.core.exceptions import PermissionDenied, ValidationError
from django.db import transaction
from django.db.models import Q
from django.utils import timezone

from ..conf import app_setting
from ..models import Contact, PortalAccess, PortalSession
from .audit_helper import log_action

logger = logging.getLogger(__name__)

PIN_PATTERN = re.compile(r"^\d{4,6}$")


def set_portal_pin(contact: Contact, pin: str, is_active: bool = True) -> PortalAccess:
    pin = str(pin or "")
    if not PIN_PATTERN.match(pin):
        raise ValidationError({"pin": "PIN must be 4 to 6 digits."})

    access, _ = PortalAccess.objects.update_or_create(
        contact=contact,
        defaults={"pin": make_password(pin), "is_active": is_active},
    )
    return access


def authenticate_portal(identifier: str, pin: str) -> PortalSession:
    """
    Log a contact into the portal with its code (ACC-XXXXXX) or email
    address plus PIN, and open a session that expires after
    PORTAL_SESSION_HOURS.
    """
    identifier = (identifier or "").strip()
    if not identifier or not pin:
        raise ValidationError("Account and PIN are required.")

    contact = (
        Contact.objects.filter(Q(contact_uid__iexact=identifier) | Q(email__iexact=identifier))
        .order_by("id")
        .first()
    )
    if contact is None:
        raise ValidationError("Account not found.")

    try:
        access = contact.portal_access
    except PortalAccess.DoesNotExist:
        access = None
    if access is None or not access.is_active or not check_password(str(pin), access.pin):
        logger.warning("Failed portal login for %s", contact.contact_uid)
        raise PermissionDenied("Invalid PIN.")

    now = timezone.now()
    with transaction.atomic():
        session = PortalSession.objects.create(
            token=secrets.token_urlsafe(32),
            contact=contact,
            expires_at=now + timedelta(hours=app_setting("PORTAL_SESSION_HOURS")),
        )
        access.last_login_at = now
        access.save(update_fields=["last_login_at", "updated_at"])
        log_action(action="portal_login", instance=contact)

    return session


def resolve_portal_session(token):
    if not token:
        return None
    session = (
        PortalSession.objects.select_related("contact")
        .filter(token=token, expires_at__gt=timezone.now())
        .first()
    )
    return session.contact if session else None


def end_portal_session(token) -> int:
    deleted, _ = PortalSession.objects.filter(token=token).delete()
    return deleted
