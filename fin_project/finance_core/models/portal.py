from django.db import models

from .base import TimeStampedModel
from .contact import Contact


# ---------- Customer / vendor portal ----------
class PortalAccess(TimeStampedModel):
    contact = models.OneToOneField(
        Contact, on_delete=models.CASCADE, related_name="portal_access"
    )
    # Django password hash of the PIN, never the PIN itself
    pin = models.CharField(max_length=128)
    is_active = models.BooleanField(default=True)
    last_login_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "portal_access"

    def __str__(self):
        return f"Portal access for {self.contact}"


class PortalSession(models.Model):
    token = models.CharField(max_length=64, unique=True)
    contact = models.ForeignKey(
        Contact, on_delete=models.CASCADE, related_name="portal_sessions"
    )
    created_at = models.DateTimeField(auto_now_add=True)
    expires_at = models.DateTimeField()

    class Meta:
        db_table = "portal_sessions"
        indexes = [
            models.Index(fields=["expires_at"], name="portal_sess_expires_idx"),
        ]

    def __str__(self):
        return f"Portal session {self.contact_id} until {self.expires_at:%Y-%m-%d %H:%M}"
