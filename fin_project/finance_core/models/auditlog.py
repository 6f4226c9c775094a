from django.conf import settings  # To access global project settings
from django.db import models


# ---------- Audit / Event log ----------
class AuditLog(models.Model):  # Traceability for workflow actions
    # Which user performed the action
    # (Nullable in case the action was automated, e.g. repair task, webhook)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True, blank=True, on_delete=models.SET_NULL
    )
    # Common choices: convert, approve, reject, portal_login
    action = models.CharField(max_length=50)
    # What kind of object was affected (e.g. "Estimate", "CustomerPayment")
    object_type = models.CharField(max_length=100)
    object_id = models.CharField(max_length=100)
    # Details of what changed, in JSON format
    changes = models.JSONField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "audit_log"
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["object_type", "object_id"], name="audit_log_object_idx"),
            models.Index(fields=["created_at"], name="audit_log_created_idx"),
        ]

    def __str__(self):
        time = self.created_at
        return f"[{time:%Y-%m-%d %H:%M}] {self.user} {self.action} {self.object_type}({self.object_id})"
