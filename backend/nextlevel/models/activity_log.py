# nextlevel/models/activity_log.py
"""
Database model for the audit trail.
Entries are append-only: they are never updated, and only removed in bulk by
retention cleanup or by the cascade when their user is deleted.
"""
import uuid
from tortoise import fields, models

class ActivityLog(models.Model):
    """
    One security- or admin-relevant action.

    user is nullable: failed logins and registrations happen before there is
    an account to attribute them to.
    """
    id = fields.UUIDField(pk=True, default=uuid.uuid4)
    user = fields.ForeignKeyField(
        "models.User",
        related_name="activity_logs",
        null=True,
        on_delete=fields.CASCADE,
    )
    action = fields.CharField(max_length=64, index=True)  # Short tag, e.g. LOGIN, LOGIN_FAILED
    description = fields.TextField(null=True)
    ip_address = fields.CharField(max_length=64, null=True)
    user_agent = fields.TextField(null=True)
    metadata = fields.JSONField(null=True)  # Flat mapping: str -> str | int | float | bool
    created_at = fields.DatetimeField(auto_now_add=True, index=True)

    class Meta:
        table = "activity_logs"
        ordering = ["-created_at"]
