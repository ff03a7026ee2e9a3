# nextlevel/models/user.py
"""
Database model for users.
Represents an account in the system: credentials, role, and the server-side
pointers to the one currently valid token pair.
"""
import uuid
from tortoise import fields, models

ROLE_USER = "user"
ROLE_ADMIN = "admin"

class User(models.Model):
    """
    User database model (credential store).

    Relationships:
    - Has one Profile (via related_name="profile", cascade delete)
    - Has many ActivityLogs (via related_name="activity_logs", cascade delete)

    Security:
    - Password is stored as a hash; accounts created through external login have none
    - access_token / refresh_token hold the single active session; every login
      overwrites them and logout clears them
    """
    id = fields.UUIDField(pk=True, default=uuid.uuid4)  # Primary key: unique user identifier
    email = fields.CharField(max_length=256, unique=True, index=True)  # Login email, stored as given
    password_hash = fields.CharField(max_length=255, null=True)  # Null for external-only accounts
    name = fields.CharField(max_length=256, null=True)
    role = fields.CharField(max_length=16, default=ROLE_USER)  # "user" (default) or "admin"
    external_id = fields.CharField(max_length=256, unique=True, null=True)  # Federated login subject
    access_token = fields.TextField(null=True)  # The only access token the auth gate accepts
    refresh_token = fields.TextField(null=True)  # The only refresh token /refresh-token accepts
    device_token = fields.TextField(null=True)  # Push device registration, cleared on logout
    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        """Tortoise ORM metadata configuration."""
        table = "users"
