# nextlevel/models/__init__.py
"""
Database models module initialization.
Exports all Tortoise ORM models for convenient imports.

Models exported:
- User: Account, credentials and current session tokens
- Profile: Public profile (one per user)
- ActivityLog: Audit trail entry
"""
from .user import User, ROLE_USER, ROLE_ADMIN
from .profile import Profile, PROFILE_FIELDS
from .activity_log import ActivityLog
