"""
Services Module

Use-cases and outbound clients:
- Session Manager: register / login / external login / refresh / logout
- Audit Logger: activity trail record, query and retention cleanup
- Notifications: best-effort push broadcasts through an HTTP relay
- Google OAuth: external identity code exchange
"""

from .audit_logger import (
    AuditContext,
    AuditLogger,
    normalize_metadata,
)
from .session_manager import (
    ExternalProfile,
    SessionManager,
    SessionResult,
)
from .notifications import (
    HttpRelayNotifier,
    MulticastResult,
    NotificationMessage,
    NotificationResult,
    Notifier,
    NullNotifier,
    build_notifier,
)
from .google_oauth import GoogleOAuthClient

__all__ = [
    # Audit
    "AuditContext",
    "AuditLogger",
    "normalize_metadata",
    # Sessions
    "ExternalProfile",
    "SessionManager",
    "SessionResult",
    # Notifications
    "HttpRelayNotifier",
    "MulticastResult",
    "NotificationMessage",
    "NotificationResult",
    "Notifier",
    "NullNotifier",
    "build_notifier",
    # External identity
    "GoogleOAuthClient",
]
