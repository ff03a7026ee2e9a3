# nextlevel/services/audit_logger.py
"""
Audit Logger

Append-only activity trail for security-relevant and administrative actions.
Writes are best-effort: `record` never raises to its caller, failures only go
to the operational log. Reads are paginated and newest first.
"""
import datetime as dt
import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from nextlevel.models.activity_log import ActivityLog

logger = logging.getLogger("nextlevel.audit")

# Action tags
REGISTER = "REGISTER"
REGISTER_FAILED = "REGISTER_FAILED"
LOGIN = "LOGIN"
LOGIN_FAILED = "LOGIN_FAILED"
EXTERNAL_LOGIN = "EXTERNAL_LOGIN"
LOGOUT = "LOGOUT"
TOKEN_REFRESH = "TOKEN_REFRESH"
TOKEN_REFRESH_FAILED = "TOKEN_REFRESH_FAILED"
TOKEN_VERIFY = "TOKEN_VERIFY"
VIEW_ALL_USERS = "VIEW_ALL_USERS"
VIEW_USER = "VIEW_USER"
USER_UPDATE = "USER_UPDATE"
DELETE_USER = "DELETE_USER"
PROFILE_UPDATE = "PROFILE_UPDATE"
PROFILE_UPDATE_BY_ID = "PROFILE_UPDATE_BY_ID"
VIEW_PROFILE = "VIEW_PROFILE"
DEVICE_TOKEN_UPDATE = "DEVICE_TOKEN_UPDATE"
LOGS_CLEANUP = "LOGS_CLEANUP"

DEFAULT_RETENTION_DAYS = 90

MetadataValue = str | int | float | bool


@dataclass(frozen=True)
class AuditContext:
    """Caller details captured from the request, when available."""
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None


def normalize_metadata(metadata: Optional[Mapping[str, Any]]) -> Optional[dict[str, MetadataValue]]:
    """
    Flatten free-form metadata to str -> primitive.

    None values are dropped, lists/tuples/sets are joined with ",", anything
    else that is not a primitive is stringified.
    """
    if not metadata:
        return None
    out: dict[str, MetadataValue] = {}
    for key, value in metadata.items():
        if value is None:
            continue
        if isinstance(value, (str, int, float, bool)):
            out[str(key)] = value
        elif isinstance(value, (list, tuple, set, frozenset)):
            out[str(key)] = ",".join(str(v) for v in value)
        else:
            out[str(key)] = str(value)
    return out or None


def utc_now() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


def _entry_to_dict(entry: ActivityLog) -> dict:
    return {
        "id": str(entry.id),
        "userId": str(entry.user_id) if entry.user_id else None,
        "action": entry.action,
        "description": entry.description,
        "ipAddress": entry.ip_address,
        "userAgent": entry.user_agent,
        "metadata": entry.metadata,
        "createdAt": entry.created_at.isoformat() if entry.created_at else None,
    }


class AuditLogger:
    """Single audit capability shared by every handler."""

    async def record(
        self,
        user_id,
        action: str,
        description: Optional[str] = None,
        context: Optional[AuditContext] = None,
        metadata: Optional[Mapping[str, Any]] = None,
    ) -> None:
        """
        Append one entry. Never raises.

        Args:
            user_id: Acting account id, or None for pre-authentication events
            action: Action tag (see module constants)
            description: Human readable summary
            context: Caller IP / user agent
            metadata: Extra key/values, flattened by normalize_metadata
        """
        try:
            ctx = context or AuditContext()
            await ActivityLog.create(
                user_id=user_id,
                action=action,
                description=description,
                ip_address=ctx.ip_address,
                user_agent=ctx.user_agent,
                metadata=normalize_metadata(metadata),
            )
        except Exception:
            logger.exception("[audit] failed to record action=%s user_id=%s", action, user_id)

    async def list_for_user(
        self,
        user_id,
        limit: int = 50,
        offset: int = 0,
        action: Optional[str] = None,
    ) -> list[dict]:
        """Entries of one user, newest first."""
        qs = ActivityLog.filter(user_id=user_id)
        if action:
            qs = qs.filter(action=action)
        rows = await qs.order_by("-created_at").offset(offset).limit(limit)
        return [_entry_to_dict(r) for r in rows]

    async def list_all(
        self,
        limit: int = 100,
        offset: int = 0,
        user_id=None,
        action: Optional[str] = None,
    ) -> list[dict]:
        """
        Entries across all users, newest first, each with the minimal identity
        (id, email, name) of its user attached when there is one.
        """
        qs = ActivityLog.all()
        if user_id:
            qs = qs.filter(user_id=user_id)
        if action:
            qs = qs.filter(action=action)
        rows = await qs.order_by("-created_at").offset(offset).limit(limit).prefetch_related("user")

        items = []
        for r in rows:
            item = _entry_to_dict(r)
            u = r.user
            item["user"] = {"id": str(u.id), "email": u.email, "name": u.name} if u else None
            items.append(item)
        return items

    async def purge_older_than(self, days: int = DEFAULT_RETENTION_DAYS) -> int:
        """
        Delete entries whose created_at is strictly older than now - days.

        Returns:
            Number of entries removed
        """
        cutoff = utc_now() - dt.timedelta(days=days)
        removed = await ActivityLog.filter(created_at__lt=cutoff).delete()
        logger.info("[audit] purged %d entries older than %d days", removed, days)
        return removed
