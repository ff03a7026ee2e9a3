# nextlevel/api/v1/routers/activity_logs.py
from typing import Optional

from fastapi import APIRouter, Body, Depends, Query

from nextlevel.api.v1.deps import (
    Principal,
    ensure_self_or_admin,
    get_audit_context,
    get_audit_logger,
    get_current_principal,
    normalize_user_id,
    require_admin,
)
from nextlevel.config import settings
from nextlevel.schemas.activity_log import ActivityLogListOut, CleanupIn, CleanupOut
from nextlevel.services import audit_logger as audit
from nextlevel.services.audit_logger import AuditContext, AuditLogger

router = APIRouter(prefix="/activity-logs", tags=["activity-logs"])


@router.get("", response_model=ActivityLogListOut)
async def list_my_logs(
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    action: Optional[str] = Query(default=None),
    me: Principal = Depends(get_current_principal),
    audit_log: AuditLogger = Depends(get_audit_logger),
):
    """
    The caller's own activity, newest first.
    """
    items = await audit_log.list_for_user(me.id, limit=limit, offset=offset, action=action)
    return {"items": items, "offset": offset, "limit": limit}


@router.get("/all", response_model=ActivityLogListOut)
async def list_all_logs(
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    userId: Optional[str] = Query(default=None),
    action: Optional[str] = Query(default=None),
    _: Principal = Depends(require_admin),
    audit_log: AuditLogger = Depends(get_audit_logger),
):
    """
    Activity across all users with minimal user identity attached (admin only).

    Raises:
        FORBIDDEN (403): caller is not an admin
    """
    user_id = normalize_user_id(userId) if userId else None
    items = await audit_log.list_all(limit=limit, offset=offset, user_id=user_id, action=action)
    return {"items": items, "offset": offset, "limit": limit}


@router.delete("/cleanup", response_model=CleanupOut)
async def cleanup_old_logs(
    body: Optional[CleanupIn] = Body(default=None),
    admin: Principal = Depends(require_admin),
    audit_log: AuditLogger = Depends(get_audit_logger),
    ctx: AuditContext = Depends(get_audit_context),
):
    """
    Retention cleanup: delete entries older than `daysOld` days
    (default LOG_RETENTION_DAYS, 90). Admin only.
    """
    days = body.daysOld if body and body.daysOld is not None else settings.log_retention_days
    deleted = await audit_log.purge_older_than(days)
    await audit_log.record(
        admin.id, audit.LOGS_CLEANUP, f"Deleted {deleted} old activity logs", ctx, {"daysOld": days, "deleted": deleted}
    )
    return {"deleted": deleted, "message": f"Deleted {deleted} old activity logs"}


@router.get("/{user_id}", response_model=ActivityLogListOut)
async def list_user_logs(
    user_id: str,
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    action: Optional[str] = Query(default=None),
    me: Principal = Depends(get_current_principal),
    audit_log: AuditLogger = Depends(get_audit_logger),
):
    """
    Activity of one user. Users may read their own; other users' logs are admin only.

    Raises:
        FORBIDDEN (403): a non-admin asked for another user's logs
    """
    ensure_self_or_admin(me, user_id, "Access denied. You can only view your own activity logs.")
    items = await audit_log.list_for_user(normalize_user_id(user_id), limit=limit, offset=offset, action=action)
    return {"items": items, "offset": offset, "limit": limit}
