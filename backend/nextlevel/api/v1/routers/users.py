# nextlevel/api/v1/routers/users.py
from __future__ import annotations

from fastapi import (
    APIRouter,
    Depends,
    Query,
)
from tortoise.exceptions import IntegrityError
from tortoise.expressions import Q

from nextlevel.api.v1.deps import (
    Principal,
    ensure_self_or_admin,
    get_audit_context,
    get_audit_logger,
    get_current_principal,
    get_notifier,
    normalize_user_id,
    require_admin,
)
from nextlevel.core.errors import DuplicateAccount, Forbidden, NotFound, ValidationFailed
from nextlevel.models.profile import Profile
from nextlevel.models.user import ROLE_ADMIN, ROLE_USER, User
from nextlevel.schemas.user import (
    DeviceTokenIn,
    UserDetailOut,
    UserListOut,
    UserUpdateIn,
)
from nextlevel.services import audit_logger as audit
from nextlevel.services.audit_logger import AuditContext, AuditLogger
from nextlevel.services.notifications import NotificationMessage, Notifier

router = APIRouter(prefix="/users", tags=["users"])


def _user_to_dict(u: User) -> dict:
    """
    Convert a User row to the API shape. Token columns are never exposed.
    """
    return {
        "id": str(u.id),
        "email": u.email,
        "name": u.name,
        "role": u.role,
        "created_at": u.created_at.isoformat() if u.created_at else None,
        "updated_at": u.updated_at.isoformat() if u.updated_at else None,
    }


def _profile_summary(p: Profile | None) -> dict | None:
    if p is None:
        return None
    return {
        "id": str(p.id),
        "name": p.name,
        "lastName": p.last_name,
        "avatar": p.avatar,
        "githubLink": p.github_link,
    }


async def _count_admins() -> int:
    """
    Number of admin accounts; used to refuse removing the last one.
    """
    return await User.filter(role=ROLE_ADMIN).count()


async def _get_user_or_404(user_id: str) -> User:
    u = await User.get_or_none(id=normalize_user_id(user_id))
    if not u:
        raise NotFound("User not found")
    return u


@router.get("", response_model=UserListOut)
async def list_users(
    q: str | None = Query(default=None, description="Fuzzy search by email/name"),
    offset: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
    admin: Principal = Depends(require_admin),
    audit_log: AuditLogger = Depends(get_audit_logger),
    ctx: AuditContext = Depends(get_audit_context),
):
    """
    Paginated list of users, newest first (admin only).

    Raises:
        FORBIDDEN (403): caller is not an admin
    """
    qs = User.all().order_by("-created_at")
    if q:
        qs = qs.filter(Q(email__icontains=q) | Q(name__icontains=q))

    total = await qs.count()
    rows = await qs.offset(offset).limit(limit)
    items = [_user_to_dict(u) for u in rows]

    await audit_log.record(admin.id, audit.VIEW_ALL_USERS, "Admin viewed all users list", ctx, {"userCount": total})
    return {"items": items, "offset": offset, "limit": limit, "total": total}


@router.post("/device-token")
async def update_device_token(
    body: DeviceTokenIn,
    me: Principal = Depends(get_current_principal),
    notifier: Notifier = Depends(get_notifier),
    audit_log: AuditLogger = Depends(get_audit_logger),
    ctx: AuditContext = Depends(get_audit_context),
):
    """
    Register the push device token for the current user.

    When a notification relay is configured, the token is validated by
    sending a test message first; a rejected token is not stored.
    """
    if notifier.is_available():
        result = await notifier.send_to_device(
            body.deviceToken,
            NotificationMessage(
                title="Token Validation",
                body="This is a test message to validate your device token.",
                data={"type": "validation"},
            ),
        )
        if not result.success:
            raise ValidationFailed("Invalid device token. Please provide a valid token.")

    updated = await User.filter(id=me.id).update(device_token=body.deviceToken)
    if not updated:
        raise NotFound("User not found")

    await audit_log.record(me.id, audit.DEVICE_TOKEN_UPDATE, "Updated device token", ctx)
    return {"success": True, "message": "Device token updated successfully"}


@router.get("/{user_id}", response_model=UserDetailOut)
async def get_user_detail(
    user_id: str,
    me: Principal = Depends(get_current_principal),
    audit_log: AuditLogger = Depends(get_audit_logger),
    ctx: AuditContext = Depends(get_audit_context),
):
    """
    One user with its profile summary (self or admin).

    Raises:
        FORBIDDEN (403): another user's record requested by a non-admin
        NOT_FOUND (404): no such user
    """
    ensure_self_or_admin(me, user_id)
    u = await _get_user_or_404(user_id)
    profile = await Profile.get_or_none(user_id=u.id)

    await audit_log.record(
        me.id, audit.VIEW_USER, f"Viewed user profile for {user_id}", ctx, {"targetUserId": user_id}
    )
    return {"user": _user_to_dict(u), "profile": _profile_summary(profile)}


@router.put("/{user_id}", response_model=UserDetailOut)
async def update_user(
    user_id: str,
    body: UserUpdateIn,
    me: Principal = Depends(get_current_principal),
    audit_log: AuditLogger = Depends(get_audit_logger),
    ctx: AuditContext = Depends(get_audit_context),
):
    """
    Update name, email, or role. Users may update themselves; admins anyone.
    Role changes are admin only.

    Raises:
        FORBIDDEN (403): not self and not admin, or non-admin changing role
        NOT_FOUND (404): no such user
        EMAIL_EXISTS (400): email taken by another account
        BAD_REQUEST (400): admin demoting self, or demoting the last admin
    """
    ensure_self_or_admin(me, user_id)
    if body.role is not None and not me.is_admin:
        raise Forbidden("Admin access required to change roles")

    u = await _get_user_or_404(user_id)

    # 1) Name
    if body.name:
        u.name = body.name

    # 2) Email (uniqueness check)
    if body.email and body.email != u.email:
        if await User.filter(email=body.email).exclude(id=u.id).exists():
            raise DuplicateAccount("Email already registered")
        u.email = body.email

    # 3) Role (cannot demote self; cannot demote last admin)
    if body.role and body.role != u.role:
        if me.id == str(u.id) and body.role != ROLE_ADMIN:
            raise ValidationFailed("Cannot demote yourself")
        if u.role == ROLE_ADMIN and body.role == ROLE_USER and await _count_admins() <= 1:
            raise ValidationFailed("Cannot demote the last admin")
        u.role = body.role

    try:
        await u.save(update_fields=["name", "email", "role", "updated_at"])
    except IntegrityError as exc:
        # Email taken by a concurrent update after the check above
        raise DuplicateAccount("Email already registered") from exc

    await audit_log.record(
        me.id,
        audit.USER_UPDATE,
        f"Updated user profile for {user_id}",
        ctx,
        {"targetUserId": user_id, "updatedFields": sorted(body.model_dump(exclude_none=True))},
    )
    profile = await Profile.get_or_none(user_id=u.id)
    return {"user": _user_to_dict(u), "profile": _profile_summary(profile)}


@router.delete("/{user_id}")
async def delete_user(
    user_id: str,
    admin: Principal = Depends(require_admin),
    audit_log: AuditLogger = Depends(get_audit_logger),
    ctx: AuditContext = Depends(get_audit_context),
):
    """
    Delete an account (admin only). Its profile and activity logs go with it
    through the database cascade.

    Raises:
        FORBIDDEN (403): caller is not an admin
        NOT_FOUND (404): no such user
        BAD_REQUEST (400): deleting self, or deleting the last admin
    """
    u = await _get_user_or_404(user_id)

    if admin.id == str(u.id):
        raise ValidationFailed("Cannot delete yourself")
    if u.role == ROLE_ADMIN and await _count_admins() <= 1:
        raise ValidationFailed("Cannot delete the last admin")

    await u.delete()
    await audit_log.record(
        admin.id, audit.DELETE_USER, f"Admin deleted user {user_id}", ctx, {"targetUserId": user_id}
    )
    return {"success": True, "message": "User deleted successfully"}
