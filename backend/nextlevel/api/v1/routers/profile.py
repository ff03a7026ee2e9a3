# nextlevel/api/v1/routers/profile.py
import logging

from fastapi import APIRouter, Depends

from nextlevel.api.v1.deps import (
    Principal,
    ensure_self_or_admin,
    get_audit_context,
    get_audit_logger,
    get_current_principal,
    get_notifier,
    normalize_user_id,
)
from nextlevel.core.errors import NotFound, ValidationFailed
from nextlevel.models.profile import PROFILE_FIELDS, Profile
from nextlevel.models.user import User
from nextlevel.schemas.profile import ProfileIn, ProfileOut
from nextlevel.services import audit_logger as audit
from nextlevel.services.audit_logger import AuditContext, AuditLogger
from nextlevel.services.notifications import NotificationMessage, Notifier

logger = logging.getLogger("uvicorn.error")

router = APIRouter(prefix="/profile", tags=["profile"])

PROFILE_UPDATES_TOPIC = "profile-updates"

# API (camelCase) -> model column
_API_TO_MODEL = {
    "name": "name",
    "lastName": "last_name",
    "avatar": "avatar",
    "address": "address",
    "phoneNumber": "phone_number",
    "province": "province",
    "city": "city",
    "district": "district",
    "githubLink": "github_link",
}
_MODEL_TO_API = {v: k for k, v in _API_TO_MODEL.items()}


def _profile_to_dict(p: Profile) -> dict:
    out = {_MODEL_TO_API[f]: getattr(p, f) for f in PROFILE_FIELDS}
    out.update(
        {
            "id": str(p.id),
            "userId": str(p.user_id),
            "createdAt": p.created_at.isoformat() if p.created_at else None,
            "updatedAt": p.updated_at.isoformat() if p.updated_at else None,
        }
    )
    return out


def _to_model_fields(body: ProfileIn) -> dict:
    return {_API_TO_MODEL[k]: v for k, v in body.model_dump(exclude_unset=True).items()}


@router.post("", response_model=ProfileOut)
async def create_or_update_profile(
    body: ProfileIn,
    me: Principal = Depends(get_current_principal),
    audit_log: AuditLogger = Depends(get_audit_logger),
    ctx: AuditContext = Depends(get_audit_context),
):
    """
    Create the current user's profile, or update the provided fields of it.
    """
    fields = _to_model_fields(body)
    profile, _ = await Profile.update_or_create(defaults=fields, user_id=me.id)

    await audit_log.record(
        me.id, audit.PROFILE_UPDATE, "Updated user profile", ctx, {"updatedFields": sorted(body.model_fields_set)}
    )
    return _profile_to_dict(profile)


async def _read_profile(target_id: str, me: Principal, audit_log: AuditLogger, ctx: AuditContext) -> dict:
    profile = await Profile.get_or_none(user_id=target_id)
    if not profile:
        raise NotFound("Profile not found")
    await audit_log.record(
        me.id, audit.VIEW_PROFILE, f"Viewed profile for user {target_id}", ctx, {"targetUserId": target_id}
    )
    return _profile_to_dict(profile)


@router.get("", response_model=ProfileOut)
async def get_my_profile(
    me: Principal = Depends(get_current_principal),
    audit_log: AuditLogger = Depends(get_audit_logger),
    ctx: AuditContext = Depends(get_audit_context),
):
    return await _read_profile(me.id, me, audit_log, ctx)


@router.get("/{user_id}", response_model=ProfileOut)
async def get_profile(
    user_id: str,
    me: Principal = Depends(get_current_principal),
    audit_log: AuditLogger = Depends(get_audit_logger),
    ctx: AuditContext = Depends(get_audit_context),
):
    """
    Any authenticated user may view a profile.
    """
    return await _read_profile(normalize_user_id(user_id), me, audit_log, ctx)


@router.put("/{user_id}", response_model=ProfileOut)
async def update_profile_by_id(
    user_id: str,
    body: ProfileIn,
    me: Principal = Depends(get_current_principal),
    audit_log: AuditLogger = Depends(get_audit_logger),
    notifier: Notifier = Depends(get_notifier),
    ctx: AuditContext = Depends(get_audit_context),
):
    """
    Replace every profile field (self or admin).

    After the update a `profile-updates` topic broadcast is attempted; its
    failure is logged and never fails the request.

    Raises:
        FORBIDDEN (403): not self and not admin
        NOT_FOUND (404): user or profile missing
        BAD_REQUEST (400): a profile field is missing or empty
    """
    ensure_self_or_admin(me, user_id)
    target_id = normalize_user_id(user_id)

    if not await User.filter(id=target_id).exists():
        raise NotFound("User not found")
    profile = await Profile.get_or_none(user_id=target_id)
    if not profile:
        raise NotFound("Profile not found")

    data = body.model_dump()
    for api_name in _API_TO_MODEL:
        if data.get(api_name) in (None, ""):
            raise ValidationFailed(f"Field '{api_name}' is required")

    for api_name, column in _API_TO_MODEL.items():
        setattr(profile, column, data[api_name])
    await profile.save()

    await audit_log.record(
        me.id,
        audit.PROFILE_UPDATE_BY_ID,
        f"Updated profile for user {target_id}",
        ctx,
        {"targetUserId": target_id, "updatedFields": list(_API_TO_MODEL)},
    )

    try:
        await notifier.send_topic(
            PROFILE_UPDATES_TOPIC,
            NotificationMessage(
                title="Profile Updated",
                body="Your profile has been successfully updated.",
                data={"userId": target_id, "updatedBy": me.id, "updatedFields": ",".join(_API_TO_MODEL)},
            ),
        )
    except Exception:
        # Broadcast is best-effort
        logger.exception("[notify] profile update broadcast failed user_id=%s", target_id)

    return _profile_to_dict(profile)
