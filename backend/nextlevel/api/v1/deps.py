# nextlevel/api/v1/deps.py
import uuid
from dataclasses import dataclass

from fastapi import Depends, Header, Request

from nextlevel.config import settings
from nextlevel.core.errors import Forbidden, MissingToken, NotFound, SessionExpired, ValidationFailed
from nextlevel.core.security import verify_access_token
from nextlevel.models.user import ROLE_ADMIN, User
from nextlevel.services.audit_logger import AuditContext, AuditLogger
from nextlevel.services.google_oauth import GoogleOAuthClient
from nextlevel.services.notifications import NullNotifier, Notifier
from nextlevel.services.session_manager import SessionManager


@dataclass(frozen=True)
class Principal:
    """Authenticated caller, built from the verified access token claims."""
    id: str
    email: str
    name: str | None
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN


_audit_logger = AuditLogger()

def get_audit_logger() -> AuditLogger:
    return _audit_logger

def get_session_manager(audit: AuditLogger = Depends(get_audit_logger)) -> SessionManager:
    return SessionManager(audit)

def get_notifier(request: Request) -> Notifier:
    # Built once in main.py startup; fall back to a no-op when startup did not run
    return getattr(request.app.state, "notifier", None) or NullNotifier()

def get_google_oauth() -> GoogleOAuthClient:
    if not (settings.google_client_id and settings.google_client_secret):
        raise ValidationFailed("Google login is not configured")
    return GoogleOAuthClient(
        settings.google_client_id,
        settings.google_client_secret,
        settings.google_redirect_uri,
    )

def get_audit_context(request: Request) -> AuditContext:
    """
    Caller IP and user agent.

    The peer address is used as-is; X-Forwarded-For (first hop) replaces it
    only when the peer is one of settings.trusted_proxies.
    """
    ip = request.client.host if request.client else None
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded and ip in settings.trusted_proxies:
        ip = forwarded.split(",")[0].strip() or ip
    return AuditContext(ip_address=ip, user_agent=request.headers.get("user-agent"))


def get_bearer_token(authorization: str | None = Header(default=None)) -> str:
    """
    Extract the token from `Authorization: Bearer <token>`.

    Raises:
        MissingToken (401): header absent or not a bearer credential
    """
    token = None
    if authorization and authorization.lower().startswith("bearer "):
        token = authorization.split(" ", 1)[1].strip()
    if not token:
        raise MissingToken()
    return token

async def get_current_principal(token: str = Depends(get_bearer_token)) -> Principal:
    """
    FastAPI dependency guarding every protected endpoint.

    Checks, in order:
    1. signature and expiry of the access token (InvalidToken, 401)
    2. the account still exists and this exact token is its current access
       token (SessionExpired, 401). A later login elsewhere overwrites the
       stored token, so an older, unexpired token is rejected here.

    Returns:
        Principal: id, email, name and role from the token claims

    Usage:
        @router.get("/protected")
        async def protected_route(me: Principal = Depends(get_current_principal)):
            return {"user_id": me.id}
    """
    claims = verify_access_token(token)

    user = await User.get_or_none(id=claims.get("id"))
    if user is None or user.access_token != token:
        raise SessionExpired()

    return Principal(
        id=str(claims["id"]),
        email=claims.get("email"),
        name=claims.get("name"),
        role=claims.get("role", "user"),
    )

def require_role(principal: Principal, role: str) -> Principal:
    """
    Raise Forbidden (403) unless the principal holds exactly `role`.
    """
    if principal.role != role:
        raise Forbidden("Admin access required" if role == ROLE_ADMIN else "Access denied")
    return principal

async def require_admin(current: Principal = Depends(get_current_principal)) -> Principal:
    """
    FastAPI dependency for admin-only endpoints (user listing, deletion,
    role changes, cross-user log access, log cleanup).
    """
    return require_role(current, ROLE_ADMIN)

def ensure_self_or_admin(current: Principal, user_id: str, message: str = "Forbidden") -> None:
    """
    Raise Forbidden (403) when a non-admin targets another account.
    Checked before any lookup, so the outcome does not reveal whether the target exists.
    """
    if current.is_admin:
        return
    try:
        target = normalize_user_id(user_id)
    except NotFound:
        target = None
    if target != current.id:
        raise Forbidden(message)

def normalize_user_id(user_id: str) -> str:
    """
    Canonical string form of a user id from a path/query parameter.

    Raises:
        NotFound (404): not a UUID, so no account can match
    """
    try:
        return str(uuid.UUID(str(user_id)))
    except ValueError as exc:
        raise NotFound("User not found") from exc
