# nextlevel/api/v1/routers/auth.py
from fastapi import APIRouter, Depends, status

from nextlevel.api.v1.deps import (
    Principal,
    get_audit_context,
    get_audit_logger,
    get_bearer_token,
    get_current_principal,
    get_google_oauth,
    get_session_manager,
)
from nextlevel.schemas.auth import (
    LoginRequest,
    RefreshIn,
    RefreshOut,
    RegisterIn,
    SessionOut,
    VerifyOut,
)
from nextlevel.services import audit_logger as audit
from nextlevel.services.audit_logger import AuditContext, AuditLogger
from nextlevel.services.google_oauth import GoogleOAuthClient
from nextlevel.services.session_manager import ExternalProfile, SessionManager, SessionResult

router = APIRouter(prefix="/auth", tags=["auth"])

def _session_out(result: SessionResult) -> dict:
    u = result.user
    return {
        "user": {"id": str(u.id), "email": u.email, "name": u.name, "role": u.role},
        "accessToken": result.access_token,
        "refreshToken": result.refresh_token,
    }

@router.post("/register", response_model=SessionOut, status_code=status.HTTP_201_CREATED)
async def register(
    body: RegisterIn,
    sessions: SessionManager = Depends(get_session_manager),
    ctx: AuditContext = Depends(get_audit_context),
):
    """
    Register a new account and log it in.

    Returns:
        SessionOut: user plus accessToken / refreshToken (already stored as
        the account's current session)

    Error codes:
        - BAD_REQUEST (400): missing email or password
        - EMAIL_EXISTS (400): email already registered
    """
    result = await sessions.register(body.email, body.password, body.name, context=ctx)
    return _session_out(result)

@router.post("/login", response_model=SessionOut)
async def login(
    payload: LoginRequest,
    sessions: SessionManager = Depends(get_session_manager),
    ctx: AuditContext = Depends(get_audit_context),
):
    """
    Authenticate with email and password.

    A successful login replaces the account's stored token pair, so tokens
    handed out by any earlier login stop working immediately.

    Raises:
        AUTH_INVALID_CREDENTIALS (401): unknown email, no password set, or wrong password
    """
    result = await sessions.login(payload.email, payload.password, context=ctx)
    return _session_out(result)

@router.get("/google/login")
async def google_login(oauth: GoogleOAuthClient = Depends(get_google_oauth)):
    """
    Return the Google consent URL the client should redirect to.
    """
    return {"success": True, "data": {"url": oauth.authorization_url()}}

@router.get("/google/callback", response_model=SessionOut)
async def google_callback(
    code: str,
    oauth: GoogleOAuthClient = Depends(get_google_oauth),
    sessions: SessionManager = Depends(get_session_manager),
    ctx: AuditContext = Depends(get_audit_context),
):
    """
    Complete Google sign-in: exchange the code, then log in, link the Google
    id onto an existing account with the same email, or create a new account.
    """
    profile = ExternalProfile.from_provider(await oauth.fetch_profile(code))
    result = await sessions.login_or_link_external(profile, context=ctx)
    return _session_out(result)

@router.post("/refresh-token", response_model=RefreshOut)
async def refresh_token(
    body: RefreshIn,
    sessions: SessionManager = Depends(get_session_manager),
    ctx: AuditContext = Depends(get_audit_context),
):
    """
    Mint a new access token from the current refresh token.

    The previous access token stops working; the refresh token stays the same.

    Raises:
        AUTH_REQUIRED (401): no refresh token in body
        AUTH_INVALID_REFRESH_TOKEN (401): bad signature or expired
        AUTH_SESSION_MISMATCH (401): token belongs to a superseded session
    """
    access = await sessions.refresh(body.refreshToken, context=ctx)
    return {"accessToken": access}

@router.post("/logout")
async def logout(
    token: str = Depends(get_bearer_token),
    _: Principal = Depends(get_current_principal),
    sessions: SessionManager = Depends(get_session_manager),
    ctx: AuditContext = Depends(get_audit_context),
):
    """
    End the current session: clears the stored access/refresh tokens and the
    push device token. Any further request with the old token gets 401.

    The gate runs first, so a token from a displaced session cannot clear the
    session that replaced it.
    """
    await sessions.logout(token, context=ctx)
    return {"success": True, "message": "Logged out successfully"}

@router.get("/verify", response_model=VerifyOut)
async def verify(
    me: Principal = Depends(get_current_principal),
    audit_log: AuditLogger = Depends(get_audit_logger),
    ctx: AuditContext = Depends(get_audit_context),
):
    """
    Confirm the bearer token is valid and still the account's current session.
    """
    await audit_log.record(me.id, audit.TOKEN_VERIFY, "Verified token validity", ctx)
    return {"valid": True, "user": {"id": me.id, "email": me.email, "name": me.name, "role": me.role}}

@router.get("/me")
async def me(me: Principal = Depends(get_current_principal)):
    """
    Current principal, as embedded in the access token.
    """
    return {"success": True, "data": {"id": me.id, "email": me.email, "name": me.name, "role": me.role}}
