# nextlevel/services/session_manager.py
"""
Session Manager

Orchestrates the unauthenticated entry points (register, login, external
login, refresh) plus logout against the credential store and the token codec.

Single active session: every successful login/registration/refresh overwrites
the account's stored token pointers, so any previously issued token stops
passing the authorization gate even before it expires. Concurrent logins are
last-write-wins.
"""
import logging
import uuid
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from tortoise.exceptions import IntegrityError

from nextlevel.core.errors import (
    DuplicateAccount,
    InvalidCredentials,
    InvalidRefreshToken,
    MissingToken,
    InvalidToken,
    SessionMismatch,
    ValidationFailed,
)
from nextlevel.core.security import (
    decode_unverified,
    hash_password,
    issue_access_token,
    issue_refresh_token,
    verify_password,
    verify_refresh_token,
)
from nextlevel.models.user import ROLE_USER, User
from nextlevel.services import audit_logger as audit
from nextlevel.services.audit_logger import AuditContext, AuditLogger

logger = logging.getLogger("uvicorn.error")


@dataclass(frozen=True)
class ExternalProfile:
    """
    Identity handed over by a federated login provider.
    Only the subject id, the first email and the display name are used.
    """
    external_id: str
    email: Optional[str]
    display_name: Optional[str] = None

    @classmethod
    def from_provider(cls, payload: Mapping[str, Any]) -> "ExternalProfile":
        """
        Build from a provider profile shaped like
        {"id" | "externalId": ..., "emails": [{"value": ...}], "displayName": ...}.
        """
        external_id = payload.get("externalId") or payload.get("id")
        emails = payload.get("emails") or []
        email = emails[0].get("value") if emails else None
        return cls(
            external_id=str(external_id) if external_id else "",
            email=email,
            display_name=payload.get("displayName"),
        )


@dataclass(frozen=True)
class SessionResult:
    """Account plus the freshly issued token pair."""
    user: User
    access_token: str
    refresh_token: str


class SessionManager:
    """
    Use-cases that create, extend or end a session.

    Each operation records exactly one audit entry (success or failure)
    through the injected AuditLogger.
    """

    def __init__(self, audit_logger: AuditLogger):
        self.audit = audit_logger

    # ---------------- internals ----------------
    @staticmethod
    async def _start_session(user: User) -> SessionResult:
        # Overwrite (never append) the stored pair; this evicts any prior session
        access = issue_access_token(user)
        refresh = issue_refresh_token(user)
        await User.filter(id=user.id).update(access_token=access, refresh_token=refresh)
        user.access_token = access
        user.refresh_token = refresh
        return SessionResult(user=user, access_token=access, refresh_token=refresh)

    # ---------------- register ----------------
    async def register(
        self,
        email: Optional[str],
        password: Optional[str],
        name: Optional[str] = None,
        context: Optional[AuditContext] = None,
    ) -> SessionResult:
        """
        Create a password account and log it in.

        Raises:
            ValidationFailed: email or password missing
            DuplicateAccount: email already registered
        """
        try:
            if not email or not password:
                raise ValidationFailed("email/password required")
            if await User.filter(email=email).exists():
                raise DuplicateAccount()
            try:
                user = await User.create(
                    email=email,
                    password_hash=hash_password(password),
                    name=name,
                    role=ROLE_USER,
                )
            except IntegrityError as exc:
                # Lost a race with a concurrent registration of the same email
                raise DuplicateAccount() from exc
        except (ValidationFailed, DuplicateAccount) as exc:
            await self.audit.record(
                None,
                audit.REGISTER_FAILED,
                f"Failed registration attempt for email: {email}",
                context,
                {"email": email, "name": name, "reason": exc.code},
            )
            raise

        result = await self._start_session(user)
        logger.info("[auth] registered user_id=%s", user.id)
        await self.audit.record(
            user.id,
            audit.REGISTER,
            "User registered successfully",
            context,
            {"email": email, "name": name},
        )
        return result

    # ---------------- login ----------------
    async def login(
        self,
        email: str,
        password: str,
        context: Optional[AuditContext] = None,
    ) -> SessionResult:
        """
        Password login. Evicts any previous session of the account.

        Raises:
            InvalidCredentials: unknown email, external-only account, or wrong password
        """
        user = await User.get_or_none(email=email) if email else None
        if user is None:
            reason = "account_not_found"
        elif not user.password_hash:
            reason = "no_password_set"
        elif not verify_password(password or "", user.password_hash):
            reason = "password_mismatch"
        else:
            reason = None

        if reason:
            await self.audit.record(
                None,
                audit.LOGIN_FAILED,
                f"Failed login attempt for email: {email}",
                context,
                {"email": email, "reason": reason},
            )
            raise InvalidCredentials()

        result = await self._start_session(user)
        await self.audit.record(user.id, audit.LOGIN, "User logged in successfully", context, {"email": email})
        return result

    # ---------------- external identity ----------------
    async def login_or_link_external(
        self,
        profile: ExternalProfile,
        context: Optional[AuditContext] = None,
    ) -> SessionResult:
        """
        Federated login.

        Lookup order: external id, then email (linking the external id onto the
        existing account), else create a new "user" account. A fresh token pair
        is issued in every branch.

        Raises:
            ValidationFailed: profile without subject id or email
            DuplicateAccount: lost a create race to an account held by another identity
        """
        if not profile.external_id:
            raise ValidationFailed("external profile has no subject id")

        linked = created = False
        user = await User.get_or_none(external_id=profile.external_id)
        if user is None:
            if not profile.email:
                raise ValidationFailed("external profile has no email")
            user = await User.get_or_none(email=profile.email)
            if user is not None:
                await User.filter(id=user.id).update(external_id=profile.external_id)
                user.external_id = profile.external_id
                linked = True
            else:
                try:
                    user = await User.create(
                        external_id=profile.external_id,
                        email=profile.email,
                        name=profile.display_name,
                        role=ROLE_USER,
                    )
                    created = True
                except IntegrityError:
                    # A concurrent callback (or registration) inserted the account first
                    user = await self._find_external_winner(profile)
                    linked = user.external_id != profile.external_id
                    if linked:
                        await User.filter(id=user.id).update(external_id=profile.external_id)
                        user.external_id = profile.external_id

        result = await self._start_session(user)
        await self.audit.record(
            user.id,
            audit.EXTERNAL_LOGIN,
            "User logged in with external identity",
            context,
            {"email": user.email, "linked": linked, "created": created},
        )
        return result

    @staticmethod
    async def _find_external_winner(profile: ExternalProfile) -> User:
        user = await User.get_or_none(external_id=profile.external_id)
        if user is None:
            user = await User.get_or_none(email=profile.email)
        if user is None or (user.external_id and user.external_id != profile.external_id):
            # Nothing to reuse, or the email belongs to another external identity
            raise DuplicateAccount()
        return user

    # ---------------- refresh ----------------
    async def refresh(
        self,
        refresh_token: Optional[str],
        context: Optional[AuditContext] = None,
    ) -> str:
        """
        Mint a new access token from the account's current refresh token.

        The refresh token itself is not rotated.

        Raises:
            MissingToken: no refresh token supplied
            InvalidRefreshToken: bad signature, malformed or expired
            SessionMismatch: account gone, or token is not its current refresh token
        """
        if not refresh_token:
            raise MissingToken("Refresh token required")

        try:
            claims = verify_refresh_token(refresh_token)
        except InvalidRefreshToken:
            await self.audit.record(
                None, audit.TOKEN_REFRESH_FAILED, "Rejected refresh token", context, {"reason": "invalid"}
            )
            raise

        user = await User.get_or_none(id=claims.get("id"))
        if user is None or user.refresh_token != refresh_token:
            await self.audit.record(
                user.id if user else None,
                audit.TOKEN_REFRESH_FAILED,
                "Refresh token from a superseded session",
                context,
                {"reason": "session_mismatch", "claimedUserId": claims.get("id")},
            )
            raise SessionMismatch()

        access = issue_access_token(user)
        await User.filter(id=user.id).update(access_token=access)
        await self.audit.record(user.id, audit.TOKEN_REFRESH, "Refreshed access token", context)
        return access

    # ---------------- logout ----------------
    async def logout(
        self,
        access_token: Optional[str],
        context: Optional[AuditContext] = None,
    ) -> str:
        """
        Clear the account's session: both tokens and the push device token.

        Only the embedded id is needed, so the signature is not checked here.

        Returns:
            The id of the account that was logged out

        Raises:
            MissingToken: no bearer token supplied
            InvalidToken: token is not a decodable JWT or carries no id
        """
        if not access_token:
            raise MissingToken("Token required for logout")
        user_id = decode_unverified(access_token).get("id")
        try:
            uuid.UUID(str(user_id))
        except ValueError as exc:
            raise InvalidToken() from exc

        await self.audit.record(user_id, audit.LOGOUT, "User logged out", context)
        await User.filter(id=user_id).update(access_token=None, refresh_token=None, device_token=None)
        return user_id
