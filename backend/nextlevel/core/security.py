# nextlevel/core/security.py
"""
Security module for authentication.
Handles password hashing and the two JWT token classes (access / refresh):
creation, verification and the unverified decode used by logout.
"""
import datetime as dt
import uuid

import jwt  # PyJWT
from passlib.context import CryptContext

from nextlevel.config import settings
from nextlevel.core.errors import InvalidRefreshToken, InvalidToken

# Password hashing context
# Argon2 is salted and cost-parameterized; the hash string embeds both
pwd_context = CryptContext(
    schemes=["argon2"],
    deprecated="auto",
)

# JWT configuration (loaded once at startup, no rotation)
JWT_SECRET = settings.jwt_secret
JWT_REFRESH_SECRET = settings.jwt_refresh_secret
JWT_ALG = "HS256"  # JWT signing algorithm (HMAC SHA-256)

# Token lifetimes are policy constants, not per-call options
ACCESS_TOKEN_EXPIRE_HOURS = 24
REFRESH_TOKEN_EXPIRE_DAYS = 7

def hash_password(plain: str) -> str:
    """
    Hash a plain text password using Argon2.

    Args:
        plain: Plain text password to hash

    Returns:
        Hashed password string (safe to store in database)
    """
    return pwd_context.hash(plain)

def verify_password(plain: str, hashed: str | None) -> bool:
    """
    Verify a plain text password against a stored hash.

    Accounts created through external login have no hash; those never match.
    """
    if not hashed:
        return False
    return pwd_context.verify(plain, hashed)

def _sign(claims: dict, secret: str, lifetime: dt.timedelta) -> str:
    now = dt.datetime.now(dt.timezone.utc)
    payload = {
        **claims,
        "iat": now,
        "exp": now + lifetime,
        # Two pairs minted in the same second must still differ
        "jti": uuid.uuid4().hex,
    }
    return jwt.encode(payload, secret, algorithm=JWT_ALG)

def issue_access_token(user) -> str:
    """
    Create an access token for a user account.

    The token embeds id, email, name and role so the authorization layer can
    make role decisions without another lookup.

    Args:
        user: Account with id, email, name and role attributes

    Returns:
        Encoded JWT string valid for ACCESS_TOKEN_EXPIRE_HOURS
    """
    claims = {
        "id": str(user.id),
        "email": user.email,
        "name": user.name,
        "role": user.role,
    }
    return _sign(claims, JWT_SECRET, dt.timedelta(hours=ACCESS_TOKEN_EXPIRE_HOURS))

def issue_refresh_token(user) -> str:
    """
    Create a refresh token for a user account.

    Only id and email are embedded; a leaked refresh token reveals as little
    as possible.
    """
    claims = {"id": str(user.id), "email": user.email}
    return _sign(claims, JWT_REFRESH_SECRET, dt.timedelta(days=REFRESH_TOKEN_EXPIRE_DAYS))

def verify_access_token(token: str) -> dict:
    """
    Decode and validate an access token.

    Raises:
        InvalidToken: bad signature, malformed token or expired
    """
    try:
        return jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALG])
    except jwt.PyJWTError as exc:
        raise InvalidToken() from exc

def verify_refresh_token(token: str) -> dict:
    """
    Decode and validate a refresh token (signed with the refresh secret).

    Raises:
        InvalidRefreshToken: bad signature, malformed token or expired
    """
    try:
        return jwt.decode(token, JWT_REFRESH_SECRET, algorithms=[JWT_ALG])
    except jwt.PyJWTError as exc:
        raise InvalidRefreshToken() from exc

def decode_unverified(token: str) -> dict:
    # Signature and expiry are not checked; the caller only needs the embedded id
    try:
        return jwt.decode(
            token,
            options={"verify_signature": False, "verify_exp": False},
            algorithms=[JWT_ALG],
        )
    except jwt.PyJWTError as exc:
        raise InvalidToken() from exc
