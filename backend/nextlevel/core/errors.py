# nextlevel/core/errors.py
"""
Application error taxonomy.

Services raise these instead of HTTPException so they stay usable outside a
request. `main.py` registers a handler that renders any AppError as
`{"detail": {"code": ..., "message": ...}}` with the class status code.
"""
from fastapi import status


class AppError(Exception):
    """Base class for errors that map onto a client-facing status code."""

    code: str = "INTERNAL_ERROR"
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Unexpected error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_detail(self) -> dict:
        return {"code": self.code, "message": self.message}


# ---- 401: authentication ----
class MissingToken(AppError):
    code = "AUTH_REQUIRED"
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Access token required"


class InvalidToken(AppError):
    code = "AUTH_INVALID_TOKEN"
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Invalid token"


class InvalidRefreshToken(AppError):
    code = "AUTH_INVALID_REFRESH_TOKEN"
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Invalid refresh token"


class SessionMismatch(AppError):
    code = "AUTH_SESSION_MISMATCH"
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Refresh token does not belong to the current session"


class SessionExpired(AppError):
    code = "AUTH_SESSION_EXPIRED"
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Session expired or logged in elsewhere"


class InvalidCredentials(AppError):
    code = "AUTH_INVALID_CREDENTIALS"
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Invalid credentials"


# ---- 403 ----
class Forbidden(AppError):
    code = "FORBIDDEN"
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Access denied"


# ---- 400 / 404 ----
class DuplicateAccount(AppError):
    code = "EMAIL_EXISTS"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "User already exists"


class ValidationFailed(AppError):
    code = "BAD_REQUEST"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request"


class NotFound(AppError):
    code = "NOT_FOUND"
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Resource not found"


# ---- 502: outbound dependency ----
class NotificationFailed(AppError):
    code = "NOTIFICATION_FAILED"
    status_code = status.HTTP_502_BAD_GATEWAY
    default_message = "Failed to send notification"
