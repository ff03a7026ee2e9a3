# nextlevel/schemas/auth.py
"""
Pydantic schemas for authentication endpoints.
Defines request/response models for register, login, refresh and verify.
"""
from typing import Optional

from pydantic import BaseModel

class RegisterIn(BaseModel):
    """
    Request model for password registration.
    Presence is checked by the session manager so a rejected attempt is audited.
    """
    email: Optional[str] = None
    password: Optional[str] = None  # Plain text, hashed server-side, never stored or logged
    name: Optional[str] = None

class LoginRequest(BaseModel):
    """
    Request model for password login.
    """
    email: str
    password: str

class RefreshIn(BaseModel):
    refreshToken: Optional[str] = None

class UserOut(BaseModel):
    """
    Basic account details returned by auth endpoints (no secrets).
    """
    id: str
    email: str
    name: Optional[str] = None
    role: str = "user"

class SessionOut(BaseModel):
    """
    Response for register / login / external login: the account and the
    token pair that is now its only valid session.
    """
    user: UserOut
    accessToken: str
    refreshToken: str

class RefreshOut(BaseModel):
    accessToken: str

class VerifyOut(BaseModel):
    valid: bool
    user: UserOut
