# nextlevel/schemas/profile.py
"""
Pydantic schemas for profile endpoints.
"""
from typing import Optional

from pydantic import BaseModel

class ProfileIn(BaseModel):
    """
    Profile payload. All fields optional for create/upsert; a full update by
    id requires every field (checked in the router so the error names the field).
    """
    name: Optional[str] = None
    lastName: Optional[str] = None
    avatar: Optional[str] = None
    address: Optional[str] = None
    phoneNumber: Optional[str] = None
    province: Optional[str] = None
    city: Optional[str] = None
    district: Optional[str] = None
    githubLink: Optional[str] = None

class ProfileOut(ProfileIn):
    id: str
    userId: str
    createdAt: Optional[str] = None
    updatedAt: Optional[str] = None
