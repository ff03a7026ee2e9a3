# nextlevel/schemas/user.py
"""
Pydantic schemas for user management endpoints.
Defines request/response models for listing, reading, updating users and
registering push device tokens.
"""
from pydantic import BaseModel, Field
from typing import Optional, List, Literal

# ========== Common return model ==========
class UserBase(BaseModel):
    """
    User information returned by user management endpoints.
    """
    id: str
    email: str
    name: Optional[str] = None
    role: Literal["user", "admin"]
    createdAt: Optional[str] = Field(default=None, alias="created_at")  # ISO timestamp
    updatedAt: Optional[str] = Field(default=None, alias="updated_at")

    class Config:
        """Pydantic configuration: allow both field name and alias for population."""
        populate_by_name = True


class UserListOut(BaseModel):
    """
    Paginated user list (admin only).
    """
    items: List[UserBase]
    offset: int
    limit: int
    total: int


class ProfileSummary(BaseModel):
    id: str
    name: Optional[str] = None
    lastName: Optional[str] = None
    avatar: Optional[str] = None
    githubLink: Optional[str] = None


class UserDetailOut(BaseModel):
    """
    Single user, with the profile summary when one exists.
    """
    user: UserBase
    profile: Optional[ProfileSummary] = None


# ========== Input model ==========
class UserUpdateIn(BaseModel):
    """
    Partial update; only provided fields change.
    role may only be changed by an admin.
    """
    name: Optional[str] = None
    email: Optional[str] = None
    role: Optional[Literal["user", "admin"]] = None


class DeviceTokenIn(BaseModel):
    """
    Push device registration for the current user.
    """
    deviceToken: str = Field(min_length=1)
