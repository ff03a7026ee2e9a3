# nextlevel/schemas/activity_log.py
"""
Pydantic schemas for activity log endpoints.
"""
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, Field

class ActivityUserOut(BaseModel):
    """Minimal identity attached to entries in the admin-wide listing."""
    id: str
    email: str
    name: Optional[str] = None

class ActivityLogOut(BaseModel):
    id: str
    userId: Optional[str] = None
    action: str
    description: Optional[str] = None
    ipAddress: Optional[str] = None
    userAgent: Optional[str] = None
    metadata: Optional[Dict[str, Union[bool, int, float, str]]] = None
    createdAt: Optional[str] = None
    user: Optional[ActivityUserOut] = None

class ActivityLogListOut(BaseModel):
    items: List[ActivityLogOut]
    offset: int
    limit: int

class CleanupIn(BaseModel):
    """Retention threshold; entries strictly older than this many days are removed."""
    daysOld: Optional[int] = Field(default=None, ge=0, le=3650)

class CleanupOut(BaseModel):
    deleted: int
    message: str
