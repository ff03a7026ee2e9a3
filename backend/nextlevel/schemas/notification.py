# nextlevel/schemas/notification.py
"""
Pydantic schemas for the admin notification dispatch endpoints.
"""
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

class NotificationIn(BaseModel):
    title: str = Field(min_length=1)
    body: str = Field(min_length=1)
    data: Dict[str, str] = Field(default_factory=dict)

class SendToUserIn(NotificationIn):
    """
    Direct send; token must be the device token stored for userId.
    """
    userId: str
    token: str = Field(min_length=1)

class MulticastIn(NotificationIn):
    tokens: List[str] = Field(min_length=1)

class TopicIn(NotificationIn):
    topic: str = Field(min_length=1)

class SendOut(BaseModel):
    message: str
    messageId: Optional[str] = None

class DeviceResultOut(BaseModel):
    success: bool
    messageId: Optional[str] = None
    error: Optional[str] = None

class MulticastOut(BaseModel):
    message: str
    successCount: int
    failureCount: int
    responses: List[DeviceResultOut]
