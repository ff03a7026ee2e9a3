# nextlevel/api/v1/routers/notifications.py
from fastapi import APIRouter, Depends

from nextlevel.api.v1.deps import (
    Principal,
    get_notifier,
    normalize_user_id,
    require_admin,
)
from nextlevel.core.errors import NotFound, NotificationFailed, ValidationFailed
from nextlevel.models.user import User
from nextlevel.schemas.notification import (
    MulticastIn,
    MulticastOut,
    SendOut,
    SendToUserIn,
    TopicIn,
)
from nextlevel.services.notifications import NotificationMessage, Notifier

router = APIRouter(prefix="/notifications", tags=["notifications"])


def _message(body) -> NotificationMessage:
    return NotificationMessage(title=body.title, body=body.body, data=dict(body.data))


@router.post("/send", response_model=SendOut)
async def send_to_user(
    body: SendToUserIn,
    _: Principal = Depends(require_admin),
    notifier: Notifier = Depends(get_notifier),
):
    """
    Push to one user's registered device (admin only).

    Raises:
        NOT_FOUND (404): no such user
        BAD_REQUEST (400): token is not the device token stored for the user
        NOTIFICATION_FAILED (502): the relay rejected or could not deliver the message
    """
    user = await User.get_or_none(id=normalize_user_id(body.userId))
    if not user:
        raise NotFound("User not found")
    if user.device_token != body.token:
        raise ValidationFailed("Device token does not match the user's stored token")

    result = await notifier.send_to_device(body.token, _message(body))
    if not result.success:
        raise NotificationFailed(result.error)
    return {"message": "Notification sent successfully", "messageId": result.message_id}


@router.post("/send-multicast", response_model=MulticastOut)
async def send_multicast(
    body: MulticastIn,
    _: Principal = Depends(require_admin),
    notifier: Notifier = Depends(get_notifier),
):
    """
    Push to several devices (admin only). Per-device failures are reported,
    not raised.
    """
    result = await notifier.send_multicast(body.tokens, _message(body))
    return {
        "message": "Multicast notifications sent",
        "successCount": result.success_count,
        "failureCount": result.failure_count,
        "responses": [
            {"success": r.success, "messageId": r.message_id, "error": r.error} for r in result.responses
        ],
    }


@router.post("/send-topic", response_model=SendOut)
async def send_topic(
    body: TopicIn,
    _: Principal = Depends(require_admin),
    notifier: Notifier = Depends(get_notifier),
):
    result = await notifier.send_topic(body.topic, _message(body))
    if not result.success:
        raise NotificationFailed(result.error)
    return {"message": "Topic notification sent successfully", "messageId": result.message_id}
