"""
Push Notification Dispatch

Best-effort topic / device broadcasts through an HTTP relay (e.g. an FCM
gateway). The client is built once at startup and handed to whoever needs it;
there is no module-level app singleton.
"""
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional

import httpx

logger = logging.getLogger("uvicorn.error")


@dataclass
class NotificationResult:
    """Outcome of one dispatch"""
    success: bool
    message_id: Optional[str] = None
    error: Optional[str] = None


@dataclass
class MulticastResult:
    """Per-device outcomes of one multicast, in the order of the tokens given"""
    responses: list[NotificationResult] = field(default_factory=list)

    @property
    def success_count(self) -> int:
        return sum(1 for r in self.responses if r.success)

    @property
    def failure_count(self) -> int:
        return len(self.responses) - self.success_count


@dataclass
class NotificationMessage:
    title: str
    body: str
    data: dict[str, str] = field(default_factory=dict)


class Notifier(ABC):
    """Notification dispatch interface"""

    @abstractmethod
    async def send_topic(self, topic: str, message: NotificationMessage) -> NotificationResult:
        """Broadcast to every device subscribed to topic"""
        pass

    @abstractmethod
    async def send_to_device(self, device_token: str, message: NotificationMessage) -> NotificationResult:
        """Send to a single registered device"""
        pass

    async def send_multicast(self, device_tokens: list[str], message: NotificationMessage) -> MulticastResult:
        """Send to several devices; one failed device does not stop the rest"""
        responses = [await self.send_to_device(token, message) for token in device_tokens]
        return MulticastResult(responses=responses)

    @abstractmethod
    def is_available(self) -> bool:
        pass

    async def aclose(self) -> None:
        pass


class NullNotifier(Notifier):
    """Used when no relay is configured: every send is a logged no-op."""

    async def send_topic(self, topic: str, message: NotificationMessage) -> NotificationResult:
        logger.info("[notify] relay not configured, skip topic=%s", topic)
        return NotificationResult(success=False, error="notifications disabled")

    async def send_to_device(self, device_token: str, message: NotificationMessage) -> NotificationResult:
        logger.info("[notify] relay not configured, skip device send")
        return NotificationResult(success=False, error="notifications disabled")

    def is_available(self) -> bool:
        return False


class HttpRelayNotifier(Notifier):
    """
    Sends messages as JSON to a notification relay.

    Payload shape mirrors an FCM message: {"topic"|"token", "notification": {...}, "data": {...}}.
    Transport errors are returned as a failed NotificationResult, never raised.
    """

    def __init__(self, base_url: str, api_key: Optional[str] = None, timeout: float = 5.0,
                 client: Optional[httpx.AsyncClient] = None):
        headers = {"content-type": "application/json"}
        if api_key:
            headers["authorization"] = f"Bearer {api_key}"
        self._client = client or httpx.AsyncClient(base_url=base_url, headers=headers, timeout=timeout)

    async def _post(self, payload: dict) -> NotificationResult:
        try:
            resp = await self._client.post("/messages", json=payload)
            resp.raise_for_status()
            body = resp.json() if resp.content else {}
            return NotificationResult(success=True, message_id=body.get("name") or body.get("messageId"))
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("[notify] dispatch failed: %s", e)
            return NotificationResult(success=False, error=str(e))

    @staticmethod
    def _notification(message: NotificationMessage) -> dict:
        return {
            "notification": {"title": message.title, "body": message.body},
            "data": {k: str(v) for k, v in message.data.items()},
        }

    async def send_topic(self, topic: str, message: NotificationMessage) -> NotificationResult:
        return await self._post({"topic": topic, **self._notification(message)})

    async def send_to_device(self, device_token: str, message: NotificationMessage) -> NotificationResult:
        return await self._post({"token": device_token, **self._notification(message)})

    def is_available(self) -> bool:
        return True

    async def aclose(self) -> None:
        await self._client.aclose()


def build_notifier(settings) -> Notifier:
    """
    Build the notifier for this process from settings.

    Returns:
    - HttpRelayNotifier when NOTIFY_API_URL is set, NullNotifier otherwise
    """
    if not settings.notify_api_url:
        return NullNotifier()
    return HttpRelayNotifier(
        base_url=settings.notify_api_url,
        api_key=settings.notify_api_key,
        timeout=settings.notify_timeout_sec,
    )
