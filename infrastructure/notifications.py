"""Notification publishers"""
from typing import List, Optional

import httpx
import structlog

from domain.events import NotificationEvent, NotificationPublisher
from infrastructure import config

logger = structlog.get_logger(__name__)


class HttpNotificationPublisher(NotificationPublisher):
    """POSTs events to the notification service's /notify endpoint"""

    def __init__(
        self,
        base_url: str,
        timeout: float = config.NOTIFICATION_TIMEOUT_SECONDS,
        client: Optional[httpx.AsyncClient] = None
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = client

    async def publish(self, event: NotificationEvent) -> None:
        payload = {
            "type": event.type.value,
            "to": event.to,
            "subject": event.subject,
            "message": event.message,
            "metadata": event.metadata,
        }
        if self._client is not None:
            response = await self._client.post(f"{self.base_url}/notify", json=payload)
        else:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(f"{self.base_url}/notify", json=payload)
        response.raise_for_status()


class LoggingNotificationPublisher(NotificationPublisher):
    """Used when no notification service is configured"""

    async def publish(self, event: NotificationEvent) -> None:
        logger.info(
            "Notification",
            type=event.type.value,
            to=event.to,
            subject=event.subject,
            metadata=event.metadata
        )


class RecordingNotificationPublisher(NotificationPublisher):
    """Keeps published events in memory"""

    def __init__(self):
        self.events: List[NotificationEvent] = []

    async def publish(self, event: NotificationEvent) -> None:
        self.events.append(event)


def build_publisher(base_url: Optional[str] = config.NOTIFICATION_SERVICE_URL) -> NotificationPublisher:
    if base_url:
        return HttpNotificationPublisher(base_url)
    return LoggingNotificationPublisher()
