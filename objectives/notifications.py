"""
Notification backends.

The backend class is configured with ``OKR_NOTIFICATION_BACKEND``. Transport
(push, streams, mail) lives outside this project; a backend only has to
implement ``send``.
"""
import logging
from typing import Any, Dict, List

from django.conf import settings
from django.utils.module_loading import import_string

logger = logging.getLogger(__name__)


class BaseNotificationBackend:
    def send(self, user_id: int, event: str, data: Dict[str, Any]) -> None:
        raise NotImplementedError


class LoggingNotificationBackend(BaseNotificationBackend):
    def send(self, user_id: int, event: str, data: Dict[str, Any]) -> None:
        logger.info(f"Notify user {user_id}: {event} ({data.get('title', data.get('objective_id'))})")


class InMemoryNotificationBackend(BaseNotificationBackend):
    """Keeps every notification in ``outbox``; used by the test suite."""

    outbox: List[Dict[str, Any]] = []

    def send(self, user_id: int, event: str, data: Dict[str, Any]) -> None:
        self.outbox.append({"user_id": user_id, "event": event, "data": data})


def get_backend() -> BaseNotificationBackend:
    return import_string(settings.OKR_NOTIFICATION_BACKEND)()
