"""
NotificationSink adapters.

LoggingNotificationSink writes notifications to the log.
RecordingNotificationSink keeps the most recent ones in memory so the HTTP
API can hand them to the browser, which renders them as toasts.
"""

import logging
from collections import deque
from typing import Deque, List, Optional

from bookworm.domain.ports import NotificationSink
from bookworm.domain.value_objects import Notification, NotificationLevel

logger = logging.getLogger("bookworm.notifications")

_LOG_LEVELS = {
    NotificationLevel.SUCCESS: logging.INFO,
    NotificationLevel.INFO: logging.INFO,
    NotificationLevel.ERROR: logging.ERROR,
}


class LoggingNotificationSink(NotificationSink):
    """Logs every notification at a level matching its category."""

    def notify(self, notification: Notification) -> None:
        logger.log(
            _LOG_LEVELS[notification.level],
            f"[{notification.level.value}] {notification.message}",
        )


class RecordingNotificationSink(NotificationSink):
    """
    Bounded in-memory queue of notifications.

    The oldest entries are dropped once `max_pending` is reached. An
    optional downstream sink (usually the logging one) also receives every
    notification.
    """

    def __init__(
        self,
        max_pending: int = 100,
        downstream: Optional[NotificationSink] = None,
    ) -> None:
        if max_pending < 1:
            raise ValueError(f"max_pending must be >= 1, got {max_pending}")
        self._pending: Deque[Notification] = deque(maxlen=max_pending)
        self._downstream = downstream

    def notify(self, notification: Notification) -> None:
        self._pending.append(notification)
        if self._downstream is not None:
            self._downstream.notify(notification)

    def pending(self) -> List[Notification]:
        """Pending notifications, oldest first, without removing them."""
        return list(self._pending)

    def drain(self) -> List[Notification]:
        """Remove and return pending notifications, oldest first."""
        drained = list(self._pending)
        self._pending.clear()
        return drained

    def count(self, level: Optional[NotificationLevel] = None) -> int:
        if level is None:
            return len(self._pending)
        return sum(1 for n in self._pending if n.level == level)
