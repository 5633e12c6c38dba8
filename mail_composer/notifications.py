"""
Transient notification queue

Messages are shown in the order they were pushed and each one expires on its
own timer. The queue is owned by the application (see main.lifespan) and
passed explicitly to whatever needs to enqueue or read messages.
"""

import logging
import time
from collections import deque
from dataclasses import dataclass
from typing import Callable, Optional

from .config import NOTIFICATION_TTL_SECONDS

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Notification:
    message: str
    expires_at: float


class NotificationQueue:
    """FIFO of short-lived user-facing messages"""

    def __init__(
        self,
        ttl_seconds: float = NOTIFICATION_TTL_SECONDS,
        clock: Optional[Callable[[], float]] = None,
    ):
        self.ttl_seconds = ttl_seconds
        self._clock = clock or time.monotonic
        self._items: deque[Notification] = deque()

    def push(self, message: str) -> Notification:
        self.prune()
        notification = Notification(message=message, expires_at=self._clock() + self.ttl_seconds)
        self._items.append(notification)
        logger.debug(f"Notification queued: {message}")
        return notification

    def prune(self) -> int:
        """Drop expired messages and return how many were removed"""
        now = self._clock()
        before = len(self._items)
        self._items = deque(n for n in self._items if n.expires_at > now)
        return before - len(self._items)

    def active(self) -> list[str]:
        self.prune()
        return [n.message for n in self._items]

    def clear(self) -> None:
        self._items.clear()

    def __len__(self) -> int:
        return len(self._items)
