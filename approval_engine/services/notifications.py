"""Transient user-facing notifications (toasts)"""

import asyncio
import itertools
import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from approval_engine.config import settings
from approval_engine.domain.models import Severity


@dataclass(frozen=True)
class Notification:
    id: int
    message: str
    severity: Severity
    created_at: float
    expires_at: Optional[float]  # None: stays until dismissed


class NotificationQueue:
    """
    Insertion-ordered toasts that remove themselves after their duration.

    Expiry is scheduled on the running event loop when there is one, and is
    also enforced against ``clock`` whenever the queue is read, so entries
    disappear even if no loop ever runs the timer.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic, default_duration_ms: Optional[int] = None):
        self.clock = clock
        self.default_duration_ms = (
            default_duration_ms if default_duration_ms is not None else settings.notification_duration_ms
        )
        self._ids = itertools.count(1)
        self._entries: Dict[int, Notification] = {}
        self._timers: Dict[int, asyncio.TimerHandle] = {}

    def push(
        self,
        message: str,
        severity: Severity = Severity.SUCCESS,
        duration_ms: Optional[int] = None,
    ) -> Notification:
        """Add a toast; ``duration_ms <= 0`` keeps it until dismissed"""
        if duration_ms is None:
            duration_ms = self.default_duration_ms
        now = self.clock()
        notification = Notification(
            id=next(self._ids),
            message=message,
            severity=severity,
            created_at=now,
            expires_at=now + duration_ms / 1000 if duration_ms > 0 else None,
        )
        self._entries[notification.id] = notification

        if duration_ms > 0:
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                loop = None
            if loop is not None:
                self._timers[notification.id] = loop.call_later(duration_ms / 1000, self._expire, notification.id)

        return notification

    def _expire(self, notification_id: int) -> None:
        self._timers.pop(notification_id, None)
        self._entries.pop(notification_id, None)

    def dismiss(self, notification_id: int) -> bool:
        """Remove early; False if it already expired or never existed"""
        timer = self._timers.pop(notification_id, None)
        if timer is not None:
            timer.cancel()
        return self._entries.pop(notification_id, None) is not None

    def _prune(self) -> None:
        now = self.clock()
        for notification in list(self._entries.values()):
            if notification.expires_at is not None and notification.expires_at <= now:
                self.dismiss(notification.id)

    def active(self) -> List[Notification]:
        self._prune()
        return list(self._entries.values())

    def clear(self) -> None:
        for timer in self._timers.values():
            timer.cancel()
        self._timers.clear()
        self._entries.clear()

    def __len__(self) -> int:
        return len(self.active())
