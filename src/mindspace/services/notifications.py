"""Ephemeral, auto-expiring status messages."""
import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Literal

from mindspace.services.exceptions import ForumError

logger = logging.getLogger(__name__)

NotificationKind = Literal["success", "error"]

DEFAULT_ERROR_MESSAGE = "Something went wrong"


@dataclass(frozen=True)
class Notification:
    """A single status message."""

    message: str
    kind: NotificationKind = "success"
    created_at: float = field(default_factory=time.monotonic)


Listener = Callable[[Notification | None], None]


class NotificationChannel:
    """
    Holds at most one active notification.

    Each notify() replaces the current message and arms a fresh expiry timer.
    Only the latest timer can clear the channel: an older notification's
    timer never erases a newer message.
    """

    def __init__(self, ttl: float = 3.0) -> None:
        self.ttl = ttl
        self._current: Notification | None = None
        self._generation = 0
        self._timer: asyncio.TimerHandle | None = None
        self._listeners: list[Listener] = []

    @property
    def current(self) -> Notification | None:
        """The visible notification, or None once it has expired."""
        if self._current is not None and time.monotonic() - self._current.created_at >= self.ttl:  # noqa: E501
            self._expire(self._generation)
        return self._current

    def notify(self, message: str, kind: NotificationKind = "success") -> Notification:
        """Show a message, replacing any currently shown one."""
        notification = Notification(message=message, kind=kind)
        self._generation += 1
        self._current = notification
        self._arm_timer()
        logger.debug("notify kind=%s message=%s", kind, message)
        self._emit(notification)
        return notification

    def notify_error(
        self, error: BaseException, fallback: str = DEFAULT_ERROR_MESSAGE,
    ) -> Notification:
        """
        Show an error as user-visible text.

        Uses the error's message when it has one, otherwise the fallback.
        """
        message = error.message if isinstance(error, ForumError) else str(error)
        return self.notify(message or fallback, kind="error")

    def clear(self) -> None:
        """Remove the current notification immediately."""
        self._cancel_timer()
        self._expire(self._generation)

    def subscribe(self, listener: Listener) -> None:
        """Call ``listener`` with the new notification (or None) on every change."""
        self._listeners.append(listener)

    def unsubscribe(self, listener: Listener) -> None:
        """Stop calling ``listener``."""
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _arm_timer(self) -> None:
        self._cancel_timer()
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No event loop: expiry is still enforced lazily by `current`
            return
        self._timer = loop.call_later(self.ttl, self._expire, self._generation)

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _expire(self, generation: int) -> None:
        if generation != self._generation or self._current is None:
            return
        self._current = None
        self._timer = None
        self._emit(None)

    def _emit(self, notification: Notification | None) -> None:
        for listener in list(self._listeners):
            listener(notification)
