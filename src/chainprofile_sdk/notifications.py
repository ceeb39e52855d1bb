"""Short-lived user-facing notifications."""

import asyncio
from collections.abc import Callable

from .types import Notification, Severity

NotificationListener = Callable[[Notification | None], None]


class NotificationSequencer:
    """Holds the single current notification and hides it after a delay.

    Posting while a notification is visible replaces it outright; the
    replaced notification's pending hide is cancelled. Persistent
    notifications stay visible until replaced or dismissed.

    Must be used from within a running event loop.
    """

    def __init__(self, delay: float = 3.0):
        """Initialize the sequencer.

        Args:
            delay: Seconds a notification stays visible
        """
        self._delay = delay
        self._current: Notification | None = None
        self._hide_handle: asyncio.TimerHandle | None = None
        self._listeners: list[NotificationListener] = []

    @property
    def current(self) -> Notification | None:
        return self._current

    def add_listener(self, listener: NotificationListener) -> None:
        """Register a callback invoked whenever the notification changes."""
        self._listeners.append(listener)

    def post(
        self,
        message: str,
        severity: Severity = Severity.INFO,
        persistent: bool = False,
    ) -> Notification:
        """Show a notification, replacing any current one.

        Args:
            message: Human-readable text
            severity: info, success or error
            persistent: Keep visible until replaced or dismissed

        Returns:
            The notification now visible
        """
        self._cancel_hide()
        notification = Notification(
            message=message, severity=severity, persistent=persistent
        )
        if not persistent:
            loop = asyncio.get_running_loop()
            self._hide_handle = loop.call_later(self._delay, self._hide, notification)
        self._set(notification)
        return notification

    def dismiss(self) -> None:
        """Hide the current notification now."""
        self._cancel_hide()
        if self._current is not None and self._current.visible:
            self._set(self._current.model_copy(update={"visible": False}))

    def _hide(self, notification: Notification) -> None:
        # a replaced notification's timer must not touch its successor
        if self._current is not notification:
            return
        self._hide_handle = None
        self._set(notification.model_copy(update={"visible": False}))

    def _cancel_hide(self) -> None:
        if self._hide_handle is not None:
            self._hide_handle.cancel()
            self._hide_handle = None

    def _set(self, notification: Notification | None) -> None:
        self._current = notification
        for listener in self._listeners:
            listener(notification)
