"""Tab platform and notification interfaces.

The tab platform is the host's API over live tabs: enumerate them and
discard (suspend) one.  Every call is a suspension point; implementations
raise ``PlatformError`` on failure.  Notifications are fire-and-forget
toasts whose failures callers swallow.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from loguru import logger

from tabvault.resilience.models.enums import NotificationKind
from tabvault.resilience.models.tab import LiveTab


@runtime_checkable
class TabPlatform(Protocol):
    async def query_tabs(self) -> list[LiveTab]:
        """Return every open tab across all windows."""
        ...

    async def discard(self, tab_id: int) -> None:
        """Release the tab's page state, keeping it in the tab strip."""
        ...


@runtime_checkable
class Notifier(Protocol):
    async def notify(self, kind: NotificationKind, title: str, message: str) -> None:
        """Show a user-visible notification."""
        ...


async def notify_quietly(notifier: Notifier | None, kind: NotificationKind, title: str, message: str) -> None:
    """Fire-and-forget notification: failures are logged and swallowed."""
    if notifier is None:
        return
    try:
        await notifier.notify(kind, title, message)
    except Exception as exc:
        logger.warning("Notification '{}' could not be shown: {}", kind, exc)
