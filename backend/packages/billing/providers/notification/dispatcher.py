"""
Fire-and-forget notification dispatch.

Notifications are sent after the unit of work commits, as detached tasks;
a delivery failure is logged and never reaches the caller.
"""

import asyncio
from typing import Any, Dict, Optional, Set

from common.core.otel_axiom_exporter import get_logger
from packages.billing.models.domain.enums import NotificationKind
from .factory import get_notification_provider
from .interface import NotificationProviderInterface

logger = get_logger(__name__)


class NotificationDispatcher:
    def __init__(self, provider: Optional[NotificationProviderInterface] = None):
        self.provider = provider or get_notification_provider()
        self._tasks: Set[asyncio.Task] = set()

    def dispatch(
        self,
        user_id: int,
        kind: NotificationKind,
        payload: Optional[Dict[str, Any]] = None,
    ) -> asyncio.Task:
        """Schedule a notification and return immediately."""
        task = asyncio.create_task(self._send(user_id, kind, payload or {}))
        # The loop only keeps weak references to tasks
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _send(
        self, user_id: int, kind: NotificationKind, payload: Dict[str, Any]
    ) -> None:
        try:
            await self.provider.notify(user_id, kind, payload)
        except Exception as e:
            logger.error(
                f"Notification {kind.value} for user {user_id} failed: {e}",
                exc_info=True,
                extra={"user_id": user_id, "kind": kind.value},
            )

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def drain(self) -> None:
        """Wait for in-flight notifications (shutdown and tests)."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)


_dispatcher: Optional[NotificationDispatcher] = None


def get_notification_dispatcher() -> NotificationDispatcher:
    """Process-wide dispatcher, created on first use."""
    global _dispatcher
    if _dispatcher is None:
        _dispatcher = NotificationDispatcher()
    return _dispatcher
