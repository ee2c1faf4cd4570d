from abc import ABC, abstractmethod
from typing import Any, Dict

from packages.billing.models.domain.enums import NotificationKind


class NotificationProviderInterface(ABC):
    """Delivers subscription notifications to users.

    Delivery is best effort; callers never wait on it inside a transaction.
    """

    @abstractmethod
    async def notify(
        self, user_id: int, kind: NotificationKind, payload: Dict[str, Any]
    ) -> bool:
        """Send one notification. Returns False when it could not be handed off."""
        pass
