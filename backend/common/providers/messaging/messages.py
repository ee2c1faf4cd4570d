from datetime import datetime
from typing import Any, Dict

from pydantic import BaseModel, Field

from common.db.base import utcnow


class SubscriptionNotificationMessage(BaseModel):
    """Message consumed by the notification delivery service.

    kind is one of packages.billing.models.domain.enums.NotificationKind;
    payload is kind specific and JSON serializable.
    """

    user_id: int
    kind: str
    payload: Dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=utcnow)
