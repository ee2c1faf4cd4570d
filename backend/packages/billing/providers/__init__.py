"""Billing providers - abstracted external platform integrations."""

from packages.billing.providers.payment.factory import get_payment_provider
from packages.billing.providers.notification.factory import get_notification_provider

__all__ = [
    "get_payment_provider",
    "get_notification_provider",
]
