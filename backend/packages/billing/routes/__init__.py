"""Billing API routes."""

from packages.billing.routes import plans, subscriptions, payments, webhooks

__all__ = ["plans", "subscriptions", "payments", "webhooks"]
