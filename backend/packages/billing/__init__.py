"""
Billing package - plan catalog, subscriptions, usage quotas and payments.

This package integrates with:
- Robokassa: Payment processing (redirect + result callback)
- Notification queue: subscription lifecycle notifications

Quota enforcement is handled locally via QuotaService on top of UsageService.
"""
