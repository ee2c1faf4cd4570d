from fastapi import APIRouter

from api.v1.routes import (
    health,
)
from packages.billing.routes import plans, subscriptions, payments, webhooks

api_router = APIRouter()

# Health check (no auth required)
api_router.include_router(health.router, prefix="/health", tags=["health"])

# Plans (listing is public pricing info, mutations check admin in the service)
api_router.include_router(plans.router, prefix="/plans", tags=["plans"])

# Subscriptions (auth enforced per endpoint)
api_router.include_router(
    subscriptions.router, prefix="/subscriptions", tags=["subscriptions"]
)

# Gateway callbacks (no auth - signature verified internally)
# Registered before payments so /payments/callback is not read as a payment id
api_router.include_router(webhooks.router, prefix="/payments", tags=["webhooks"])

# Payments (require auth)
api_router.include_router(payments.router, prefix="/payments", tags=["payments"])
