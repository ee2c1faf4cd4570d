"""
Unit tests for UsageService.

Database interactions are NOT mocked.
"""

import pytest
from datetime import timedelta

from common.core.exceptions import NotFoundError, QuotaExceededError
from packages.billing.models.domain.enums import Feature, SubscriptionStatus
from packages.billing.services.usage_service import UsageService


@pytest.fixture
def usage_service():
    return UsageService()


@pytest.mark.asyncio
class TestRemaining:
    async def test_capped_feature(self, usage_service, model_user, free_plan, make_subscription):
        await make_subscription(
            model_user, free_plan, usage={"publications": 1, "responses": 10}
        )

        assert await usage_service.remaining(model_user.id, "publications") == 2
        assert await usage_service.remaining(model_user.id, "responses") == 0

    async def test_uncapped_feature(self, usage_service, model_user, pro_plan, make_subscription):
        await make_subscription(model_user, pro_plan, usage={"responses": 500})

        assert await usage_service.remaining(model_user.id, "responses") is None

    async def test_feature_missing_from_plan_is_uncapped(
        self, usage_service, model_user, model_plan, make_subscription
    ):
        await make_subscription(model_user, model_plan)

        usage = await usage_service.feature_usage(model_user.id, "messages")

        assert usage.limit is None
        assert usage.remaining is None

    async def test_no_subscription_leaves_nothing(self, usage_service, model_user):
        usage = await usage_service.feature_usage(model_user.id, "publications")

        assert usage.used == 0
        assert usage.limit == 0
        assert usage.remaining == 0

    async def test_ended_subscription_leaves_nothing(
        self, usage_service, model_user, pro_plan, make_subscription
    ):
        # Still Active in the store, but past its end date
        await make_subscription(
            model_user,
            pro_plan,
            start_offset=timedelta(days=-31),
            end_offset=timedelta(seconds=-1),
        )

        assert await usage_service.remaining(model_user.id, "responses") == 0

    async def test_cancelled_subscription_keeps_access_until_end(
        self, usage_service, model_user, free_plan, make_subscription
    ):
        await make_subscription(model_user, free_plan, status=SubscriptionStatus.CANCELLED)

        assert await usage_service.remaining(model_user.id, "publications") == 3


@pytest.mark.asyncio
class TestCounters:
    async def test_increment(self, usage_service, model_user, free_plan, make_subscription):
        await make_subscription(model_user, free_plan)

        assert await usage_service.increment(model_user.id, "publications") == 1
        assert await usage_service.increment(model_user.id, "publications") == 2
        assert await usage_service.remaining(model_user.id, "publications") == 1

    async def test_increment_unknown_feature_starts_at_zero(
        self, usage_service, model_user, free_plan, make_subscription
    ):
        await make_subscription(model_user, free_plan, usage={})

        assert await usage_service.increment(model_user.id, "boosts") == 1

    async def test_increment_without_access_is_refused(
        self, usage_service, model_user, free_plan, make_subscription
    ):
        await make_subscription(model_user, free_plan, status=SubscriptionStatus.EXPIRED)

        with pytest.raises(QuotaExceededError):
            await usage_service.increment(model_user.id, "publications")

    async def test_decrement_floors_at_zero(
        self, usage_service, model_user, free_plan, make_subscription
    ):
        await make_subscription(model_user, free_plan, usage={"publications": 1})

        assert await usage_service.decrement(model_user.id, "publications") == 0
        assert await usage_service.decrement(model_user.id, "publications") == 0

    async def test_decrement_without_subscription(self, usage_service, model_user):
        assert await usage_service.decrement(model_user.id, "publications") == 0

    async def test_reset(self, usage_service, model_user, free_plan, make_subscription):
        await make_subscription(
            model_user, free_plan, usage={"publications": 3, "messages": 7}
        )

        await usage_service.reset(model_user.id)

        stats = await usage_service.get_usage_stats(model_user.id)
        assert all(f.used == 0 for f in stats.features)


@pytest.mark.asyncio
class TestUsageStats:
    async def test_stats_cover_every_feature(
        self, usage_service, model_user, free_plan, make_subscription
    ):
        subscription = await make_subscription(
            model_user, free_plan, usage={"publications": 2, "boosts": 1}
        )

        stats = await usage_service.get_usage_stats(model_user.id)

        assert stats.subscription_id == subscription.id
        assert stats.plan_name == "Free"
        by_feature = {f.feature: f for f in stats.features}
        assert set(Feature.zeroed_counters()) <= set(by_feature)
        assert by_feature["publications"].used == 2
        assert by_feature["publications"].remaining == 1
        assert by_feature["promotions"].limit == 0
        assert by_feature["boosts"].used == 1
        assert by_feature["boosts"].limit is None

    async def test_stats_of_expired_subscription_show_nothing_remaining(
        self, usage_service, model_user, pro_plan, make_subscription
    ):
        await make_subscription(model_user, pro_plan, status=SubscriptionStatus.EXPIRED)

        stats = await usage_service.get_usage_stats(model_user.id)

        assert stats.status == "expired"
        assert all(f.remaining == 0 for f in stats.features)

    async def test_stats_without_subscription(self, usage_service, model_user):
        with pytest.raises(NotFoundError):
            await usage_service.get_usage_stats(model_user.id)
