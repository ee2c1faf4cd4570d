"""
Unit tests for PlanService.

Database interactions are NOT mocked.
"""

import pytest
from decimal import Decimal

from common.core.exceptions import NotFoundError, PermissionDeniedError
from packages.billing.models.domain.enums import PlanDuration, UserRole
from packages.billing.models.domain.plans import PlanCreateModel, PlanUpdateModel
from packages.billing.services.plans_service import PlanService


@pytest.fixture
def plan_service():
    return PlanService()


@pytest.mark.asyncio
class TestListPlans:
    async def test_role_sees_untargeted_and_own_plans_cheapest_first(
        self, plan_service, free_plan, pro_plan, model_plan
    ):
        plans = await plan_service.list_plans(UserRole.MODEL)

        assert [p.id for p in plans] == [free_plan.id, model_plan.id, pro_plan.id]

    async def test_other_roles_do_not_see_targeted_plans(
        self, plan_service, free_plan, pro_plan, model_plan
    ):
        plans = await plan_service.list_plans(UserRole.EMPLOYER)

        assert model_plan.id not in [p.id for p in plans]
        assert [p.name for p in plans] == ["Free", "Pro"]

    async def test_admin_sees_inactive_plans(
        self, plan_service, admin_user, free_plan, pro_plan
    ):
        await plan_service.update_plan(
            admin_user.id, pro_plan.id, PlanUpdateModel(is_active=False)
        )

        employer_view = await plan_service.list_plans(UserRole.EMPLOYER)
        admin_view = await plan_service.list_plans(UserRole.ADMIN)

        assert pro_plan.id not in [p.id for p in employer_view]
        assert pro_plan.id in [p.id for p in admin_view]


@pytest.mark.asyncio
class TestGetPlan:
    async def test_get_plan(self, plan_service, pro_plan):
        plan = await plan_service.get_plan(pro_plan.id)

        assert plan.name == "Pro"
        assert plan.price == Decimal("4990.00")
        assert plan.duration == PlanDuration.MONTHLY
        assert plan.limit_for("publications") == 20
        assert plan.limit_for("responses") is None

    async def test_unknown_plan(self, plan_service):
        with pytest.raises(NotFoundError):
            await plan_service.get_plan(9999)

    async def test_get_free_plan(self, plan_service, free_plan, pro_plan):
        plan = await plan_service.get_free_plan()

        assert plan.id == free_plan.id
        assert plan.is_free()

    async def test_free_plan_missing(self, plan_service, pro_plan):
        with pytest.raises(NotFoundError):
            await plan_service.get_free_plan()


@pytest.mark.asyncio
class TestAdministerPlans:
    async def test_create_plan(self, plan_service, admin_user):
        plan = await plan_service.create_plan(
            admin_user.id,
            PlanCreateModel(
                name="Agency",
                price=Decimal("19990"),
                currency="kzt",
                duration=PlanDuration.YEARLY,
                limits={"publications": 200},
                target_role=UserRole.EMPLOYER,
            ),
        )

        assert plan.id is not None
        assert plan.currency == "KZT"
        assert plan.version == 1
        assert plan.target_role == UserRole.EMPLOYER
        assert plan.price == Decimal("19990.00")

    async def test_non_admin_cannot_create(self, plan_service, model_user):
        with pytest.raises(PermissionDeniedError):
            await plan_service.create_plan(
                model_user.id, PlanCreateModel(name="Hack", price=Decimal("0"))
            )

    async def test_unknown_actor_cannot_update(self, plan_service, pro_plan):
        with pytest.raises(PermissionDeniedError):
            await plan_service.update_plan(
                4242, pro_plan.id, PlanUpdateModel(description="x")
            )

    async def test_update_without_subscribers_edits_in_place(
        self, plan_service, admin_user, pro_plan
    ):
        updated = await plan_service.update_plan(
            admin_user.id, pro_plan.id, PlanUpdateModel(price=Decimal("5990"))
        )

        assert updated.id == pro_plan.id
        assert updated.version == 1
        assert updated.price == Decimal("5990.00")

    async def test_update_with_live_subscriber_creates_new_version(
        self, plan_service, admin_user, model_user, pro_plan, make_subscription
    ):
        await make_subscription(model_user, pro_plan)

        new_version = await plan_service.update_plan(
            admin_user.id,
            pro_plan.id,
            PlanUpdateModel(limits={"publications": 10, "responses": -1}),
        )

        assert new_version.id != pro_plan.id
        assert new_version.version == 2
        assert new_version.previous_version_id == pro_plan.id
        assert new_version.name == "Pro"
        assert new_version.price == Decimal("4990.00")
        assert new_version.limit_for("publications") == 10

        old_version = await plan_service.get_plan_any_version(pro_plan.id)
        assert old_version.is_active is False
        assert old_version.limit_for("publications") == 20

    async def test_cosmetic_update_with_live_subscriber_edits_in_place(
        self, plan_service, admin_user, model_user, pro_plan, make_subscription
    ):
        await make_subscription(model_user, pro_plan)

        updated = await plan_service.update_plan(
            admin_user.id, pro_plan.id, PlanUpdateModel(description="Renamed tier")
        )

        assert updated.id == pro_plan.id
        assert updated.description == "Renamed tier"

    async def test_delete_plan_keeps_history(
        self, plan_service, admin_user, pro_plan
    ):
        await plan_service.delete_plan(admin_user.id, pro_plan.id)

        with pytest.raises(NotFoundError):
            await plan_service.get_plan(pro_plan.id)
        history = await plan_service.get_plan_any_version(pro_plan.id)
        assert history.deleted is True
        assert history.is_active is False

    async def test_delete_unknown_plan(self, plan_service, admin_user):
        with pytest.raises(NotFoundError):
            await plan_service.delete_plan(admin_user.id, 9999)
