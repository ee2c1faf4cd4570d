"""
Plans API routes.

Listing is public (pricing pages); mutations are admin only, enforced by
the service against the identity store.
"""

from typing import Optional
from fastapi import APIRouter, Depends, Response, status

from packages.auth.dependencies import get_current_active_user, get_optional_user
from packages.auth.models.domain.authenticated_user import AuthenticatedUser
from packages.billing.dependencies import get_plan_service
from packages.billing.models.domain.enums import UserRole
from packages.billing.models.domain.plans import PlanCreateModel, PlanUpdateModel
from packages.billing.models.schemas.billing import PlanResponse, PlansResponse
from packages.billing.services.plans_service import PlanService

router = APIRouter()


@router.get("", response_model=PlansResponse)
async def list_plans(
    role: Optional[UserRole] = None,
    current_user: Optional[AuthenticatedUser] = Depends(get_optional_user),
    plan_service: PlanService = Depends(get_plan_service),
):
    """
    Get the plans offered to a role, cheapest first.

    Authenticated callers see the plans for their own role; anonymous
    callers may pass ?role=. Admins also see inactive plans.
    """
    if current_user:
        role = current_user.role
    elif role == UserRole.ADMIN:
        role = None

    plans = await plan_service.list_plans(role)
    return PlansResponse(plans=[PlanResponse.model_validate(p) for p in plans])


@router.get("/{plan_id}", response_model=PlanResponse)
async def get_plan(
    plan_id: int,
    plan_service: PlanService = Depends(get_plan_service),
):
    return await plan_service.get_plan(plan_id)


@router.post("", response_model=PlanResponse, status_code=status.HTTP_201_CREATED)
async def create_plan(
    data: PlanCreateModel,
    current_user: AuthenticatedUser = Depends(get_current_active_user),
    plan_service: PlanService = Depends(get_plan_service),
):
    return await plan_service.create_plan(current_user.user_id, data)


@router.patch("/{plan_id}", response_model=PlanResponse)
async def update_plan(
    plan_id: int,
    data: PlanUpdateModel,
    current_user: AuthenticatedUser = Depends(get_current_active_user),
    plan_service: PlanService = Depends(get_plan_service),
):
    """
    Update a plan.

    Returns the new version when existing subscribers had to be protected
    from the change.
    """
    return await plan_service.update_plan(current_user.user_id, plan_id, data)


@router.delete("/{plan_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_plan(
    plan_id: int,
    current_user: AuthenticatedUser = Depends(get_current_active_user),
    plan_service: PlanService = Depends(get_plan_service),
):
    await plan_service.delete_plan(current_user.user_id, plan_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
