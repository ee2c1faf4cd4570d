from typing import Annotated, Optional
from fastapi import Depends, HTTPException, status, Header

from common.core.otel_axiom_exporter import trace_span, get_logger
from packages.auth.models.domain.authenticated_user import AuthenticatedUser
from packages.users.services.user_service import UserService

logger = get_logger(__name__)


def get_user_service() -> UserService:
    """Get UserService instance."""
    return UserService()


@trace_span
async def get_current_user(
    x_user_id: Annotated[Optional[str], Header()] = None,
    user_service: UserService = Depends(get_user_service),
) -> AuthenticatedUser:
    """Resolve the caller from the identity header set by the auth gateway.

    Token validation happens upstream; this only maps the forwarded user id
    to an identity-store record.
    """
    if not x_user_id or not x_user_id.isdigit():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authenticated user header missing or invalid",
        )

    user = await user_service.find_user(int(x_user_id))
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unknown or inactive user",
        )

    return AuthenticatedUser(user_id=user.id, role=user.role)


@trace_span
async def get_current_active_user(
    current_user: AuthenticatedUser = Depends(get_current_user),
) -> AuthenticatedUser:
    """Get current active user."""
    logger.debug(
        f"Authenticated user_id={current_user.user_id} role={current_user.role.value}"
    )
    return current_user


@trace_span
async def get_current_admin_user(
    current_user: AuthenticatedUser = Depends(get_current_active_user),
) -> AuthenticatedUser:
    """Get current admin user."""
    if not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN, detail="Not enough permissions"
        )
    return current_user


@trace_span
async def get_optional_user(
    x_user_id: Annotated[Optional[str], Header()] = None,
    user_service: UserService = Depends(get_user_service),
) -> Optional[AuthenticatedUser]:
    """Resolve the caller if an identity header was forwarded, else None."""
    if not x_user_id:
        return None
    return await get_current_user(x_user_id=x_user_id, user_service=user_service)
