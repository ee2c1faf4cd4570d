from typing import Optional

from common.core.exceptions import PermissionDeniedError
from common.core.otel_axiom_exporter import trace_span, get_logger
from packages.users.repositories.user_repository import UserRepository
from packages.users.models.domain.user import User

logger = get_logger(__name__)


class UserService:
    """Read access to the identity store (id + role)."""

    def __init__(self):
        self.user_repo = UserRepository()

    @trace_span
    async def find_user(self, user_id: int) -> Optional[User]:
        """Get an active user by ID, None if unknown or deactivated."""
        return await self.user_repo.get_active(user_id)

    @trace_span
    async def require_admin(self, user_id: int) -> User:
        """Resolve the caller and ensure it holds the admin role."""
        user = await self.find_user(user_id)
        if not user:
            raise PermissionDeniedError(f"User {user_id} not found")
        if not user.is_admin:
            logger.warning(
                f"User {user_id} attempted an admin operation",
                extra={"user_id": user_id, "role": user.role.value},
            )
            raise PermissionDeniedError("Administrator privilege required")
        return user
