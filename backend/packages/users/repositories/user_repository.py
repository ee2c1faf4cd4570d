from typing import Optional
from sqlalchemy import select

from common.repositories.base import BaseRepository
from packages.users.models.database.user import UserEntity
from packages.users.models.domain.user import User
from common.core.otel_axiom_exporter import trace_span


class UserRepository(BaseRepository[UserEntity, User]):
    def __init__(self):
        super().__init__(UserEntity, User)

    @trace_span
    async def get_active(self, user_id: int) -> Optional[User]:
        """Get a user that is neither deleted nor deactivated."""
        async with self._get_session() as session:
            result = await session.execute(
                select(UserEntity).where(
                    UserEntity.id == user_id,
                    UserEntity.is_active == True,  # noqa
                    UserEntity.deleted == False,  # noqa
                )
            )
            db_user = result.scalar_one_or_none()
            return self._entity_to_domain(db_user) if db_user else None
