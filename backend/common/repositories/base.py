from contextlib import asynccontextmanager
from typing import Generic, TypeVar, Optional, List, Type, AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update
from pydantic import BaseModel

from common.core.otel_axiom_exporter import trace_span
from common.db.scoped import get_session

EntityType = TypeVar("EntityType")
DomainModelType = TypeVar("DomainModelType")
CreateModelType = TypeVar("CreateModelType", bound=BaseModel)
UpdateModelType = TypeVar("UpdateModelType", bound=BaseModel)


class BaseRepository(Generic[EntityType, DomainModelType]):
    """
    Base repository over lazily acquired sessions.

    Every operation goes through get_session(): inside a transaction() block
    it joins the open unit of work, otherwise it acquires a session, commits
    and releases it immediately. The repository never decides transaction
    boundaries, the calling service does.

    Example:
        repo = PlanRepository()
        plan = await repo.get(123)  # standalone, auto-commit

        async with transaction():
            await repo.create(...)  # shares the transaction's session
    """

    def __init__(
        self,
        entity_class: Type[EntityType],
        domain_class: Type[DomainModelType],
    ):
        self.entity_class = entity_class
        self.domain_class = domain_class

    @asynccontextmanager
    async def _get_session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Get a session for an operation.

        Respects the current context - inside a @readonly call chain or a
        readonly transaction the read session is used.
        """
        async with get_session() as session:
            yield session

    def _entity_to_domain(self, entity: EntityType) -> DomainModelType:
        """Convert database entity to domain model."""
        return self.domain_class.model_validate(entity)

    def _entities_to_domain(self, entities: List[EntityType]) -> List[DomainModelType]:
        """Convert list of database entities to domain models."""
        return [self._entity_to_domain(entity) for entity in entities]

    def _not_deleted(self, query):
        # Add deleted filter if the entity has a deleted column
        if hasattr(self.entity_class, "deleted"):
            query = query.where(self.entity_class.deleted == False)  # noqa
        return query

    @trace_span
    async def get(self, id: int) -> Optional[DomainModelType]:
        query = self._not_deleted(
            select(self.entity_class)
            .where(self.entity_class.id == id)
            .execution_options(populate_existing=True)
        )

        async with self._get_session() as session:
            result = await session.execute(query)
            entity = result.scalar_one_or_none()
            return self._entity_to_domain(entity) if entity else None

    @trace_span
    async def get_for_update(self, id: int) -> Optional[DomainModelType]:
        """Read a row and hold a write lock on it until the transaction ends.

        Only meaningful inside transaction(); SQLite ignores FOR UPDATE.
        """
        query = (
            select(self.entity_class)
            .where(self.entity_class.id == id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )

        async with self._get_session() as session:
            result = await session.execute(query)
            entity = result.scalar_one_or_none()
            return self._entity_to_domain(entity) if entity else None

    @trace_span
    async def get_multi(self, skip: int = 0, limit: int = 100) -> List[DomainModelType]:
        query = self._not_deleted(
            select(self.entity_class)
            .order_by(self.entity_class.id)
            .offset(skip)
            .limit(limit)
        )

        async with self._get_session() as session:
            result = await session.execute(query)
            entities = result.scalars().all()
            return self._entities_to_domain(entities)

    @trace_span
    async def create(self, create_model: CreateModelType) -> DomainModelType:
        """Create a new entity from a typed create model."""
        data = create_model.model_dump(exclude_none=True)
        db_obj = self.entity_class(**data)
        async with self._get_session() as session:
            session.add(db_obj)
            await session.flush()
            await session.refresh(db_obj)
            return self._entity_to_domain(db_obj)

    @trace_span
    async def update(
        self, id: int, update_model: UpdateModelType
    ) -> Optional[DomainModelType]:
        """Update an entity with a typed update model."""
        data = update_model.model_dump(exclude_unset=True)
        if not data:
            return await self.get(id)

        async with self._get_session() as session:
            await session.execute(
                update(self.entity_class)
                .where(self.entity_class.id == id)
                .values(data)
            )
            await session.flush()
        return await self.get(id)

    @trace_span
    async def soft_delete(self, id: int) -> bool:
        """Soft delete an entity by setting deleted=True."""
        if hasattr(self.entity_class, "deleted"):
            async with self._get_session() as session:
                result = await session.execute(
                    update(self.entity_class)
                    .where(self.entity_class.id == id)
                    .values(deleted=True)
                )
                await session.flush()
                return result.rowcount > 0
        return False
