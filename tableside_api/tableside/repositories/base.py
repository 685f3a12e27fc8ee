from __future__ import annotations

from typing import Any, Iterable, Optional, Type, TypeVar
from uuid import UUID

from sqlalchemy import Executable, select
from sqlalchemy.ext.asyncio import AsyncSession

ModelT = TypeVar("ModelT")


class BaseRepository:
    """
    Base class for repositories providing common helpers.

    Note:
      On Postgres, RLS limits rows to the restaurant set through tenant_context.
      Restaurant-scoped repositories still filter on restaurant_id explicitly.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def execute(self, statement: Executable, params: Optional[dict[str, Any]] = None):
        """Execute a SQLAlchemy statement."""
        if params:
            return await self.session.execute(statement, params)
        return await self.session.execute(statement)

    async def scalars(self, statement: Executable, params: Optional[dict[str, Any]] = None):
        """Execute and return scalars."""
        result = await self.execute(statement, params)
        return result.scalars()

    async def scalar_one_or_none(self, statement: Executable, params: Optional[dict[str, Any]] = None):
        """Execute and return a single scalar or None."""
        result = await self.execute(statement, params)
        return result.scalar_one_or_none()

    async def get_scoped(self, model: Type[ModelT], entity_id: UUID, restaurant_id: UUID) -> Optional[ModelT]:
        """Load a restaurant-scoped entity by id, or None when it belongs elsewhere."""
        stmt = select(model).where(model.id == entity_id, model.restaurant_id == restaurant_id)  # type: ignore[attr-defined]
        return await self.scalar_one_or_none(stmt)

    async def commit(self) -> None:
        """Commit current transaction."""
        await self.session.commit()

    async def flush(self) -> None:
        """Flush pending changes without committing."""
        await self.session.flush()

    async def refresh(self, entity: Any) -> None:
        """Reload an entity's state from the database."""
        await self.session.refresh(entity)

    async def add_all(self, entities: Iterable[Any]) -> None:
        """Add multiple entities to session."""
        self.session.add_all(list(entities))

    async def add(self, entity: Any) -> None:
        """Add a single entity to session."""
        self.session.add(entity)

    async def delete(self, entity: Any) -> None:
        """Mark an entity for deletion."""
        await self.session.delete(entity)
