"""
Base repository.

Generic read and upsert operations for all repositories.
"""

from collections.abc import Iterable, Sequence
from typing import Any, Generic, TypeVar

from sqlalchemy import select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from chainmirror.config.constants import UPSERT_BATCH_SIZE
from chainmirror.models.base import Base
from chainmirror.utils.exceptions import ConfigurationError

# Generic type for model
ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    Base repository with generic read and upsert operations.

    Provides async database operations for any SQLAlchemy model.
    Transaction boundaries belong to the caller: repositories never commit.

    Type Parameters:
        ModelType: SQLAlchemy model class

    Example:
        class EvmRepository(BaseRepository[EvmBlock]):
            def __init__(self, session: AsyncSession):
                super().__init__(EvmBlock, session)
    """

    def __init__(
        self, model: type[ModelType], session: AsyncSession
    ) -> None:
        """
        Initialize repository.

        Args:
            model: SQLAlchemy model class
            session: Async database session
        """
        self.model = model
        self.session = session

    async def get_by(
        self, **filters: Any
    ) -> ModelType | None:
        """
        Get single entity by filters.

        Args:
            **filters: Column filters

        Returns:
            First matching entity or None
        """
        stmt = select(self.model).filter_by(**filters)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    def _insert(self, model: type[Base] | None = None):
        """Dialect-specific INSERT supporting ON CONFLICT."""
        target = model or self.model
        dialect = self.session.get_bind().dialect.name
        if dialect == "postgresql":
            return postgresql.insert(target)
        if dialect == "sqlite":
            return sqlite.insert(target)
        raise ConfigurationError(f"Upsert not supported for dialect {dialect}")

    async def upsert_many(
        self,
        rows: Sequence[dict[str, Any]],
        key_columns: Iterable[str],
        model: type[Base] | None = None,
    ) -> int:
        """
        Insert rows, overwriting non-key columns on natural key conflict.

        Args:
            rows: Column value dicts (all with the same keys)
            key_columns: Natural key columns of the conflict target
            model: Target model (default: repository model)

        Returns:
            Number of rows written
        """
        if not rows:
            return 0

        key_columns = list(key_columns)
        update_columns = [c for c in rows[0] if c not in key_columns]

        for offset in range(0, len(rows), UPSERT_BATCH_SIZE):
            batch = rows[offset:offset + UPSERT_BATCH_SIZE]
            stmt = self._insert(model).values(list(batch))
            stmt = stmt.on_conflict_do_update(
                index_elements=key_columns,
                set_={c: stmt.excluded[c] for c in update_columns},
            )
            await self.session.execute(stmt)

        return len(rows)

    async def _scalars(self, stmt) -> list[ModelType]:
        """Execute a select and return all scalars."""
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
