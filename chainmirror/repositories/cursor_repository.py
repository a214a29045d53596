"""
Chain cursor repository.

Persists the last fully processed position of each chain.
"""

from datetime import UTC, datetime

from sqlalchemy.ext.asyncio import AsyncSession

from chainmirror.models.chain_cursor import ChainCursor
from chainmirror.repositories.base import BaseRepository


class CursorRepository(BaseRepository[ChainCursor]):
    """Repository for chain cursors."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository."""
        super().__init__(ChainCursor, session)

    async def get_position(self, chain_id: str) -> int | None:
        """
        Get last processed position.

        Args:
            chain_id: Chain identifier

        Returns:
            Position or None if the chain was never indexed
        """
        cursor = await self.get_by(chain_id=chain_id)
        return cursor.position if cursor else None

    async def advance(self, chain_id: str, family: str, position: int) -> None:
        """
        Move the cursor forward.

        A position at or below the stored one leaves the row untouched,
        so replaying old positions never rewinds the cursor.

        Args:
            chain_id: Chain identifier
            family: Chain family (EVM, SOLANA)
            position: Newly processed block number or slot
        """
        stmt = self._insert().values(
            chain_id=chain_id,
            family=family,
            position=position,
            updated_at=datetime.now(UTC),
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["chain_id"],
            set_={
                "position": stmt.excluded.position,
                "updated_at": stmt.excluded.updated_at,
            },
            where=ChainCursor.position < stmt.excluded.position,
        )
        await self.session.execute(stmt)
