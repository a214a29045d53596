"""
Solana repository.

Data access layer for Solana slots and transactions.
"""

from collections.abc import Sequence
from datetime import UTC, datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from chainmirror.models.records import SolanaSlotRecord, SolanaTxRecord
from chainmirror.models.solana_slot import SolanaSlot
from chainmirror.models.solana_transaction import SolanaTransaction
from chainmirror.repositories.base import BaseRepository


class SolanaRepository(BaseRepository[SolanaSlot]):
    """Repository for Solana chain data."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository."""
        super().__init__(SolanaSlot, session)

    async def upsert_slot(self, slot: SolanaSlotRecord) -> None:
        """Insert or overwrite a slot header."""
        row = {**slot.to_dict(), "indexed_at": datetime.now(UTC)}
        await self.upsert_many([row], key_columns=("chain_id", "slot"))

    async def upsert_transactions(self, txs: Sequence[SolanaTxRecord]) -> int:
        """Insert or overwrite transactions, returning rows written."""
        now = datetime.now(UTC)
        rows = [{**tx.to_dict(), "indexed_at": now} for tx in txs]
        return await self.upsert_many(
            rows, key_columns=("chain_id", "signature"), model=SolanaTransaction
        )

    async def get_slot(self, chain_id: str, slot: int) -> SolanaSlot | None:
        """Get slot by number."""
        return await self.get_by(chain_id=chain_id, slot=slot)

    async def recent_slots(self, chain_id: str, limit: int) -> list[SolanaSlot]:
        """Get newest slots of a chain."""
        query = (
            select(SolanaSlot)
            .where(SolanaSlot.chain_id == chain_id)
            .order_by(SolanaSlot.slot.desc())
            .limit(limit)
        )
        return await self._scalars(query)

    async def get_transaction(
        self, chain_id: str, signature: str
    ) -> SolanaTransaction | None:
        """Get transaction by signature."""
        query = select(SolanaTransaction).where(
            SolanaTransaction.chain_id == chain_id,
            SolanaTransaction.signature == signature,
        )
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def recent_transactions(
        self, chain_id: str, limit: int
    ) -> list[SolanaTransaction]:
        """Get newest transactions of a chain."""
        query = (
            select(SolanaTransaction)
            .where(SolanaTransaction.chain_id == chain_id)
            .order_by(SolanaTransaction.slot.desc())
            .limit(limit)
        )
        return await self._scalars(query)

    async def transactions_for_address(
        self,
        chain_id: str,
        address: str,
        limit: int,
    ) -> list[SolanaTransaction]:
        """Get transactions paid for by an account (base58, case-sensitive)."""
        query = (
            select(SolanaTransaction)
            .where(
                SolanaTransaction.chain_id == chain_id,
                SolanaTransaction.fee_payer == address,
            )
            .order_by(SolanaTransaction.slot.desc())
            .limit(limit)
        )
        return await self._scalars(query)

    async def transactions_in_slot(
        self, chain_id: str, slot: int
    ) -> list[SolanaTransaction]:
        """Get all transactions stored for a slot."""
        query = select(SolanaTransaction).where(
            SolanaTransaction.chain_id == chain_id,
            SolanaTransaction.slot == slot,
        )
        return await self._scalars(query)
