"""
Index store.

Durable persistence of canonical records. Each block or slot is written
together with its transactions, its transfer events and the chain cursor in
one database transaction, so a crash never leaves a cursor pointing past
data that was not committed.
"""

from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from chainmirror.config.constants import DEFAULT_QUERY_LIMIT, MAX_QUERY_LIMIT
from chainmirror.models.enums import ChainFamily
from chainmirror.models.records import (
    EvmBlockRecord,
    EvmTxRecord,
    SolanaSlotRecord,
    SolanaTxRecord,
    TransferEvent,
)
from chainmirror.repositories import (
    CursorRepository,
    EvmRepository,
    SolanaRepository,
)
from chainmirror.utils.exceptions import PersistenceError


def clamp_limit(limit: int | None) -> int:
    """Clamp a read limit into [1, MAX_QUERY_LIMIT]."""
    if limit is None:
        return DEFAULT_QUERY_LIMIT
    return max(1, min(int(limit), MAX_QUERY_LIMIT))


class IndexStore:
    """
    Chain-scoped persistence facade over the repositories.

    Writes are idempotent upserts on natural keys. Every SQLAlchemy error
    surfaces as PersistenceError after the transaction is rolled back.
    """

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]) -> None:
        """
        Initialize store.

        Args:
            session_maker: Async session factory
        """
        self.session_maker = session_maker

    @asynccontextmanager
    async def _transaction(self, operation: str) -> AsyncIterator[AsyncSession]:
        """Open a session with one transaction, committed on success."""
        try:
            async with self.session_maker() as session, session.begin():
                yield session
        except SQLAlchemyError as e:
            logger.error(f"[Store] {operation} failed: {e}")
            raise PersistenceError(f"{operation} failed: {e}") from e

    @asynccontextmanager
    async def _reader(self, operation: str) -> AsyncIterator[AsyncSession]:
        try:
            async with self.session_maker() as session:
                yield session
        except SQLAlchemyError as e:
            logger.error(f"[Store] {operation} failed: {e}")
            raise PersistenceError(f"{operation} failed: {e}") from e

    # Writes

    async def upsert_block(
        self,
        block: EvmBlockRecord,
        txs: Sequence[EvmTxRecord],
        transfers: Sequence[TransferEvent] = (),
    ) -> None:
        """
        Persist an EVM block as one unit and advance the cursor to it.

        Args:
            block: Block header
            txs: Transactions of the block
            transfers: Transfer events decoded from the receipts
        """
        async with self._transaction(f"upsert_block {block.chain_id}#{block.number}") as session:
            repo = EvmRepository(session)
            await repo.upsert_block(block)
            await repo.upsert_transactions(txs)
            await repo.upsert_transfers(transfers)
            await CursorRepository(session).advance(
                block.chain_id, ChainFamily.EVM, block.number
            )

    async def upsert_slot(
        self,
        slot: SolanaSlotRecord,
        txs: Sequence[SolanaTxRecord],
    ) -> None:
        """
        Persist a Solana slot as one unit and advance the cursor to it.

        Args:
            slot: Slot header
            txs: Transactions of the slot
        """
        async with self._transaction(f"upsert_slot {slot.chain_id}#{slot.slot}") as session:
            repo = SolanaRepository(session)
            await repo.upsert_slot(slot)
            await repo.upsert_transactions(txs)
            await CursorRepository(session).advance(
                slot.chain_id, ChainFamily.SOLANA, slot.slot
            )

    async def advance_cursor(
        self, chain_id: str, family: ChainFamily, position: int
    ) -> None:
        """Move the cursor without writing chain data (skipped slots)."""
        async with self._transaction(f"advance_cursor {chain_id}#{position}") as session:
            await CursorRepository(session).advance(chain_id, family, position)

    async def upsert_transfers(self, events: Sequence[TransferEvent]) -> int:
        """
        Persist transfer events only. The cursor is not touched.

        Args:
            events: Decoded transfer events

        Returns:
            Number of rows written
        """
        if not events:
            return 0
        async with self._transaction(f"upsert_transfers ({len(events)})") as session:
            return await EvmRepository(session).upsert_transfers(events)

    async def upsert_transfer(self, event: TransferEvent) -> None:
        """Persist a single transfer event."""
        await self.upsert_transfers([event])

    # Reads

    async def get_cursor(self, chain_id: str) -> int | None:
        """Get last fully processed position, None if never indexed."""
        async with self._reader(f"get_cursor {chain_id}") as session:
            return await CursorRepository(session).get_position(chain_id)

    async def recent_blocks(
        self, chain_id: str, limit: int | None = None
    ) -> list[EvmBlockRecord]:
        async with self._reader("recent_blocks") as session:
            rows = await EvmRepository(session).recent_blocks(
                chain_id, clamp_limit(limit)
            )
        return [row.to_record() for row in rows]

    async def get_block(self, chain_id: str, number: int) -> EvmBlockRecord | None:
        async with self._reader("get_block") as session:
            row = await EvmRepository(session).get_block(chain_id, number)
        return row.to_record() if row else None

    async def recent_evm_txs(
        self, chain_id: str, limit: int | None = None
    ) -> list[EvmTxRecord]:
        async with self._reader("recent_evm_txs") as session:
            rows = await EvmRepository(session).recent_transactions(
                chain_id, clamp_limit(limit)
            )
        return [row.to_record() for row in rows]

    async def get_evm_tx(self, chain_id: str, tx_hash: str) -> EvmTxRecord | None:
        async with self._reader("get_evm_tx") as session:
            row = await EvmRepository(session).get_transaction(chain_id, tx_hash)
        return row.to_record() if row else None

    async def evm_txs_in_block(self, chain_id: str, number: int) -> list[EvmTxRecord]:
        """Transactions of a block in position order."""
        async with self._reader("evm_txs_in_block") as session:
            rows = await EvmRepository(session).transactions_in_block(chain_id, number)
        return [row.to_record() for row in rows]

    async def evm_txs_for_address(
        self, chain_id: str, address: str, limit: int | None = None
    ) -> list[EvmTxRecord]:
        """Transactions sent from or to an address, newest first."""
        async with self._reader("evm_txs_for_address") as session:
            rows = await EvmRepository(session).transactions_for_address(
                chain_id, address, clamp_limit(limit)
            )
        return [row.to_record() for row in rows]

    async def transfers_for_address(
        self,
        chain_id: str,
        address: str,
        limit: int | None = None,
        token_address: str | None = None,
    ) -> list[TransferEvent]:
        """
        Transfers sent from or to an address.

        Args:
            chain_id: Chain identifier
            address: Wallet address
            limit: Max results (clamped)
            token_address: Optional token contract filter

        Returns:
            Transfers ordered by block number, then log index, descending
        """
        async with self._reader("transfers_for_address") as session:
            rows = await EvmRepository(session).transfers_for_address(
                chain_id, address, clamp_limit(limit), token_address=token_address
            )
        return [row.to_record() for row in rows]

    async def recent_slots(
        self, chain_id: str, limit: int | None = None
    ) -> list[SolanaSlotRecord]:
        async with self._reader("recent_slots") as session:
            rows = await SolanaRepository(session).recent_slots(
                chain_id, clamp_limit(limit)
            )
        return [row.to_record() for row in rows]

    async def get_slot(self, chain_id: str, slot: int) -> SolanaSlotRecord | None:
        async with self._reader("get_slot") as session:
            row = await SolanaRepository(session).get_slot(chain_id, slot)
        return row.to_record() if row else None

    async def recent_solana_txs(
        self, chain_id: str, limit: int | None = None
    ) -> list[SolanaTxRecord]:
        async with self._reader("recent_solana_txs") as session:
            rows = await SolanaRepository(session).recent_transactions(
                chain_id, clamp_limit(limit)
            )
        return [row.to_record() for row in rows]

    async def get_solana_tx(
        self, chain_id: str, signature: str
    ) -> SolanaTxRecord | None:
        async with self._reader("get_solana_tx") as session:
            row = await SolanaRepository(session).get_transaction(chain_id, signature)
        return row.to_record() if row else None

    async def solana_txs_in_slot(self, chain_id: str, slot: int) -> list[SolanaTxRecord]:
        """Transactions of a slot."""
        async with self._reader("solana_txs_in_slot") as session:
            rows = await SolanaRepository(session).transactions_in_slot(chain_id, slot)
        return [row.to_record() for row in rows]

    async def solana_txs_for_address(
        self, chain_id: str, address: str, limit: int | None = None
    ) -> list[SolanaTxRecord]:
        """Transactions paid for by an account, newest first."""
        async with self._reader("solana_txs_for_address") as session:
            rows = await SolanaRepository(session).transactions_for_address(
                chain_id, address, clamp_limit(limit)
            )
        return [row.to_record() for row in rows]
