"""
EVM repository.

Data access layer for EVM blocks, transactions and ERC20 transfers.
"""

from collections.abc import Sequence
from datetime import UTC, datetime

from sqlalchemy import and_, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from chainmirror.models.erc20_transfer import Erc20Transfer
from chainmirror.models.evm_block import EvmBlock
from chainmirror.models.evm_transaction import EvmTransaction
from chainmirror.models.records import EvmBlockRecord, EvmTxRecord, TransferEvent
from chainmirror.repositories.base import BaseRepository


class EvmRepository(BaseRepository[EvmBlock]):
    """Repository for EVM chain data."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository."""
        super().__init__(EvmBlock, session)

    async def upsert_block(self, block: EvmBlockRecord) -> None:
        """
        Insert or overwrite a block header.

        Args:
            block: Normalized block record
        """
        row = {**block.to_dict(), "indexed_at": datetime.now(UTC)}
        await self.upsert_many([row], key_columns=("chain_id", "number"))

    async def upsert_transactions(self, txs: Sequence[EvmTxRecord]) -> int:
        """
        Insert or overwrite transactions.

        Args:
            txs: Normalized transaction records

        Returns:
            Number of rows written
        """
        now = datetime.now(UTC)
        rows = [{**tx.to_dict(), "indexed_at": now} for tx in txs]
        return await self.upsert_many(
            rows, key_columns=("chain_id", "hash"), model=EvmTransaction
        )

    async def upsert_transfers(self, events: Sequence[TransferEvent]) -> int:
        """
        Insert or overwrite decoded transfers.

        Args:
            events: Decoded transfer events

        Returns:
            Number of rows written
        """
        now = datetime.now(UTC)
        rows = [{**event.to_dict(), "indexed_at": now} for event in events]
        return await self.upsert_many(
            rows,
            key_columns=("chain_id", "tx_hash", "log_index"),
            model=Erc20Transfer,
        )

    async def get_block(self, chain_id: str, number: int) -> EvmBlock | None:
        """
        Get block by number.

        Args:
            chain_id: Chain identifier
            number: Block number

        Returns:
            Block row or None
        """
        return await self.get_by(chain_id=chain_id, number=number)

    async def recent_blocks(self, chain_id: str, limit: int) -> list[EvmBlock]:
        """
        Get newest blocks of a chain.

        Args:
            chain_id: Chain identifier
            limit: Max results

        Returns:
            Blocks ordered by number descending
        """
        query = (
            select(EvmBlock)
            .where(EvmBlock.chain_id == chain_id)
            .order_by(EvmBlock.number.desc())
            .limit(limit)
        )
        return await self._scalars(query)

    async def get_transaction(
        self, chain_id: str, tx_hash: str
    ) -> EvmTransaction | None:
        """
        Get transaction by hash.

        Args:
            chain_id: Chain identifier
            tx_hash: Transaction hash (case-insensitive)

        Returns:
            Transaction row or None
        """
        query = select(EvmTransaction).where(
            EvmTransaction.chain_id == chain_id,
            EvmTransaction.hash == tx_hash.lower(),
        )
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def recent_transactions(
        self, chain_id: str, limit: int
    ) -> list[EvmTransaction]:
        """
        Get newest transactions of a chain.

        Args:
            chain_id: Chain identifier
            limit: Max results

        Returns:
            Transactions ordered by block number descending
        """
        query = (
            select(EvmTransaction)
            .where(EvmTransaction.chain_id == chain_id)
            .order_by(
                EvmTransaction.block_number.desc(),
                EvmTransaction.tx_index.desc(),
            )
            .limit(limit)
        )
        return await self._scalars(query)

    async def transactions_for_address(
        self,
        chain_id: str,
        address: str,
        limit: int,
    ) -> list[EvmTransaction]:
        """
        Get transactions sent from or to an address.

        Args:
            chain_id: Chain identifier
            address: Wallet or contract address
            limit: Max results

        Returns:
            Transactions ordered by block number descending
        """
        addr = address.lower()

        query = (
            select(EvmTransaction)
            .where(
                and_(
                    EvmTransaction.chain_id == chain_id,
                    or_(
                        EvmTransaction.from_address == addr,
                        EvmTransaction.to_address == addr,
                    ),
                )
            )
            .order_by(
                EvmTransaction.block_number.desc(),
                EvmTransaction.tx_index.desc(),
            )
            .limit(limit)
        )
        return await self._scalars(query)

    async def transfers_for_address(
        self,
        chain_id: str,
        address: str,
        limit: int,
        token_address: str | None = None,
    ) -> list[Erc20Transfer]:
        """
        Get ERC20 transfers sent from or to an address.

        Args:
            chain_id: Chain identifier
            address: Wallet address
            limit: Max results
            token_address: Optional token contract filter

        Returns:
            Transfers ordered by block number, then log index, descending
        """
        addr = address.lower()

        conditions = [
            Erc20Transfer.chain_id == chain_id,
            or_(
                Erc20Transfer.from_address == addr,
                Erc20Transfer.to_address == addr,
            ),
        ]
        if token_address:
            conditions.append(Erc20Transfer.token_address == token_address.lower())

        query = (
            select(Erc20Transfer)
            .where(and_(*conditions))
            .order_by(
                Erc20Transfer.block_number.desc(),
                Erc20Transfer.log_index.desc(),
            )
            .limit(limit)
        )
        return await self._scalars(query)

    async def transactions_in_block(
        self, chain_id: str, number: int
    ) -> list[EvmTransaction]:
        """
        Get all transactions stored for a block.

        Args:
            chain_id: Chain identifier
            number: Block number

        Returns:
            Transactions ordered by position in block
        """
        query = (
            select(EvmTransaction)
            .where(
                EvmTransaction.chain_id == chain_id,
                EvmTransaction.block_number == number,
            )
            .order_by(EvmTransaction.tx_index.asc())
        )
        return await self._scalars(query)
