"""
EVM transaction model.

Stores transactions joined with receipt data. Large amounts are stored
as decimal strings to avoid precision loss.
"""

from datetime import UTC, datetime

from sqlalchemy import BigInteger, DateTime, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from chainmirror.models.base import Base
from chainmirror.models.records import EvmTxRecord


class EvmTransaction(Base):
    """
    Indexed EVM transaction.

    Keyed by (chain, hash). A later write with a different block number
    overwrites the row (renumbering only, no reorg tracking).
    """

    __tablename__ = "evm_transactions"
    __table_args__ = (
        Index("ix_evm_transactions_chain_block", "chain_id", "block_number"),
        Index("ix_evm_transactions_chain_from", "chain_id", "from_address"),
        Index("ix_evm_transactions_chain_to", "chain_id", "to_address"),
    )

    # Natural key
    chain_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    hash: Mapped[str] = mapped_column(String(66), primary_key=True)

    block_number: Mapped[int] = mapped_column(BigInteger, nullable=False)
    tx_index: Mapped[int | None] = mapped_column(Integer, nullable=True)

    # Addresses (normalized to lowercase)
    from_address: Mapped[str] = mapped_column(String(42), nullable=False)
    to_address: Mapped[str | None] = mapped_column(
        String(42), nullable=True
    )  # null for contract creation

    # Amounts (decimal strings)
    value_wei: Mapped[str] = mapped_column(String(80), nullable=False)
    gas_price: Mapped[str | None] = mapped_column(String(80), nullable=True)

    # Receipt data (null until the receipt is known)
    gas_used: Mapped[str | None] = mapped_column(String(80), nullable=True)
    status: Mapped[int | None] = mapped_column(Integer, nullable=True)

    indexed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<EvmTransaction(chain={self.chain_id}, hash={self.hash[:16]}..., "
            f"block={self.block_number})>"
        )

    def to_record(self) -> EvmTxRecord:
        """Convert row to canonical record."""
        return EvmTxRecord(
            chain_id=self.chain_id,
            hash=self.hash,
            block_number=self.block_number,
            tx_index=self.tx_index,
            from_address=self.from_address,
            to_address=self.to_address,
            value_wei=self.value_wei,
            gas_price=self.gas_price,
            gas_used=self.gas_used,
            status=self.status,
        )
