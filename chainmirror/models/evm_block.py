"""
EVM block model.

One row per (chain, block number). Re-indexing a block overwrites it in place.
"""

from datetime import UTC, datetime

from sqlalchemy import BigInteger, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from chainmirror.models.base import Base
from chainmirror.models.records import EvmBlockRecord


class EvmBlock(Base):
    """Indexed EVM block header."""

    __tablename__ = "evm_blocks"

    # Natural key
    chain_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    number: Mapped[int] = mapped_column(BigInteger, primary_key=True)

    hash: Mapped[str] = mapped_column(String(66), nullable=False)
    parent_hash: Mapped[str | None] = mapped_column(String(66), nullable=True)
    timestamp: Mapped[int] = mapped_column(BigInteger, nullable=False)
    miner: Mapped[str | None] = mapped_column(String(42), nullable=True)
    gas_used: Mapped[int] = mapped_column(BigInteger, nullable=False)
    gas_limit: Mapped[int] = mapped_column(BigInteger, nullable=False)
    tx_count: Mapped[int] = mapped_column(Integer, nullable=False)

    indexed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<EvmBlock(chain={self.chain_id}, number={self.number}, "
            f"txs={self.tx_count})>"
        )

    def to_record(self) -> EvmBlockRecord:
        """Convert row to canonical record."""
        return EvmBlockRecord(
            chain_id=self.chain_id,
            number=self.number,
            hash=self.hash,
            parent_hash=self.parent_hash,
            timestamp=self.timestamp,
            miner=self.miner,
            gas_used=self.gas_used,
            gas_limit=self.gas_limit,
            tx_count=self.tx_count,
        )
