"""
Solana slot model.
"""

from datetime import UTC, datetime

from sqlalchemy import BigInteger, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from chainmirror.models.base import Base
from chainmirror.models.records import SolanaSlotRecord


class SolanaSlot(Base):
    """Indexed Solana slot, one per (chain, slot)."""

    __tablename__ = "solana_slots"

    # Natural key
    chain_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    slot: Mapped[int] = mapped_column(BigInteger, primary_key=True)

    block_time: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    blockhash: Mapped[str | None] = mapped_column(String(88), nullable=True)
    parent_blockhash: Mapped[str | None] = mapped_column(String(88), nullable=True)
    parent_slot: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    block_height: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    tx_count: Mapped[int] = mapped_column(Integer, nullable=False)

    indexed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<SolanaSlot(chain={self.chain_id}, slot={self.slot}, "
            f"txs={self.tx_count})>"
        )

    def to_record(self) -> SolanaSlotRecord:
        """Convert row to canonical record."""
        return SolanaSlotRecord(
            chain_id=self.chain_id,
            slot=self.slot,
            block_time=self.block_time,
            blockhash=self.blockhash,
            parent_blockhash=self.parent_blockhash,
            parent_slot=self.parent_slot,
            block_height=self.block_height,
            tx_count=self.tx_count,
        )
