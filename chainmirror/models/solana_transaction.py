"""
Solana transaction model.
"""

from datetime import UTC, datetime

from sqlalchemy import BigInteger, DateTime, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from chainmirror.models.base import Base
from chainmirror.models.records import SolanaTxRecord


class SolanaTransaction(Base):
    """Indexed Solana transaction keyed by (chain, first signature)."""

    __tablename__ = "solana_transactions"
    __table_args__ = (
        Index("ix_solana_transactions_chain_slot", "chain_id", "slot"),
        Index("ix_solana_transactions_chain_payer", "chain_id", "fee_payer"),
    )

    # Natural key
    chain_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    signature: Mapped[str] = mapped_column(String(88), primary_key=True)

    slot: Mapped[int] = mapped_column(BigInteger, nullable=False)
    fee_payer: Mapped[str | None] = mapped_column(String(44), nullable=True)
    fee: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    status: Mapped[int | None] = mapped_column(
        Integer, nullable=True
    )  # 1 success, 0 failed, null unknown

    indexed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<SolanaTransaction(chain={self.chain_id}, "
            f"sig={self.signature[:16]}..., slot={self.slot})>"
        )

    def to_record(self) -> SolanaTxRecord:
        """Convert row to canonical record."""
        return SolanaTxRecord(
            chain_id=self.chain_id,
            signature=self.signature,
            slot=self.slot,
            fee_payer=self.fee_payer,
            fee=self.fee,
            status=self.status,
        )
