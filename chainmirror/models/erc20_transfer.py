"""
ERC20 transfer model.

Derived entirely from decoded receipt logs.
"""

from datetime import UTC, datetime

from sqlalchemy import BigInteger, DateTime, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from chainmirror.models.base import Base
from chainmirror.models.records import TransferEvent


class Erc20Transfer(Base):
    """Decoded ERC20 Transfer event, one per (chain, tx, log index)."""

    __tablename__ = "erc20_transfers"
    __table_args__ = (
        Index("ix_erc20_transfers_chain_from", "chain_id", "from_address"),
        Index("ix_erc20_transfers_chain_to", "chain_id", "to_address"),
        Index("ix_erc20_transfers_chain_token", "chain_id", "token_address"),
        Index("ix_erc20_transfers_chain_block", "chain_id", "block_number"),
    )

    # Natural key
    chain_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    tx_hash: Mapped[str] = mapped_column(String(66), primary_key=True)
    log_index: Mapped[int] = mapped_column(Integer, primary_key=True)

    token_address: Mapped[str] = mapped_column(String(42), nullable=False)
    from_address: Mapped[str] = mapped_column(String(42), nullable=False)
    to_address: Mapped[str] = mapped_column(String(42), nullable=False)

    # Raw log data, hex encoded, any length
    value: Mapped[str] = mapped_column(Text, nullable=False)
    block_number: Mapped[int] = mapped_column(BigInteger, nullable=False)

    indexed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<Erc20Transfer(chain={self.chain_id}, tx={self.tx_hash[:16]}..., "
            f"log={self.log_index}, token={self.token_address})>"
        )

    def to_record(self) -> TransferEvent:
        """Convert row to canonical record."""
        return TransferEvent(
            chain_id=self.chain_id,
            tx_hash=self.tx_hash,
            log_index=self.log_index,
            token_address=self.token_address,
            from_address=self.from_address,
            to_address=self.to_address,
            value=self.value,
            block_number=self.block_number,
        )
