"""
Chain cursor model.

Tracks the last fully processed position per chain so a restarted
indexer resumes exactly where it stopped.
"""

from datetime import UTC, datetime

from sqlalchemy import BigInteger, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from chainmirror.models.base import Base


class ChainCursor(Base):
    """
    Last fully processed block/slot of a chain.

    Written in the same transaction as the block or slot it points at,
    and only ever moves forward.
    """

    __tablename__ = "chain_cursors"

    chain_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    family: Mapped[str] = mapped_column(String(16), nullable=False)  # EVM, SOLANA
    position: Mapped[int] = mapped_column(BigInteger, nullable=False)

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False,
    )

    def __repr__(self) -> str:
        """String representation."""
        return f"<ChainCursor(chain={self.chain_id}, position={self.position})>"
