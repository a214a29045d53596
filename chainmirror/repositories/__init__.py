"""Data access repositories."""

from chainmirror.repositories.cursor_repository import CursorRepository
from chainmirror.repositories.evm_repository import EvmRepository
from chainmirror.repositories.solana_repository import SolanaRepository

__all__ = [
    "CursorRepository",
    "EvmRepository",
    "SolanaRepository",
]
