"""
Shared enumerations.
"""

from enum import StrEnum


class ChainFamily(StrEnum):
    """Blockchain family a chain belongs to."""

    EVM = "EVM"
    SOLANA = "SOLANA"


class RecordKind(StrEnum):
    """
    Kind of canonical record.

    Values double as the `{family}:{entity}` prefix of cache keys.
    """

    EVM_BLOCK = "evm:block"
    EVM_TX = "evm:tx"
    SOLANA_SLOT = "solana:slot"
    SOLANA_TX = "solana:tx"
