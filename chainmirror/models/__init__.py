"""
Database models.

Exports all SQLAlchemy models and canonical records for easy imports.
"""

from chainmirror.models.base import Base
from chainmirror.models.chain_cursor import ChainCursor
from chainmirror.models.enums import ChainFamily, RecordKind
from chainmirror.models.erc20_transfer import Erc20Transfer

# EVM
from chainmirror.models.evm_block import EvmBlock
from chainmirror.models.evm_transaction import EvmTransaction

# Canonical records
from chainmirror.models.records import (
    EvmBlockRecord,
    EvmTxRecord,
    SolanaSlotRecord,
    SolanaTxRecord,
    TransferEvent,
)

# Solana
from chainmirror.models.solana_slot import SolanaSlot
from chainmirror.models.solana_transaction import SolanaTransaction

__all__ = [
    # Base
    "Base",
    # Enums
    "ChainFamily",
    "RecordKind",
    # EVM
    "EvmBlock",
    "EvmTransaction",
    "Erc20Transfer",
    # Solana
    "SolanaSlot",
    "SolanaTransaction",
    # Cursor
    "ChainCursor",
    # Records
    "EvmBlockRecord",
    "EvmTxRecord",
    "TransferEvent",
    "SolanaSlotRecord",
    "SolanaTxRecord",
]
