"""Raw RPC payload to canonical record normalization."""

from chainmirror.services.normalizer.evm import (
    normalize_evm_block,
    normalize_evm_transaction,
)
from chainmirror.services.normalizer.solana import (
    normalize_solana_slot,
    normalize_solana_transaction,
)

__all__ = [
    "normalize_evm_block",
    "normalize_evm_transaction",
    "normalize_solana_slot",
    "normalize_solana_transaction",
]
