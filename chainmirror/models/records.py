"""
Canonical chain records.

Chain-tagged, immutable records produced by the normalizer and shared by the
store, the cache and the query service. Large magnitudes (wei values, raw
token amounts) are kept as strings.
"""

from dataclasses import asdict, dataclass
from typing import Any, ClassVar

from chainmirror.models.enums import RecordKind


@dataclass(frozen=True, slots=True)
class EvmBlockRecord:
    """EVM block header."""

    KIND: ClassVar[RecordKind] = RecordKind.EVM_BLOCK

    chain_id: str
    number: int
    hash: str
    parent_hash: str | None
    timestamp: int
    miner: str | None
    gas_used: int
    gas_limit: int
    tx_count: int

    @property
    def record_id(self) -> str:
        return str(self.number)

    @property
    def position(self) -> int:
        return self.number

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class EvmTxRecord:
    """
    EVM transaction joined with its receipt.

    gas_used and status stay None when the receipt could not be fetched.
    """

    KIND: ClassVar[RecordKind] = RecordKind.EVM_TX

    chain_id: str
    hash: str
    block_number: int
    tx_index: int | None
    from_address: str
    to_address: str | None
    value_wei: str
    gas_price: str | None
    gas_used: str | None
    status: int | None

    @property
    def record_id(self) -> str:
        return self.hash

    @property
    def position(self) -> int:
        return self.block_number

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class TransferEvent:
    """ERC20 Transfer decoded from a receipt log."""

    chain_id: str
    tx_hash: str
    log_index: int
    token_address: str
    from_address: str
    to_address: str
    value: str
    block_number: int

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class SolanaSlotRecord:
    """Solana slot (confirmed block) header."""

    KIND: ClassVar[RecordKind] = RecordKind.SOLANA_SLOT

    chain_id: str
    slot: int
    block_time: int | None
    blockhash: str | None
    parent_blockhash: str | None
    parent_slot: int | None
    block_height: int | None
    tx_count: int

    @property
    def record_id(self) -> str:
        return str(self.slot)

    @property
    def position(self) -> int:
        return self.slot

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class SolanaTxRecord:
    """Solana transaction keyed by its first signature."""

    KIND: ClassVar[RecordKind] = RecordKind.SOLANA_TX

    chain_id: str
    signature: str
    slot: int
    fee_payer: str | None
    fee: int | None
    status: int | None

    @property
    def record_id(self) -> str:
        return self.signature

    @property
    def position(self) -> int:
        return self.slot

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


CacheableRecord = EvmBlockRecord | EvmTxRecord | SolanaSlotRecord | SolanaTxRecord

RECORD_TYPES: dict[RecordKind, type] = {
    RecordKind.EVM_BLOCK: EvmBlockRecord,
    RecordKind.EVM_TX: EvmTxRecord,
    RecordKind.SOLANA_SLOT: SolanaSlotRecord,
    RecordKind.SOLANA_TX: SolanaTxRecord,
}
