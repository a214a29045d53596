"""
Solana record normalizer.

Turns raw getBlock payloads (transactionDetails=full) into canonical records.
"""

from typing import Any

from chainmirror.models.records import SolanaSlotRecord, SolanaTxRecord
from chainmirror.utils.exceptions import NormalizationError


def _optional_int(value: Any, field: str) -> int | None:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise NormalizationError(f"Field {field} is not an integer: {value!r}")
    return value


def _signature(raw_item: Any) -> str | None:
    transaction = raw_item.get("transaction") if isinstance(raw_item, dict) else None
    signatures = transaction.get("signatures") if isinstance(transaction, dict) else None
    if not signatures or not isinstance(signatures[0], str):
        return None
    return signatures[0]


def normalize_solana_slot(
    chain_id: str, slot: int, raw_block: dict[str, Any]
) -> SolanaSlotRecord:
    """
    Build a slot record from a getBlock result.

    tx_count counts signed entries, matching the transaction rows kept.

    Args:
        chain_id: Chain identifier
        slot: Slot number the block was requested for
        raw_block: Raw confirmed block

    Returns:
        SolanaSlotRecord
    """
    if not isinstance(raw_block, dict):
        raise NormalizationError(f"Block payload is not an object: {raw_block!r}")

    transactions = raw_block.get("transactions") or []
    if not isinstance(transactions, list):
        raise NormalizationError("Field transactions is not a list")

    return SolanaSlotRecord(
        chain_id=chain_id,
        slot=slot,
        block_time=_optional_int(raw_block.get("blockTime"), "blockTime"),
        blockhash=raw_block.get("blockhash"),
        parent_blockhash=raw_block.get("previousBlockhash"),
        parent_slot=_optional_int(raw_block.get("parentSlot"), "parentSlot"),
        block_height=_optional_int(raw_block.get("blockHeight"), "blockHeight"),
        tx_count=sum(1 for item in transactions if _signature(item)),
    )


def _account_key(key: Any) -> str | None:
    # jsonParsed encoding wraps keys as {"pubkey": ..., "signer": ...}
    if isinstance(key, dict):
        return key.get("pubkey")
    return key if isinstance(key, str) else None


def normalize_solana_transaction(
    chain_id: str, slot: int, raw_item: dict[str, Any]
) -> SolanaTxRecord | None:
    """
    Build a transaction record from one entry of getBlock transactions.

    Args:
        chain_id: Chain identifier
        slot: Slot containing the transaction
        raw_item: {"transaction": {...}, "meta": {...}}

    Returns:
        SolanaTxRecord, or None when the entry carries no signature
    """
    if not isinstance(raw_item, dict):
        raise NormalizationError(f"Transaction entry is not an object: {raw_item!r}")

    transaction = raw_item.get("transaction") or {}
    if not isinstance(transaction, dict):
        raise NormalizationError("Field transaction is not an object")

    signature = _signature(raw_item)
    if signature is None:
        return None

    message = transaction.get("message") or {}
    account_keys = message.get("accountKeys") or []
    fee_payer = _account_key(account_keys[0]) if account_keys else None

    meta = raw_item.get("meta")
    if isinstance(meta, dict):
        fee = _optional_int(meta.get("fee"), "fee")
        status = 0 if meta.get("err") else 1
    else:
        fee = None
        status = None

    return SolanaTxRecord(
        chain_id=chain_id,
        signature=signature,
        slot=slot,
        fee_payer=fee_payer,
        fee=fee,
        status=status,
    )
