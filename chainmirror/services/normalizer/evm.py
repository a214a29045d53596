"""
EVM record normalizer.

Turns raw eth_getBlockByNumber / eth_getTransactionReceipt payloads into
canonical records. Quantities arrive as 0x-prefixed hex strings.
"""

from typing import Any

from loguru import logger

from chainmirror.models.records import EvmBlockRecord, EvmTxRecord
from chainmirror.utils.exceptions import NormalizationError


def hex_to_int(value: Any, field: str) -> int:
    """
    Parse a hex quantity.

    Args:
        value: 0x-prefixed hex string (plain ints are accepted as-is)
        field: Field name used in the error message

    Returns:
        Parsed integer

    Raises:
        NormalizationError: If the value is missing or not hex
    """
    if isinstance(value, bool):
        raise NormalizationError(f"Field {field} is not a quantity: {value!r}")
    if isinstance(value, int):
        return value
    if not isinstance(value, str) or not value:
        raise NormalizationError(f"Field {field} is missing")
    try:
        return int(value, 16)
    except ValueError as e:
        raise NormalizationError(f"Field {field} is not hex: {value!r}") from e


def optional_hex_to_int(value: Any, field: str) -> int | None:
    if value is None:
        return None
    return hex_to_int(value, field)


def hex_to_decimal_str(value: Any, field: str) -> str | None:
    """Parse a wei-like hex magnitude into a decimal string."""
    if value is None:
        return None
    return str(hex_to_int(value, field))


def _lower(value: Any) -> str | None:
    return value.lower() if isinstance(value, str) else None


def _require(raw: dict[str, Any], field: str) -> Any:
    value = raw.get(field)
    if value is None:
        raise NormalizationError(f"Field {field} is missing")
    return value


def normalize_evm_block(chain_id: str, raw_block: dict[str, Any]) -> EvmBlockRecord:
    """
    Build a block record from an eth_getBlockByNumber result.

    Args:
        chain_id: Chain identifier
        raw_block: Raw block (full or hash-only transactions)

    Returns:
        EvmBlockRecord

    Raises:
        NormalizationError: If number, hash or timestamp is missing
    """
    if not isinstance(raw_block, dict):
        raise NormalizationError(f"Block payload is not an object: {raw_block!r}")

    return EvmBlockRecord(
        chain_id=chain_id,
        number=hex_to_int(raw_block.get("number"), "number"),
        hash=_lower(_require(raw_block, "hash")),
        parent_hash=_lower(raw_block.get("parentHash")),
        timestamp=hex_to_int(raw_block.get("timestamp"), "timestamp"),
        miner=_lower(raw_block.get("miner")),
        gas_used=optional_hex_to_int(raw_block.get("gasUsed"), "gasUsed") or 0,
        gas_limit=optional_hex_to_int(raw_block.get("gasLimit"), "gasLimit") or 0,
        tx_count=len(raw_block.get("transactions") or []),
    )


def normalize_evm_transaction(
    chain_id: str,
    raw_tx: dict[str, Any],
    receipt: dict[str, Any] | None = None,
) -> EvmTxRecord:
    """
    Build a transaction record, joining the receipt when available.

    A missing or malformed receipt leaves gas_used and status unset; the transaction
    itself is always kept.

    Args:
        chain_id: Chain identifier
        raw_tx: Full transaction object from the block
        receipt: Matching receipt or None

    Returns:
        EvmTxRecord

    Raises:
        NormalizationError: If hash, blockNumber or from is missing
    """
    if not isinstance(raw_tx, dict):
        raise NormalizationError(f"Transaction payload is not an object: {raw_tx!r}")

    gas_used = None
    status = None
    gas_price = hex_to_decimal_str(raw_tx.get("gasPrice"), "gasPrice")
    if receipt:
        try:
            receipt_gas_used = hex_to_decimal_str(receipt.get("gasUsed"), "gasUsed")
            receipt_status = optional_hex_to_int(receipt.get("status"), "status")
            receipt_gas_price = hex_to_decimal_str(
                receipt.get("effectiveGasPrice"), "effectiveGasPrice"
            )
        except NormalizationError as e:
            # Malformed receipt: keep the transaction without receipt fields
            logger.warning(f"[Normalizer] Ignoring receipt of {raw_tx.get('hash')}: {e}")
        else:
            gas_used = receipt_gas_used
            status = receipt_status
            if gas_price is None:
                gas_price = receipt_gas_price

    return EvmTxRecord(
        chain_id=chain_id,
        hash=_lower(_require(raw_tx, "hash")),
        block_number=hex_to_int(raw_tx.get("blockNumber"), "blockNumber"),
        tx_index=optional_hex_to_int(raw_tx.get("transactionIndex"), "transactionIndex"),
        from_address=_lower(_require(raw_tx, "from")),
        to_address=_lower(raw_tx.get("to")),
        value_wei=hex_to_decimal_str(raw_tx.get("value") or "0x0", "value"),
        gas_price=gas_price,
        gas_used=gas_used,
        status=status,
    )
