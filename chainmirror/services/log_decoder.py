"""
ERC20 Transfer log decoder.

Matches receipt logs against the Transfer(address,address,uint256) topic and
turns them into TransferEvent records. Logs of any other shape are ignored.
"""

from typing import Any

from chainmirror.config.constants import (
    ADDRESS_HEX_LENGTH,
    MIN_TRANSFER_TOPICS,
    TRANSFER_EVENT_TOPIC,
)
from chainmirror.models.records import TransferEvent


def _hex_to_int(value: Any) -> int | None:
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value:
        try:
            return int(value, 16)
        except ValueError:
            return None
    return None


def _topic_to_address(topic: Any) -> str | None:
    """Take the low 20 bytes of an indexed topic."""
    if not isinstance(topic, str):
        return None
    hex_part = topic[2:] if topic[:2].lower() == "0x" else topic
    if len(hex_part) < ADDRESS_HEX_LENGTH:
        return None
    return "0x" + hex_part[-ADDRESS_HEX_LENGTH:].lower()


def decode_transfer(
    log: dict[str, Any],
    chain_id: str,
    tx_hash: str | None = None,
    block_number: int | None = None,
) -> TransferEvent | None:
    """
    Decode one log as an ERC20 Transfer.

    Args:
        log: Raw receipt log (address, topics, data, logIndex, ...)
        chain_id: Chain identifier
        tx_hash: Transaction hash override (default: log transactionHash)
        block_number: Block number override (default: log blockNumber)

    Returns:
        TransferEvent, or None if the log is not a well-formed Transfer
    """
    if not isinstance(log, dict):
        return None

    topics = log.get("topics") or []
    if len(topics) < MIN_TRANSFER_TOPICS:
        return None
    if not isinstance(topics[0], str) or topics[0].lower() != TRANSFER_EVENT_TOPIC:
        return None

    from_address = _topic_to_address(topics[1])
    to_address = _topic_to_address(topics[2])
    token_address = log.get("address")
    if from_address is None or to_address is None or not isinstance(token_address, str):
        return None

    tx_hash = tx_hash or log.get("transactionHash")
    if block_number is None:
        block_number = _hex_to_int(log.get("blockNumber"))
    log_index = _hex_to_int(log.get("logIndex"))
    if not tx_hash or block_number is None or log_index is None:
        return None

    return TransferEvent(
        chain_id=chain_id,
        tx_hash=tx_hash.lower(),
        log_index=log_index,
        token_address=token_address.lower(),
        from_address=from_address,
        to_address=to_address,
        value=log.get("data") or "0x",
        block_number=block_number,
    )


def decode_transfers(
    receipt: dict[str, Any] | None, chain_id: str
) -> list[TransferEvent]:
    """
    Decode every Transfer log of a receipt.

    Args:
        receipt: Raw transaction receipt (None yields no events)
        chain_id: Chain identifier

    Returns:
        Transfer events in log order
    """
    if not receipt:
        return []

    tx_hash = receipt.get("transactionHash")
    block_number = _hex_to_int(receipt.get("blockNumber"))

    events = []
    for log in receipt.get("logs") or []:
        event = decode_transfer(
            log, chain_id, tx_hash=tx_hash, block_number=block_number
        )
        if event is not None:
            events.append(event)
    return events
