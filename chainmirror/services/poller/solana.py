"""
Solana chain poller.

Indexes confirmed blocks slot by slot. Skipped slots advance the cursor
without writing a slot row.
"""

from loguru import logger

from chainmirror.config.constants import SOLANA_SKIPPED_SLOT_CODES
from chainmirror.models.enums import ChainFamily
from chainmirror.services.normalizer.solana import (
    normalize_solana_slot,
    normalize_solana_transaction,
)
from chainmirror.services.poller.base import ChainPoller
from chainmirror.utils.exceptions import ProtocolError

GET_BLOCK_CONFIG = {
    "transactionDetails": "full",
    "maxSupportedTransactionVersion": 0,
    "rewards": False,
}


class SolanaPoller(ChainPoller):
    """Poller for Solana-style chains."""

    async def fetch_head(self) -> int:
        result = await self.rpc.call("getSlot")
        if isinstance(result, bool) or not isinstance(result, int):
            raise ProtocolError(f"getSlot returned {result!r}", method="getSlot")
        return result

    async def process_position(self, position: int) -> None:
        try:
            raw_block = await self.rpc.call("getBlock", [position, GET_BLOCK_CONFIG])
        except ProtocolError as e:
            if e.code in SOLANA_SKIPPED_SLOT_CODES:
                await self.store.advance_cursor(self.chain.id, ChainFamily.SOLANA, position)
                logger.debug(f"{self.log_prefix} Slot {position} skipped")
                return
            raise

        if raw_block is None:
            raise ProtocolError(f"Slot {position} not available", method="getBlock")

        slot = normalize_solana_slot(self.chain.id, position, raw_block)
        txs = [
            tx
            for item in raw_block.get("transactions") or []
            if (tx := normalize_solana_transaction(self.chain.id, position, item)) is not None
        ]

        await self.store.upsert_slot(slot, txs)
        await self.cache.write_through(slot, txs)

        logger.debug(f"{self.log_prefix} Slot {position}: {len(txs)} txs")
