"""
EVM chain poller.

Indexes blocks with full transaction objects, joins receipts fetched with
bounded concurrency and decodes ERC20 Transfer logs.
"""

import asyncio
from typing import Any

from loguru import logger

from chainmirror.config.settings import settings
from chainmirror.models.records import EvmTxRecord, TransferEvent
from chainmirror.services.log_decoder import decode_transfers
from chainmirror.services.normalizer.evm import (
    hex_to_int,
    normalize_evm_block,
    normalize_evm_transaction,
)
from chainmirror.services.poller.base import ChainPoller
from chainmirror.utils.exceptions import NormalizationError, ProtocolError, RpcError


class EvmPoller(ChainPoller):
    """Poller for EVM-style chains."""

    def __init__(self, *args: Any, receipt_concurrency: int | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.receipt_concurrency = receipt_concurrency or settings.receipt_concurrency

    async def fetch_head(self) -> int:
        result = await self.rpc.call("eth_blockNumber")
        try:
            return hex_to_int(result, "eth_blockNumber")
        except NormalizationError as e:
            raise ProtocolError(str(e), method="eth_blockNumber") from e

    async def _fetch_receipt(
        self, semaphore: asyncio.Semaphore, tx_hash: str
    ) -> dict[str, Any] | None:
        async with semaphore:
            try:
                return await self.rpc.call("eth_getTransactionReceipt", [tx_hash])
            except RpcError as e:
                logger.warning(f"{self.log_prefix} Receipt {tx_hash} unavailable: {e}")
                return None

    async def fetch_receipts(self, tx_hashes: list[str]) -> list[dict[str, Any] | None]:
        """
        Fetch receipts concurrently, at most receipt_concurrency at a time.

        Args:
            tx_hashes: Transaction hashes in block order

        Returns:
            Receipts in the same order, None where the fetch failed
        """
        semaphore = asyncio.Semaphore(self.receipt_concurrency)
        return list(
            await asyncio.gather(
                *(self._fetch_receipt(semaphore, tx_hash) for tx_hash in tx_hashes)
            )
        )

    async def process_position(self, position: int) -> None:
        raw_block = await self.rpc.call("eth_getBlockByNumber", [hex(position), True])
        if raw_block is None:
            raise ProtocolError(
                f"Block {position} not available", method="eth_getBlockByNumber"
            )

        block = normalize_evm_block(self.chain.id, raw_block)

        raw_txs = raw_block.get("transactions") or []
        if any(not isinstance(raw_tx, dict) for raw_tx in raw_txs):
            raise NormalizationError(f"Block {position} has no full transaction objects")

        receipts = await self.fetch_receipts([raw_tx.get("hash") for raw_tx in raw_txs])

        txs: list[EvmTxRecord] = []
        transfers: list[TransferEvent] = []
        for raw_tx, receipt in zip(raw_txs, receipts, strict=True):
            txs.append(normalize_evm_transaction(self.chain.id, raw_tx, receipt))
            transfers.extend(decode_transfers(receipt, self.chain.id))

        await self.store.upsert_block(block, txs, transfers)
        await self.cache.write_through(block, txs)

        logger.debug(
            f"{self.log_prefix} Block {position}: {len(txs)} txs, "
            f"{len(transfers)} transfers"
        )
