"""
ERC20 transfer backfill.

Re-scans a block range of an EVM chain and stores every Transfer event found
in the receipts. Used to fill transfers for blocks indexed before transfer
decoding existed. Only transfer rows are written; the chain cursor and the
block/transaction tables are left alone.
"""

from dataclasses import dataclass

from loguru import logger

from chainmirror.config.settings import ChainConfig
from chainmirror.models.enums import ChainFamily
from chainmirror.models.records import TransferEvent
from chainmirror.services.log_decoder import decode_transfers
from chainmirror.services.normalizer.evm import hex_to_int
from chainmirror.services.rpc_client import JsonRpcClient
from chainmirror.services.store import IndexStore
from chainmirror.utils.exceptions import (
    RETRY_NEXT_TICK,
    ConfigurationError,
    NormalizationError,
    ProtocolError,
    RpcError,
)

PROGRESS_EVERY_BLOCKS = 100


@dataclass
class BackfillReport:
    """Outcome of a backfill run."""

    start: int
    end: int
    blocks_processed: int = 0
    transfers_found: int = 0
    blocks_failed: int = 0


class TransferBackfill:
    """Transfer backfill for one EVM chain."""

    def __init__(
        self, chain: ChainConfig, rpc: JsonRpcClient, store: IndexStore
    ) -> None:
        """
        Initialize backfill.

        Args:
            chain: EVM chain descriptor
            rpc: RPC client bound to the chain endpoint
            store: Durable store

        Raises:
            ConfigurationError: If the chain is not an EVM chain
        """
        if chain.family != ChainFamily.EVM:
            raise ConfigurationError(f"Chain {chain.id} is not an EVM chain")
        self.chain = chain
        self.rpc = rpc
        self.store = store

    async def _latest_block(self) -> int:
        result = await self.rpc.call("eth_blockNumber")
        try:
            return hex_to_int(result, "eth_blockNumber")
        except NormalizationError as e:
            raise ProtocolError(str(e), method="eth_blockNumber") from e

    async def _block_transfers(self, number: int) -> list[TransferEvent]:
        raw_block = await self.rpc.call("eth_getBlockByNumber", [hex(number), False])
        if raw_block is None:
            raise ProtocolError(
                f"Block {number} not available", method="eth_getBlockByNumber"
            )

        transfers: list[TransferEvent] = []
        for tx in raw_block.get("transactions") or []:
            tx_hash = tx.get("hash") if isinstance(tx, dict) else tx
            try:
                receipt = await self.rpc.call("eth_getTransactionReceipt", [tx_hash])
            except RpcError as e:
                logger.warning(f"[Backfill] Receipt {tx_hash} unavailable: {e}")
                continue
            transfers.extend(decode_transfers(receipt, self.chain.id))
        return transfers

    async def run(self, start: int, end: int | None = None) -> BackfillReport:
        """
        Backfill transfers for an inclusive block range.

        Args:
            start: First block
            end: Last block (None or beyond head: current head)

        Returns:
            BackfillReport with counters
        """
        latest = await self._latest_block()
        if end is None or end > latest:
            end = latest

        report = BackfillReport(start=start, end=end)
        logger.info(
            f"[Backfill] {self.chain.id}: blocks {start}..{end} (latest {latest})"
        )

        for number in range(start, end + 1):
            try:
                transfers = await self._block_transfers(number)
                await self.store.upsert_transfers(transfers)
            except RETRY_NEXT_TICK as e:
                logger.error(f"[Backfill] Block {number} failed: {e}")
                report.blocks_failed += 1
                continue

            report.blocks_processed += 1
            report.transfers_found += len(transfers)

            if report.blocks_processed % PROGRESS_EVERY_BLOCKS == 0:
                logger.info(
                    f"[Backfill] Processed {report.blocks_processed} blocks, "
                    f"found {report.transfers_found} transfers..."
                )

        logger.success(
            f"[Backfill] Complete: {report.blocks_processed} blocks, "
            f"{report.transfers_found} transfers, {report.blocks_failed} failed"
        )
        return report
