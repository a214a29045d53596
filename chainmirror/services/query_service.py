"""
Chain query service.

Read interface for the API layer. Recent lists and point lookups are served
from the hot cache when it can answer in full and from the store otherwise.
Address and transfer queries always go to the store.
"""

from loguru import logger

from chainmirror.models.enums import RecordKind
from chainmirror.models.records import (
    CacheableRecord,
    EvmBlockRecord,
    EvmTxRecord,
    SolanaSlotRecord,
    SolanaTxRecord,
    TransferEvent,
)
from chainmirror.services.cache import ChainCache
from chainmirror.services.store import IndexStore, clamp_limit
from chainmirror.utils.exceptions import CACHE_ERRORS

# Cached payloads that no longer match the record shape are treated as misses
_CACHE_READ_ERRORS = (*CACHE_ERRORS, ValueError, TypeError)


class ChainQueryService:
    """Cache-first reads with store fallback."""

    def __init__(self, store: IndexStore, cache: ChainCache | None = None) -> None:
        """
        Initialize service.

        Args:
            store: Durable store (source of truth)
            cache: Hot cache, None to always read the store
        """
        self.store = store
        self.cache = cache

    async def _cached_recent(
        self, chain_id: str, kind: RecordKind, limit: int
    ) -> list[CacheableRecord] | None:
        """Return a full page from the cache, or None when the store must answer."""
        if self.cache is None:
            return None
        try:
            records = await self.cache.get_recent(chain_id, kind, limit)
        except _CACHE_READ_ERRORS as e:
            logger.warning(f"[Query] Cache read failed for {kind} {chain_id}: {e}")
            return None
        return records if len(records) >= limit else None

    async def _cached_get(
        self, chain_id: str, kind: RecordKind, record_id: str
    ) -> CacheableRecord | None:
        if self.cache is None:
            return None
        try:
            return await self.cache.get_by_id(chain_id, kind, record_id)
        except _CACHE_READ_ERRORS as e:
            logger.warning(f"[Query] Cache read failed for {kind} {chain_id}:{record_id}: {e}")
            return None

    # EVM

    async def recent_blocks(
        self, chain_id: str, limit: int | None = None
    ) -> list[EvmBlockRecord]:
        limit = clamp_limit(limit)
        cached = await self._cached_recent(chain_id, RecordKind.EVM_BLOCK, limit)
        if cached is not None:
            return cached
        return await self.store.recent_blocks(chain_id, limit)

    async def recent_evm_txs(
        self, chain_id: str, limit: int | None = None
    ) -> list[EvmTxRecord]:
        limit = clamp_limit(limit)
        cached = await self._cached_recent(chain_id, RecordKind.EVM_TX, limit)
        if cached is not None:
            return cached
        return await self.store.recent_evm_txs(chain_id, limit)

    async def get_block(self, chain_id: str, number: int) -> EvmBlockRecord | None:
        cached = await self._cached_get(chain_id, RecordKind.EVM_BLOCK, str(number))
        if cached is not None:
            return cached
        return await self.store.get_block(chain_id, number)

    async def get_evm_tx(self, chain_id: str, tx_hash: str) -> EvmTxRecord | None:
        tx_hash = tx_hash.lower()
        cached = await self._cached_get(chain_id, RecordKind.EVM_TX, tx_hash)
        if cached is not None:
            return cached
        return await self.store.get_evm_tx(chain_id, tx_hash)

    async def evm_txs_in_block(self, chain_id: str, number: int) -> list[EvmTxRecord]:
        return await self.store.evm_txs_in_block(chain_id, number)

    async def evm_txs_for_address(
        self, chain_id: str, address: str, limit: int | None = None
    ) -> list[EvmTxRecord]:
        return await self.store.evm_txs_for_address(chain_id, address, limit)

    async def transfers_for_address(
        self,
        chain_id: str,
        address: str,
        limit: int | None = None,
        token_address: str | None = None,
    ) -> list[TransferEvent]:
        return await self.store.transfers_for_address(
            chain_id, address, limit, token_address=token_address
        )

    # Solana

    async def recent_slots(
        self, chain_id: str, limit: int | None = None
    ) -> list[SolanaSlotRecord]:
        limit = clamp_limit(limit)
        cached = await self._cached_recent(chain_id, RecordKind.SOLANA_SLOT, limit)
        if cached is not None:
            return cached
        return await self.store.recent_slots(chain_id, limit)

    async def recent_solana_txs(
        self, chain_id: str, limit: int | None = None
    ) -> list[SolanaTxRecord]:
        limit = clamp_limit(limit)
        cached = await self._cached_recent(chain_id, RecordKind.SOLANA_TX, limit)
        if cached is not None:
            return cached
        return await self.store.recent_solana_txs(chain_id, limit)

    async def get_slot(self, chain_id: str, slot: int) -> SolanaSlotRecord | None:
        cached = await self._cached_get(chain_id, RecordKind.SOLANA_SLOT, str(slot))
        if cached is not None:
            return cached
        return await self.store.get_slot(chain_id, slot)

    async def get_solana_tx(
        self, chain_id: str, signature: str
    ) -> SolanaTxRecord | None:
        cached = await self._cached_get(chain_id, RecordKind.SOLANA_TX, signature)
        if cached is not None:
            return cached
        return await self.store.get_solana_tx(chain_id, signature)

    async def solana_txs_in_slot(self, chain_id: str, slot: int) -> list[SolanaTxRecord]:
        return await self.store.solana_txs_in_slot(chain_id, slot)

    async def solana_txs_for_address(
        self, chain_id: str, address: str, limit: int | None = None
    ) -> list[SolanaTxRecord]:
        return await self.store.solana_txs_for_address(chain_id, address, limit)

    async def get_cursor(self, chain_id: str) -> int | None:
        """Last indexed position of a chain."""
        return await self.store.get_cursor(chain_id)
