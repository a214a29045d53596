"""Integration tests for cache-first reads with store fallback."""

from unittest.mock import AsyncMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from chainmirror.models.records import EvmBlockRecord, SolanaSlotRecord, SolanaTxRecord
from chainmirror.services.query_service import ChainQueryService


def block(number: int) -> EvmBlockRecord:
    return EvmBlockRecord(
        chain_id="anvil",
        number=number,
        hash=f"0x{number:064x}",
        parent_hash=None,
        timestamp=number,
        miner=None,
        gas_used=0,
        gas_limit=0,
        tx_count=0,
    )


@pytest.fixture
def service(store, cache):
    return ChainQueryService(store, cache)


class TestRecentReads:
    @pytest.mark.asyncio
    async def test_full_page_comes_from_cache(self, service, store, cache):
        for number in range(3):
            await cache.write_through(block(number))
        store.recent_blocks = AsyncMock()

        result = await service.recent_blocks("anvil", 2)

        assert [b.number for b in result] == [2, 1]
        store.recent_blocks.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_short_cache_falls_back_to_store(self, service, store, cache):
        for number in range(5):
            await store.upsert_block(block(number), [])
        await cache.write_through(block(4))

        result = await service.recent_blocks("anvil", 3)

        assert [b.number for b in result] == [4, 3, 2]

    @pytest.mark.asyncio
    async def test_cache_error_falls_back_to_store(self, store, cache):
        await store.upsert_block(block(1), [])
        cache.get_recent = AsyncMock(side_effect=RedisConnectionError("down"))
        cache.get_by_id = AsyncMock(side_effect=RedisConnectionError("down"))
        service = ChainQueryService(store, cache)

        assert [b.number for b in await service.recent_blocks("anvil", 1)] == [1]
        assert (await service.get_block("anvil", 1)).number == 1

    @pytest.mark.asyncio
    async def test_without_cache(self, store):
        await store.upsert_block(block(1), [])
        service = ChainQueryService(store)

        assert [b.number for b in await service.recent_blocks("anvil")] == [1]


class TestPointReads:
    @pytest.mark.asyncio
    async def test_cache_hit(self, service, store, cache):
        await cache.put(block(7))
        store.get_block = AsyncMock()

        assert await service.get_block("anvil", 7) == block(7)
        store.get_block.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_cache_miss_reads_store(self, service, store):
        await store.upsert_block(block(8), [])

        assert await service.get_block("anvil", 8) == block(8)
        assert await service.get_block("anvil", 9) is None
        assert await service.evm_txs_in_block("anvil", 8) == []

    @pytest.mark.asyncio
    async def test_solana_reads(self, service, store, cache):
        slot = SolanaSlotRecord(
            chain_id="sol",
            slot=3,
            block_time=None,
            blockhash="h3",
            parent_blockhash="h2",
            parent_slot=2,
            block_height=None,
            tx_count=1,
        )
        stx = SolanaTxRecord(
            chain_id="sol", signature="sig3", slot=3, fee_payer="Payer", fee=5000, status=1
        )
        await store.upsert_slot(slot, [stx])

        assert await service.get_slot("sol", 3) == slot
        assert await service.get_solana_tx("sol", "sig3") == stx
        assert await service.recent_slots("sol") == [slot]
        assert await service.recent_solana_txs("sol") == [stx]
        assert await service.solana_txs_for_address("sol", "Payer") == [stx]
        assert await service.solana_txs_in_slot("sol", 3) == [stx]
        assert await service.get_cursor("sol") == 3
