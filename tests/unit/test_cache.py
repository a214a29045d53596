"""Unit tests for the Redis hot cache (fakeredis)."""

from unittest.mock import MagicMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from chainmirror.models.enums import RecordKind
from chainmirror.models.records import EvmBlockRecord, EvmTxRecord, SolanaSlotRecord
from chainmirror.services.cache import ChainCache


def make_block(number: int, chain_id: str = "anvil") -> EvmBlockRecord:
    return EvmBlockRecord(
        chain_id=chain_id,
        number=number,
        hash=f"0x{number:064x}",
        parent_hash=None,
        timestamp=1_700_000_000 + number,
        miner=None,
        gas_used=0,
        gas_limit=30_000_000,
        tx_count=1,
    )


def make_tx(number: int, index: int = 0) -> EvmTxRecord:
    return EvmTxRecord(
        chain_id="anvil",
        hash=f"0x{number:032x}{index:032x}",
        block_number=number,
        tx_index=index,
        from_address="0x" + "a1" * 20,
        to_address=None,
        value_wei="1000000000000000000",
        gas_price="1",
        gas_used=None,
        status=None,
    )


class TestChainCache:
    """Tests for ChainCache."""

    @pytest.mark.asyncio
    async def test_put_and_get_by_id(self, cache, redis_client):
        block = make_block(7)

        await cache.put(block)

        assert await cache.get_by_id("anvil", RecordKind.EVM_BLOCK, "7") == block
        assert await redis_client.ttl("evm:block:anvil:7") > 0

    @pytest.mark.asyncio
    async def test_get_by_id_miss(self, cache):
        assert await cache.get_by_id("anvil", RecordKind.EVM_TX, "0xmissing") is None

    @pytest.mark.asyncio
    async def test_write_through_head_and_txs(self, cache):
        block = make_block(3)
        txs = [make_tx(3, 0), make_tx(3, 1)]

        assert await cache.write_through(block, txs) is True

        assert await cache.get_recent("anvil", RecordKind.EVM_BLOCK, 10) == [block]
        recent_txs = await cache.get_recent("anvil", RecordKind.EVM_TX, 10)
        assert {tx.hash for tx in recent_txs} == {tx.hash for tx in txs}

    @pytest.mark.asyncio
    async def test_recent_is_newest_first(self, cache):
        for number in (1, 3, 2):
            await cache.write_through(make_block(number))

        recent = await cache.get_recent("anvil", RecordKind.EVM_BLOCK, 10)

        assert [b.number for b in recent] == [3, 2, 1]

    @pytest.mark.asyncio
    async def test_recent_set_is_bounded(self, redis_client):
        cache = ChainCache(redis_client, recent_limit=5, hot_ttl_seconds=60)

        for number in range(20):
            await cache.write_through(make_block(number))

        assert await redis_client.zcard("recent:evm:block:anvil") == 5
        recent = await cache.get_recent("anvil", RecordKind.EVM_BLOCK, 100)
        assert [b.number for b in recent] == [19, 18, 17, 16, 15]

    @pytest.mark.asyncio
    async def test_expired_entries_are_skipped(self, cache, redis_client):
        for number in (1, 2, 3):
            await cache.write_through(make_block(number))
        await redis_client.delete("evm:block:anvil:2")

        recent = await cache.get_recent("anvil", RecordKind.EVM_BLOCK, 3)

        assert [b.number for b in recent] == [3, 1]

    @pytest.mark.asyncio
    async def test_chains_are_isolated(self, cache):
        await cache.write_through(make_block(1, "anvil"))
        await cache.write_through(make_block(2, "other"))

        recent = await cache.get_recent("anvil", RecordKind.EVM_BLOCK, 10)

        assert [b.chain_id for b in recent] == ["anvil"]

    @pytest.mark.asyncio
    async def test_solana_keys(self, cache, redis_client):
        slot = SolanaSlotRecord(
            chain_id="sol",
            slot=11,
            block_time=None,
            blockhash="h",
            parent_blockhash=None,
            parent_slot=10,
            block_height=None,
            tx_count=0,
        )

        await cache.write_through(slot)

        assert await redis_client.exists("solana:slot:sol:11")
        assert await redis_client.zscore("recent:solana:slot:sol", "11") == 11

    @pytest.mark.asyncio
    async def test_write_through_swallows_redis_errors(self):
        redis_client = MagicMock()
        redis_client.pipeline.side_effect = RedisConnectionError("connection refused")
        cache = ChainCache(redis_client)

        assert await cache.write_through(make_block(1), [make_tx(1)]) is False
