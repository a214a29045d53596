"""
Chain cache.

Redis hot cache of recently indexed records: JSON point entries with a TTL
plus one bounded sorted set of recent ids per (chain, record kind).
The cache is a disposable view of the store. Write failures are logged
and never fail a poller tick.
"""

import json
from collections.abc import Sequence

import redis.asyncio as redis
from loguru import logger

from chainmirror.config.constants import DEFAULT_HOT_TTL_SECONDS, DEFAULT_RECENT_LIMIT
from chainmirror.models.enums import RecordKind
from chainmirror.models.records import RECORD_TYPES, CacheableRecord
from chainmirror.utils.exceptions import CACHE_ERRORS


class ChainCache:
    """
    Recent-items cache over redis.asyncio.

    Keys:
        {kind}:{chain}:{id}   JSON copy of a record, expires after hot_ttl
        recent:{kind}:{chain} sorted set of ids scored by block/slot
    """

    def __init__(
        self,
        redis_client: redis.Redis,
        recent_limit: int = DEFAULT_RECENT_LIMIT,
        hot_ttl_seconds: int = DEFAULT_HOT_TTL_SECONDS,
    ) -> None:
        """
        Initialize cache.

        Args:
            redis_client: Redis client created with decode_responses=True
            recent_limit: Max ids kept in each recent set
            hot_ttl_seconds: Expiry of point entries
        """
        self.redis = redis_client
        self.recent_limit = recent_limit
        self.hot_ttl_seconds = hot_ttl_seconds

    @staticmethod
    def entry_key(kind: RecordKind, chain_id: str, record_id: str) -> str:
        return f"{kind}:{chain_id}:{record_id}"

    @staticmethod
    def recent_key(kind: RecordKind, chain_id: str) -> str:
        return f"recent:{kind}:{chain_id}"

    def _queue_put(self, pipe, record: CacheableRecord) -> None:
        pipe.set(
            self.entry_key(record.KIND, record.chain_id, record.record_id),
            json.dumps(record.to_dict()),
            ex=self.hot_ttl_seconds,
        )

    def _queue_add_recent(self, pipe, record: CacheableRecord) -> None:
        key = self.recent_key(record.KIND, record.chain_id)
        pipe.zadd(key, {record.record_id: record.position})
        # Keep only the newest recent_limit members
        pipe.zremrangebyrank(key, 0, -(self.recent_limit + 1))

    async def put(self, record: CacheableRecord) -> None:
        """Store a point entry with the hot TTL."""
        await self.redis.set(
            self.entry_key(record.KIND, record.chain_id, record.record_id),
            json.dumps(record.to_dict()),
            ex=self.hot_ttl_seconds,
        )

    async def add_recent(self, record: CacheableRecord) -> None:
        """Add record id to its recent set and trim the set."""
        async with self.redis.pipeline(transaction=False) as pipe:
            self._queue_add_recent(pipe, record)
            await pipe.execute()

    async def get_by_id(
        self, chain_id: str, kind: RecordKind, record_id: str
    ) -> CacheableRecord | None:
        """
        Get a cached record.

        Args:
            chain_id: Chain identifier
            kind: Record kind
            record_id: Block/slot number or tx hash/signature

        Returns:
            Record or None on miss
        """
        raw = await self.redis.get(self.entry_key(kind, chain_id, record_id))
        if raw is None:
            return None
        return RECORD_TYPES[kind](**json.loads(raw))

    async def get_recent(
        self, chain_id: str, kind: RecordKind, limit: int
    ) -> list[CacheableRecord]:
        """
        Get newest cached records of a kind.

        Ids whose point entry already expired are skipped, so fewer than
        `limit` records may come back.

        Args:
            chain_id: Chain identifier
            kind: Record kind
            limit: Max records

        Returns:
            Records ordered newest first
        """
        if limit < 1:
            return []

        ids = await self.redis.zrevrange(self.recent_key(kind, chain_id), 0, limit - 1)
        if not ids:
            return []

        values = await self.redis.mget(
            [self.entry_key(kind, chain_id, record_id) for record_id in ids]
        )
        record_type = RECORD_TYPES[kind]
        return [record_type(**json.loads(raw)) for raw in values if raw is not None]

    async def write_through(
        self,
        head: CacheableRecord,
        txs: Sequence[CacheableRecord] = (),
    ) -> bool:
        """
        Cache a freshly persisted block/slot and its transactions.

        Args:
            head: Block or slot record
            txs: Transaction records of that block/slot

        Returns:
            True if written, False if the cache was unavailable
        """
        try:
            async with self.redis.pipeline(transaction=False) as pipe:
                for record in (head, *txs):
                    self._queue_put(pipe, record)
                    self._queue_add_recent(pipe, record)
                await pipe.execute()
            return True
        except CACHE_ERRORS as e:
            logger.warning(
                f"[Cache] Write-through failed for {head.KIND} "
                f"{head.chain_id}#{head.record_id}: {e}"
            )
            return False
