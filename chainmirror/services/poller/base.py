"""
Chain poller base.

Per-chain polling loop shared by the EVM and Solana pollers. One poller runs
as one asyncio task and is the only writer for its chain.

State machine:
    IDLE -> FETCH_HEAD -> COMPUTE_RANGE -> PROCESS_RANGE -> SLEEP -> IDLE
    any state -> STOPPED after stop()
"""

import asyncio
from abc import ABC, abstractmethod
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from loguru import logger

from chainmirror.config.settings import ChainConfig, settings
from chainmirror.services.cache import ChainCache
from chainmirror.services.poller.ranges import compute_range
from chainmirror.services.rpc_client import JsonRpcClient
from chainmirror.services.store import IndexStore
from chainmirror.utils.exceptions import RETRY_NEXT_TICK, PersistenceError, RpcError


class PollerState(StrEnum):
    """Poller lifecycle state."""

    IDLE = "IDLE"
    FETCH_HEAD = "FETCH_HEAD"
    COMPUTE_RANGE = "COMPUTE_RANGE"
    PROCESS_RANGE = "PROCESS_RANGE"
    SLEEP = "SLEEP"
    STOPPED = "STOPPED"


class ChainPoller(ABC):
    """
    Base class for chain pollers.

    Subclasses implement fetch_head() and process_position(). A position
    counts as processed only after the store committed it together with
    the cursor; any failure leaves it to be retried on the next tick.
    """

    def __init__(
        self,
        chain: ChainConfig,
        rpc: JsonRpcClient,
        store: IndexStore,
        cache: ChainCache,
        poll_interval: float | None = None,
        backfill_from_genesis: bool | None = None,
        backfill_window: int | None = None,
    ) -> None:
        """
        Initialize poller.

        Args:
            chain: Chain descriptor
            rpc: RPC client bound to the chain endpoint
            store: Durable store
            cache: Hot cache
            poll_interval: Seconds between ticks (default: POLL_INTERVAL_MS)
            backfill_from_genesis: First run starts at 0 (default: BACKFILL_FROM_GENESIS)
            backfill_window: First run trailing window (default: INITIAL_BACKFILL)
        """
        self.chain = chain
        self.rpc = rpc
        self.store = store
        self.cache = cache

        self.poll_interval = (
            settings.poll_interval if poll_interval is None else poll_interval
        )
        self.backfill_from_genesis = (
            settings.backfill_from_genesis
            if backfill_from_genesis is None
            else backfill_from_genesis
        )
        self.backfill_window = backfill_window or settings.initial_backfill

        self.state = PollerState.IDLE
        self.cursor: int | None = None
        self.last_head: int | None = None
        self.last_error: str | None = None
        self.last_tick_at: datetime | None = None
        self.consecutive_failures = 0

        self._cursor_loaded = False
        self._stop_event = asyncio.Event()
        self.log_prefix = f"[Poller:{chain.id}]"

    @abstractmethod
    async def fetch_head(self) -> int:
        """Get the current chain head position."""

    @abstractmethod
    async def process_position(self, position: int) -> None:
        """Fetch, normalize, persist and cache one block or slot."""

    @property
    def stop_requested(self) -> bool:
        return self._stop_event.is_set()

    def stop(self) -> None:
        """Request shutdown. An in-flight call completes first."""
        if not self._stop_event.is_set():
            logger.info(f"{self.log_prefix} Stop requested")
        self._stop_event.set()

    def _record_failure(self, message: str) -> None:
        self.last_error = message
        self.consecutive_failures += 1

    async def tick(self) -> int:
        """
        Run one poll cycle (without the sleep).

        Returns:
            Number of positions processed
        """
        self.state = PollerState.IDLE
        self.last_tick_at = datetime.now(UTC)

        if not self._cursor_loaded:
            try:
                self.cursor = await self.store.get_cursor(self.chain.id)
            except PersistenceError as e:
                logger.error(f"{self.log_prefix} Cursor load failed: {e}")
                self._record_failure(str(e))
                return 0
            self._cursor_loaded = True
            if self.cursor is not None:
                logger.info(f"{self.log_prefix} Resuming after position {self.cursor}")

        self.state = PollerState.FETCH_HEAD
        try:
            head = await self.fetch_head()
        except RpcError as e:
            logger.warning(f"{self.log_prefix} Head fetch failed: {e}")
            self._record_failure(str(e))
            return 0
        self.last_head = head

        self.state = PollerState.COMPUTE_RANGE
        positions = compute_range(
            self.cursor, head, self.backfill_from_genesis, self.backfill_window
        )
        if positions is None:
            self.consecutive_failures = 0
            return 0

        self.state = PollerState.PROCESS_RANGE
        processed = 0
        for position in positions:
            if self.stop_requested:
                break
            try:
                await self.process_position(position)
            except RETRY_NEXT_TICK as e:
                logger.warning(
                    f"{self.log_prefix} Position {position} failed, "
                    f"retrying next tick: {e}"
                )
                self._record_failure(f"position {position}: {e}")
                return processed
            self.cursor = position
            processed += 1

        self.consecutive_failures = 0
        if processed:
            logger.info(
                f"{self.log_prefix} Indexed {processed} positions "
                f"up to {self.cursor} (head {head})"
            )
        return processed

    async def _sleep(self) -> None:
        self.state = PollerState.SLEEP
        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout=self.poll_interval)
        except TimeoutError:
            pass

    async def run(self) -> None:
        """Poll until stop() is called."""
        logger.info(
            f"{self.log_prefix} Starting {self.chain.family} poller "
            f"for {self.chain.name} ({self.rpc.endpoint})"
        )
        try:
            while not self.stop_requested:
                try:
                    await self.tick()
                except asyncio.CancelledError:
                    raise
                except Exception as e:
                    logger.exception(f"{self.log_prefix} Unexpected tick failure: {e}")
                    self._record_failure(str(e))

                if self.stop_requested:
                    break
                await self._sleep()
        finally:
            self.state = PollerState.STOPPED
            logger.info(f"{self.log_prefix} Stopped at position {self.cursor}")

    def snapshot(self) -> dict[str, Any]:
        """Status snapshot for the health endpoint."""
        return {
            "chain_id": self.chain.id,
            "family": str(self.chain.family),
            "state": str(self.state),
            "cursor": self.cursor,
            "last_head": self.last_head,
            "last_error": self.last_error,
            "last_tick_at": self.last_tick_at.isoformat() if self.last_tick_at else None,
            "consecutive_failures": self.consecutive_failures,
        }
