"""
Indexer main entry point.

Starts one poller task per configured chain, the health server, and waits
for SIGINT/SIGTERM to shut everything down.
"""

import asyncio
import signal
import sys

from loguru import logger

from chainmirror.config.database import create_engine, create_session_maker, init_models
from chainmirror.config.settings import settings
from chainmirror.models.enums import ChainFamily
from chainmirror.services.cache import ChainCache
from chainmirror.services.poller import ChainPoller, create_poller
from chainmirror.services.rpc_client import JsonRpcClient
from chainmirror.services.store import IndexStore
from chainmirror.utils.exceptions import ConfigurationError
from chainmirror.utils.logging import setup_logging
from chainmirror.utils.redis_utils import get_redis_client, get_redis_url_masked


def _handle_poller_exit(task: asyncio.Task) -> None:
    """Log pollers that died outside the tick error handling."""
    if task.cancelled():
        return
    exc = task.exception()
    if exc:
        logger.error(f"Poller task {task.get_name()} failed: {exc}")


def build_pollers(
    store: IndexStore,
    cache: ChainCache,
) -> tuple[list[ChainPoller], list[JsonRpcClient]]:
    """
    Create one poller per configured chain.

    Raises:
        ConfigurationError: If the chain list is invalid
    """
    pollers: list[ChainPoller] = []
    clients: list[JsonRpcClient] = []
    for chain in settings.get_chains():
        rpc = JsonRpcClient(chain.rpc_url, settings.rpc_timeout_seconds)
        kwargs = {}
        if chain.family == ChainFamily.EVM:
            kwargs["receipt_concurrency"] = settings.receipt_concurrency
        pollers.append(create_poller(chain, rpc, store, cache, **kwargs))
        clients.append(rpc)
    return pollers, clients


async def main() -> None:
    """Run the indexer until a stop signal arrives."""
    setup_logging()

    try:
        engine = create_engine()
        session_maker = create_session_maker(engine)
        store = IndexStore(session_maker)
        redis_client = get_redis_client()
        cache = ChainCache(
            redis_client,
            recent_limit=settings.cache_recent_limit,
            hot_ttl_seconds=settings.cache_hot_ttl_seconds,
        )
        pollers, clients = build_pollers(store, cache)
    except ConfigurationError as e:
        logger.error(f"Invalid configuration: {e}")
        raise

    await init_models(engine)
    logger.info(f"Redis cache: {get_redis_url_masked()}")

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop_event.set)

    tasks = []
    for poller in pollers:
        task = asyncio.create_task(poller.run(), name=f"poller:{poller.chain.id}")
        task.add_done_callback(_handle_poller_exit)
        tasks.append(task)

    health_runner = None
    if settings.health_check_enabled:
        from chainmirror.health import start_health_server

        health_runner = await start_health_server(
            pollers, port=settings.health_check_port
        )

    logger.success(f"Indexer started with {len(pollers)} chains")

    try:
        await stop_event.wait()
    finally:
        logger.info("Shutting down...")
        for poller in pollers:
            poller.stop()
        await asyncio.gather(*tasks, return_exceptions=True)

        for rpc in clients:
            await rpc.close()
        await redis_client.aclose()
        await engine.dispose()

        if health_runner is not None:
            from chainmirror.health import stop_health_server

            await stop_health_server(health_runner)

        logger.info("Indexer stopped")


def run() -> None:
    """Console script entry point."""
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Indexer stopped by user (KeyboardInterrupt)")
    except ConfigurationError:
        sys.exit(2)
    except Exception as e:
        logger.exception(f"Indexer crashed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    run()
