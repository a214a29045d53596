"""
Health check server for poller monitoring.

Provides HTTP endpoints exposing the per-chain poller state.
"""

import asyncio
from collections.abc import Sequence

from aiohttp import web
from loguru import logger

from chainmirror.services.poller import ChainPoller, PollerState

POLLERS_KEY = web.AppKey("pollers", list)


def _is_running(poller: ChainPoller) -> bool:
    return poller.state != PollerState.STOPPED and not poller.stop_requested


async def health_handler(request: web.Request) -> web.Response:
    """
    Health check endpoint.

    Returns:
        JSON response with one snapshot per chain poller; 503 when any
        poller is stopped or no poller is registered
    """
    pollers: list[ChainPoller] = request.app[POLLERS_KEY]
    if not pollers:
        return web.json_response(
            {
                "status": "unhealthy",
                "error": "No pollers registered",
            },
            status=503,
        )

    healthy = all(_is_running(poller) for poller in pollers)
    return web.json_response(
        {
            "status": "healthy" if healthy else "degraded",
            "chains": [poller.snapshot() for poller in pollers],
        },
        status=200 if healthy else 503,
    )


async def readiness_handler(request: web.Request) -> web.Response:
    """
    Readiness check endpoint.

    Returns:
        Ready once every poller has loaded its cursor and fetched a head
    """
    pollers: list[ChainPoller] = request.app[POLLERS_KEY]
    ready = bool(pollers) and all(
        _is_running(poller) and poller.last_head is not None for poller in pollers
    )
    return web.json_response(
        {
            "status": "ready" if ready else "not_ready",
            "ready": ready,
        },
        status=200 if ready else 503,
    )


async def liveness_handler(request: web.Request) -> web.Response:
    """Liveness check endpoint."""
    return web.json_response(
        {
            "status": "alive",
            "alive": True,
        }
    )


def create_health_app(pollers: Sequence[ChainPoller]) -> web.Application:
    """
    Build the health check application.

    Args:
        pollers: Pollers to report on

    Returns:
        aiohttp application
    """
    app = web.Application()
    app[POLLERS_KEY] = list(pollers)
    app.router.add_get("/health", health_handler)
    app.router.add_get("/ready", readiness_handler)
    app.router.add_get("/live", liveness_handler)
    return app


async def start_health_server(
    pollers: Sequence[ChainPoller],
    host: str = "0.0.0.0",
    port: int = 8080,
) -> web.AppRunner:
    """
    Start health check server.

    Args:
        pollers: Pollers to report on
        host: Host to bind to
        port: Port to bind to

    Returns:
        AppRunner for cleanup
    """
    runner = web.AppRunner(create_health_app(pollers))
    await runner.setup()
    site = web.TCPSite(runner, host, port)
    await site.start()

    logger.info(f"Health check server started on {host}:{port}")
    logger.info(f"  - Health: http://{host}:{port}/health")
    logger.info(f"  - Readiness: http://{host}:{port}/ready")
    logger.info(f"  - Liveness: http://{host}:{port}/live")

    return runner


async def stop_health_server(
    runner: web.AppRunner,
    timeout: int = 5,
) -> None:
    """
    Stop health check server gracefully.

    Args:
        runner: AppRunner to cleanup
        timeout: Maximum time to wait for cleanup in seconds
    """
    logger.info("Stopping health check server...")
    try:
        await asyncio.wait_for(runner.cleanup(), timeout=timeout)
        logger.info("Health check server stopped successfully")
    except TimeoutError:
        logger.warning(f"Health check server cleanup timed out after {timeout}s")
