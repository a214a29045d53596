#!/usr/bin/env python3
"""
ERC20 Transfer Backfill Script.

Re-scans a block range of a configured EVM chain and stores every ERC20
Transfer event found in the receipts.

Usage:
    python scripts/backfill_transfers.py <chain_id> <start> [end|latest]

Examples:
    python scripts/backfill_transfers.py anvil 0 100
    python scripts/backfill_transfers.py anvil 0 latest
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from loguru import logger  # noqa: E402

from chainmirror.config.database import (  # noqa: E402
    create_engine,
    create_session_maker,
    init_models,
)
from chainmirror.config.settings import settings  # noqa: E402
from chainmirror.services.rpc_client import JsonRpcClient  # noqa: E402
from chainmirror.services.store import IndexStore  # noqa: E402
from chainmirror.services.transfer_backfill import TransferBackfill  # noqa: E402
from chainmirror.utils.exceptions import ConfigurationError, RpcError  # noqa: E402
from chainmirror.utils.logging import setup_logging  # noqa: E402


def parse_end_block(value: str) -> int | None:
    """Parse the end argument: a block number or `latest`."""
    if value.lower() == "latest":
        return None
    try:
        number = int(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(
            f"end must be a block number or 'latest', got {value!r}"
        ) from e
    if number < 0:
        raise argparse.ArgumentTypeError("end must not be negative")
    return number


def parse_start_block(value: str) -> int:
    try:
        number = int(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(
            f"start must be a block number, got {value!r}"
        ) from e
    if number < 0:
        raise argparse.ArgumentTypeError("start must not be negative")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Backfill ERC20 Transfer events for an EVM chain"
    )
    parser.add_argument("chain_id", help="Configured chain id (e.g. anvil)")
    parser.add_argument("start", type=parse_start_block, help="First block")
    parser.add_argument(
        "end",
        nargs="?",
        default=None,
        type=parse_end_block,
        help="Last block or 'latest' (default: latest)",
    )
    return parser


async def backfill(chain_id: str, start: int, end: int | None) -> int:
    """
    Run the backfill.

    Returns:
        Process exit code
    """
    try:
        chains = {chain.id: chain for chain in settings.get_chains()}
    except ConfigurationError as e:
        logger.error(f"Invalid configuration: {e}")
        return 1

    chain = chains.get(chain_id)
    if chain is None:
        logger.error(f"Chain {chain_id} not found in config")
        return 1

    engine = create_engine()
    rpc = JsonRpcClient(chain.rpc_url, settings.rpc_timeout_seconds)
    try:
        await init_models(engine)
        store = IndexStore(create_session_maker(engine))
        job = TransferBackfill(chain, rpc, store)
        report = await job.run(start, end)
    except ConfigurationError as e:
        logger.error(str(e))
        return 1
    except RpcError as e:
        logger.error(f"Backfill failed: {e}")
        return 1
    finally:
        await rpc.close()
        await engine.dispose()

    if report.blocks_failed:
        logger.warning(f"{report.blocks_failed} blocks failed, re-run the range to retry them")
    return 0


def main() -> None:
    args = build_parser().parse_args()
    setup_logging()
    sys.exit(asyncio.run(backfill(args.chain_id, args.start, args.end)))


if __name__ == "__main__":
    main()
