"""Indexing services."""

from chainmirror.services.cache import ChainCache
from chainmirror.services.query_service import ChainQueryService
from chainmirror.services.rpc_client import JsonRpcClient
from chainmirror.services.store import IndexStore
from chainmirror.services.transfer_backfill import BackfillReport, TransferBackfill

__all__ = [
    "BackfillReport",
    "ChainCache",
    "ChainQueryService",
    "IndexStore",
    "JsonRpcClient",
    "TransferBackfill",
]
