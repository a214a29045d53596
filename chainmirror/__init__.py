"""
chainmirror - multi-chain indexer.

Mirrors EVM and Solana chain activity into a SQL store and a Redis cache.
"""

__version__ = "0.1.0"
