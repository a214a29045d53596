"""
Exception handling utilities.

Defines the indexer's exception types and groups them by handling strategy.
"""

from redis.exceptions import RedisError


class IndexerError(Exception):
    """Base class for indexer errors."""
    pass


class ConfigurationError(IndexerError):
    """Raised at startup when chain or process configuration is invalid."""
    pass


class RpcError(IndexerError):
    """Base class for chain RPC failures."""

    def __init__(self, message: str, method: str | None = None) -> None:
        super().__init__(message)
        self.method = method


class TransportError(RpcError):
    """Network or HTTP failure reaching the RPC endpoint."""
    pass


class ProtocolError(RpcError):
    """RPC answered with an error object or a malformed/missing result."""

    def __init__(
        self,
        message: str,
        method: str | None = None,
        code: int | None = None,
    ) -> None:
        super().__init__(message, method=method)
        self.code = code


class NormalizationError(IndexerError):
    """Raw RPC payload is missing fields required for a canonical record."""
    pass


class PersistenceError(IndexerError):
    """Store write or read failed; the unit of work was rolled back."""
    pass


# Exception categories based on handling strategy

# Abort the current position, resume from it on the next tick
RETRY_NEXT_TICK = (
    RpcError,
    NormalizationError,
    PersistenceError,
)

# Cache is a disposable view - log and continue
CACHE_ERRORS = (
    RedisError,
    ConnectionError,
    TimeoutError,
    OSError,
)
