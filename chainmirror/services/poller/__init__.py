"""Per-chain polling loops."""

from chainmirror.config.settings import ChainConfig
from chainmirror.models.enums import ChainFamily
from chainmirror.services.poller.base import ChainPoller, PollerState
from chainmirror.services.poller.evm import EvmPoller
from chainmirror.services.poller.ranges import compute_range
from chainmirror.services.poller.solana import SolanaPoller

POLLER_TYPES: dict[ChainFamily, type[ChainPoller]] = {
    ChainFamily.EVM: EvmPoller,
    ChainFamily.SOLANA: SolanaPoller,
}


def create_poller(chain: ChainConfig, *args, **kwargs) -> ChainPoller:
    """Create the poller matching the chain family."""
    return POLLER_TYPES[chain.family](chain, *args, **kwargs)


__all__ = [
    "ChainPoller",
    "EvmPoller",
    "POLLER_TYPES",
    "PollerState",
    "SolanaPoller",
    "compute_range",
    "create_poller",
]
