"""
Indexer constants.

Fixed values shared by the pollers, the log decoder, the cache and the store.
Tunable values live in settings.py.
"""

from eth_utils import encode_hex, keccak

# ERC20 Transfer event
# topic[0] of every Transfer log is keccak256 of the canonical signature
TRANSFER_EVENT_SIGNATURE = "Transfer(address,address,uint256)"
TRANSFER_EVENT_TOPIC = encode_hex(keccak(text=TRANSFER_EVENT_SIGNATURE))

# Indexed topic layout: 32 bytes, address in the low 20 bytes
ADDRESS_HEX_LENGTH = 40
MIN_TRANSFER_TOPICS = 3

# Cache
DEFAULT_RECENT_LIMIT = 300
DEFAULT_HOT_TTL_SECONDS = 60 * 10

# Store reads
DEFAULT_QUERY_LIMIT = 20
MAX_QUERY_LIMIT = 500
UPSERT_BATCH_SIZE = 500

# Solana getBlock errors that mean "no block will ever exist for this slot"
SOLANA_SKIPPED_SLOT_CODES = frozenset({
    -32007,  # Slot was skipped, or missing due to ledger jump
    -32009,  # Slot was skipped, or missing in long-term storage
})

# Default chains when INDEXER_CHAINS_JSON is not set
DEFAULT_CHAINS = [
    {
        "id": "anvil",
        "family": "EVM",
        "name": "Anvil Local",
        "rpc_url": "http://localhost:8545",
    },
    {
        "id": "solana-local",
        "family": "SOLANA",
        "name": "Solana Local",
        "rpc_url": "http://localhost:8899",
    },
]
