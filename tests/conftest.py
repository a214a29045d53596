"""Pytest configuration and shared fixtures for all tests."""

import os
import sys
from pathlib import Path

# Minimal environment for tests (no .env, local defaults)
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("REDIS_URL", "redis://localhost:6379/15")
os.environ.pop("INDEXER_CHAINS_JSON", None)

# Add project root to PYTHONPATH
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import fakeredis  # noqa: E402
import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from chainmirror.config.constants import TRANSFER_EVENT_TOPIC  # noqa: E402
from chainmirror.config.database import (  # noqa: E402
    create_engine,
    create_session_maker,
    init_models,
)
from chainmirror.config.settings import ChainConfig  # noqa: E402
from chainmirror.services.cache import ChainCache  # noqa: E402
from chainmirror.services.store import IndexStore  # noqa: E402
from chainmirror.utils.exceptions import ProtocolError, TransportError  # noqa: E402

ALICE = "0x" + "a1" * 20
BOB = "0x" + "b2" * 20
TOKEN = "0x" + "70" * 20


def topic_for(address: str) -> str:
    """Left-pad an address into a 32-byte topic."""
    return "0x" + "0" * 24 + address[2:]


def make_transfer_log(
    sender: str = ALICE,
    recipient: str = BOB,
    amount: int = 1000,
    token: str = TOKEN,
    log_index: int = 0,
    tx_hash: str | None = None,
    block_number: int | None = None,
) -> dict:
    log = {
        "address": token,
        "topics": [TRANSFER_EVENT_TOPIC, topic_for(sender), topic_for(recipient)],
        "data": "0x" + f"{amount:064x}",
        "logIndex": hex(log_index),
    }
    if tx_hash is not None:
        log["transactionHash"] = tx_hash
    if block_number is not None:
        log["blockNumber"] = hex(block_number)
    return log


class FakeEvmNode:
    """In-memory EVM JSON-RPC node with per-block and per-receipt failures."""

    def __init__(self, endpoint: str = "http://evm.test:8545") -> None:
        self.endpoint = endpoint
        self.head = 0
        self.blocks: dict[int, dict] = {}
        self.receipts: dict[str, dict] = {}
        self.broken_blocks: set[int] = set()
        self.broken_receipts: set[str] = set()
        self.head_error: Exception | None = None
        self.calls: list[tuple[str, list]] = []

    @staticmethod
    def tx_hash(number: int, index: int) -> str:
        return f"0x{number:032x}{index:032x}"

    def add_block(self, number: int, transfers_per_tx: list[int] | None = None) -> dict:
        """
        Add a block with one transaction per entry of transfers_per_tx.

        Each entry is the number of Transfer logs in that transaction receipt.
        """
        transfers_per_tx = transfers_per_tx or []
        txs = []
        for index, transfer_count in enumerate(transfers_per_tx):
            tx_hash = self.tx_hash(number, index)
            txs.append({
                "hash": tx_hash,
                "blockNumber": hex(number),
                "transactionIndex": hex(index),
                "from": ALICE.upper().replace("0X", "0x"),
                "to": BOB,
                "value": hex(10**18 + index),
                "gasPrice": hex(2 * 10**9),
            })
            self.receipts[tx_hash] = {
                "transactionHash": tx_hash,
                "blockNumber": hex(number),
                "gasUsed": hex(21000),
                "status": "0x1",
                "logs": [
                    make_transfer_log(amount=log_index + 1, log_index=log_index)
                    for log_index in range(transfer_count)
                ],
            }
        block = {
            "number": hex(number),
            "hash": f"0x{'ab' * 4}{number:056x}",
            "parentHash": f"0x{'ab' * 4}{max(number - 1, 0):056x}",
            "timestamp": hex(1_700_000_000 + number),
            "miner": BOB,
            "gasUsed": hex(21000 * len(txs)),
            "gasLimit": hex(30_000_000),
            "transactions": txs,
        }
        self.blocks[number] = block
        self.head = max(self.head, number)
        return block

    async def call(self, method: str, params: list | None = None):
        params = params or []
        self.calls.append((method, params))

        if method == "eth_blockNumber":
            if self.head_error is not None:
                raise self.head_error
            return hex(self.head)
        if method == "eth_getBlockByNumber":
            number = int(params[0], 16)
            if number in self.broken_blocks:
                raise TransportError(f"block {number} unavailable", method=method)
            block = self.blocks.get(number)
            if block is None or params[1]:
                return block
            return {**block, "transactions": [tx["hash"] for tx in block["transactions"]]}
        if method == "eth_getTransactionReceipt":
            if params[0] in self.broken_receipts:
                raise TransportError(f"receipt {params[0]} unavailable", method=method)
            return self.receipts.get(params[0])
        raise ProtocolError("Method not found", method=method, code=-32601)

    async def close(self) -> None:
        pass


class FakeSolanaNode:
    """In-memory Solana JSON-RPC node with skipped and failing slots."""

    def __init__(self, endpoint: str = "http://solana.test:8899") -> None:
        self.endpoint = endpoint
        self.head = 0
        self.blocks: dict[int, dict] = {}
        self.skipped: set[int] = set()
        self.broken: set[int] = set()
        self.calls: list[tuple[str, list]] = []

    @staticmethod
    def signature(slot: int, index: int) -> str:
        return f"sig{slot}x{index}"

    def add_slot(self, slot: int, tx_count: int = 1, failed: set[int] | None = None) -> dict:
        failed = failed or set()
        block = {
            "blockhash": f"hash{slot}",
            "previousBlockhash": f"hash{slot - 1}",
            "parentSlot": slot - 1,
            "blockTime": 1_700_000_000 + slot,
            "blockHeight": slot,
            "transactions": [
                {
                    "transaction": {
                        "signatures": [self.signature(slot, index)],
                        "message": {"accountKeys": [f"payer{index}", "program"]},
                    },
                    "meta": {
                        "fee": 5000,
                        "err": {"InstructionError": [0, "Custom"]} if index in failed else None,
                    },
                }
                for index in range(tx_count)
            ],
        }
        self.blocks[slot] = block
        self.head = max(self.head, slot)
        return block

    def skip_slot(self, slot: int) -> None:
        self.skipped.add(slot)
        self.head = max(self.head, slot)

    async def call(self, method: str, params: list | None = None):
        params = params or []
        self.calls.append((method, params))

        if method == "getSlot":
            return self.head
        if method == "getBlock":
            slot = params[0]
            if slot in self.broken:
                raise TransportError(f"slot {slot} unavailable", method=method)
            if slot in self.skipped:
                raise ProtocolError(
                    f"Slot {slot} was skipped", method=method, code=-32007
                )
            return self.blocks.get(slot)
        raise ProtocolError("Method not found", method=method, code=-32601)

    async def close(self) -> None:
        pass


@pytest_asyncio.fixture
async def engine():
    """In-memory SQLite engine with all tables created."""
    engine = create_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await init_models(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine):
    return create_session_maker(engine)


@pytest.fixture
def store(session_maker):
    """IndexStore over the in-memory database."""
    return IndexStore(session_maker)


@pytest_asyncio.fixture
async def redis_client():
    """Fake Redis client with decoded responses."""
    client = fakeredis.FakeAsyncRedis(decode_responses=True)
    yield client
    await client.aclose()


@pytest.fixture
def cache(redis_client):
    return ChainCache(redis_client, recent_limit=300, hot_ttl_seconds=600)


@pytest.fixture
def evm_chain():
    return ChainConfig(id="anvil", family="EVM", name="Anvil", rpc_url="http://evm.test:8545")


@pytest.fixture
def solana_chain():
    return ChainConfig(
        id="solana-local", family="SOLANA", name="Solana", rpc_url="http://solana.test:8899"
    )


@pytest.fixture
def evm_node():
    return FakeEvmNode()


@pytest.fixture
def solana_node():
    return FakeSolanaNode()
