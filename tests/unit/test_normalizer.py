"""Unit tests for raw payload normalization."""

import pytest

from chainmirror.services.normalizer import (
    normalize_evm_block,
    normalize_evm_transaction,
    normalize_solana_slot,
    normalize_solana_transaction,
)
from chainmirror.utils.exceptions import NormalizationError

RAW_BLOCK = {
    "number": "0x2a",
    "hash": "0x" + "AB" * 32,
    "parentHash": "0x" + "cd" * 32,
    "timestamp": "0x6553f100",
    "miner": "0x" + "EF" * 20,
    "gasUsed": "0x5208",
    "gasLimit": "0x1c9c380",
    "transactions": [{"hash": "0x01"}, {"hash": "0x02"}],
}

RAW_TX = {
    "hash": "0x" + "AA" * 32,
    "blockNumber": "0x2a",
    "transactionIndex": "0x1",
    "from": "0x" + "A1" * 20,
    "to": "0x" + "B2" * 20,
    "value": "0xde0b6b3a7640000",
    "gasPrice": "0x77359400",
}


class TestNormalizeEvmBlock:
    def test_parses_header(self):
        block = normalize_evm_block("anvil", RAW_BLOCK)

        assert block.chain_id == "anvil"
        assert block.number == 42
        assert block.hash == "0x" + "ab" * 32
        assert block.miner == "0x" + "ef" * 20
        assert block.timestamp == 0x6553F100
        assert block.gas_used == 21000
        assert block.gas_limit == 30_000_000
        assert block.tx_count == 2

    def test_missing_number_raises(self):
        raw = {**RAW_BLOCK}
        del raw["number"]

        with pytest.raises(NormalizationError):
            normalize_evm_block("anvil", raw)

    def test_non_hex_raises(self):
        with pytest.raises(NormalizationError):
            normalize_evm_block("anvil", {**RAW_BLOCK, "timestamp": "soon"})


class TestNormalizeEvmTransaction:
    def test_with_receipt(self):
        receipt = {"gasUsed": "0x5208", "status": "0x1"}

        tx = normalize_evm_transaction("anvil", RAW_TX, receipt)

        assert tx.hash == "0x" + "aa" * 32
        assert tx.block_number == 42
        assert tx.tx_index == 1
        assert tx.from_address == "0x" + "a1" * 20
        assert tx.to_address == "0x" + "b2" * 20
        assert tx.value_wei == str(10**18)
        assert tx.gas_price == str(2 * 10**9)
        assert tx.gas_used == "21000"
        assert tx.status == 1

    def test_without_receipt_keeps_transaction(self):
        tx = normalize_evm_transaction("anvil", RAW_TX, None)

        assert tx.gas_used is None
        assert tx.status is None
        assert tx.value_wei == str(10**18)

    def test_failed_status(self):
        tx = normalize_evm_transaction("anvil", RAW_TX, {"gasUsed": "0x1", "status": "0x0"})

        assert tx.status == 0

    def test_contract_creation(self):
        tx = normalize_evm_transaction("anvil", {**RAW_TX, "to": None})

        assert tx.to_address is None

    def test_gas_price_falls_back_to_receipt(self):
        raw = {**RAW_TX}
        del raw["gasPrice"]

        tx = normalize_evm_transaction(
            "anvil", raw, {"gasUsed": "0x1", "status": "0x1", "effectiveGasPrice": "0x10"}
        )

        assert tx.gas_price == "16"

    def test_malformed_receipt_degrades_to_transaction_only(self):
        receipt = {"gasUsed": "not-hex", "status": "0x1"}

        tx = normalize_evm_transaction("anvil", RAW_TX, receipt)

        assert tx.gas_used is None
        assert tx.status is None
        assert tx.gas_price == str(2 * 10**9)
        assert tx.value_wei == str(10**18)
        assert tx.from_address == "0x" + "a1" * 20

    def test_missing_sender_raises(self):
        raw = {**RAW_TX}
        del raw["from"]

        with pytest.raises(NormalizationError):
            normalize_evm_transaction("anvil", raw)


RAW_SLOT = {
    "blockhash": "Hash111",
    "previousBlockhash": "Hash110",
    "parentSlot": 99,
    "blockTime": 1_700_000_000,
    "blockHeight": 90,
    "transactions": [
        {"transaction": {"signatures": ["Sig1"]}},
        {"transaction": {"signatures": ["Sig2"]}},
        {"transaction": {"signatures": ["Sig3"]}},
    ],
}


class TestNormalizeSolana:
    def test_slot(self):
        slot = normalize_solana_slot("sol", 100, RAW_SLOT)

        assert slot.slot == 100
        assert slot.blockhash == "Hash111"
        assert slot.parent_blockhash == "Hash110"
        assert slot.parent_slot == 99
        assert slot.block_height == 90
        assert slot.tx_count == 3

    def test_slot_without_block_time(self):
        slot = normalize_solana_slot("sol", 100, {**RAW_SLOT, "blockTime": None})

        assert slot.block_time is None

    def test_slot_counts_only_signed_entries(self):
        raw = {**RAW_SLOT, "transactions": [*RAW_SLOT["transactions"], {"transaction": {}}]}

        slot = normalize_solana_slot("sol", 100, raw)

        assert slot.tx_count == 3

    def test_successful_transaction(self):
        item = {
            "transaction": {"signatures": ["Sig1"], "message": {"accountKeys": ["Payer", "Prog"]}},
            "meta": {"fee": 5000, "err": None},
        }

        tx = normalize_solana_transaction("sol", 100, item)

        assert tx.signature == "Sig1"
        assert tx.slot == 100
        assert tx.fee_payer == "Payer"
        assert tx.fee == 5000
        assert tx.status == 1

    def test_failed_transaction(self):
        item = {
            "transaction": {"signatures": ["Sig1"], "message": {"accountKeys": ["Payer"]}},
            "meta": {"fee": 5000, "err": {"InstructionError": [0, "Custom"]}},
        }

        assert normalize_solana_transaction("sol", 100, item).status == 0

    def test_missing_meta_leaves_status_unknown(self):
        item = {"transaction": {"signatures": ["Sig1"], "message": {"accountKeys": []}}}

        tx = normalize_solana_transaction("sol", 100, item)

        assert tx.status is None
        assert tx.fee is None
        assert tx.fee_payer is None

    def test_parsed_account_keys(self):
        item = {
            "transaction": {
                "signatures": ["Sig1"],
                "message": {"accountKeys": [{"pubkey": "Payer", "signer": True}]},
            },
            "meta": {"fee": 1, "err": None},
        }

        assert normalize_solana_transaction("sol", 1, item).fee_payer == "Payer"

    def test_unsigned_entry_is_skipped(self):
        assert normalize_solana_transaction("sol", 1, {"transaction": {"signatures": []}}) is None

    def test_malformed_entry_raises(self):
        with pytest.raises(NormalizationError):
            normalize_solana_transaction("sol", 1, "garbage")
