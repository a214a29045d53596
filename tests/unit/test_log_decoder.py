"""Unit tests for ERC20 Transfer log decoding."""

from conftest import ALICE, BOB, TOKEN, make_transfer_log

from chainmirror.config.constants import TRANSFER_EVENT_SIGNATURE, TRANSFER_EVENT_TOPIC
from chainmirror.services.log_decoder import decode_transfer, decode_transfers

TX_HASH = "0x" + "cd" * 32


class TestTransferTopic:
    """Tests for the derived Transfer topic."""

    def test_topic_matches_known_hash(self):
        """Topic is keccak256 of the canonical signature."""
        assert TRANSFER_EVENT_SIGNATURE == "Transfer(address,address,uint256)"
        assert TRANSFER_EVENT_TOPIC == (
            "0xddf252ad1be2c89b69c2b068fc378daa952ba7f163c4a11628f55a4df523b3ef"
        )


class TestDecodeTransfer:
    """Tests for decode_transfer."""

    def test_decodes_transfer(self):
        log = make_transfer_log(amount=1000, log_index=3, tx_hash=TX_HASH, block_number=42)

        event = decode_transfer(log, "anvil")

        assert event is not None
        assert event.chain_id == "anvil"
        assert event.tx_hash == TX_HASH
        assert event.block_number == 42
        assert event.log_index == 3
        assert event.token_address == TOKEN
        assert event.from_address == ALICE
        assert event.to_address == BOB
        assert event.value == "0x" + f"{1000:064x}"

    def test_topic_match_is_case_insensitive(self):
        log = make_transfer_log(tx_hash=TX_HASH, block_number=1)
        log["topics"][0] = log["topics"][0].upper().replace("0X", "0x")

        assert decode_transfer(log, "anvil") is not None

    def test_addresses_are_lowercased(self):
        log = make_transfer_log(tx_hash=TX_HASH, block_number=1)
        log["address"] = log["address"].upper().replace("0X", "0x")
        log["topics"][1] = "0x" + "0" * 24 + "AB" * 20

        event = decode_transfer(log, "anvil")

        assert event.token_address == TOKEN
        assert event.from_address == "0x" + "ab" * 20

    def test_empty_data_becomes_0x(self):
        log = make_transfer_log(tx_hash=TX_HASH, block_number=1)
        log["data"] = ""

        assert decode_transfer(log, "anvil").value == "0x"

    def test_caller_overrides_hash_and_block(self):
        log = make_transfer_log(tx_hash="0x" + "11" * 32, block_number=1)

        event = decode_transfer(log, "anvil", tx_hash=TX_HASH, block_number=99)

        assert event.tx_hash == TX_HASH
        assert event.block_number == 99

    def test_other_event_is_ignored(self):
        log = make_transfer_log(tx_hash=TX_HASH, block_number=1)
        log["topics"][0] = "0x" + "00" * 32

        assert decode_transfer(log, "anvil") is None

    def test_too_few_topics_is_ignored(self):
        """ERC721-style or anonymous logs with < 3 topics are not transfers."""
        log = make_transfer_log(tx_hash=TX_HASH, block_number=1)
        log["topics"] = log["topics"][:2]

        assert decode_transfer(log, "anvil") is None

    def test_malformed_log_is_ignored(self):
        assert decode_transfer({"topics": None}, "anvil") is None
        assert decode_transfer("not a log", "anvil") is None

        log = make_transfer_log(block_number=1)  # no transaction hash
        assert decode_transfer(log, "anvil") is None


class TestDecodeTransfers:
    """Tests for decode_transfers."""

    def test_decodes_only_transfer_logs(self):
        other = make_transfer_log(log_index=1)
        other["topics"][0] = "0x" + "ee" * 32
        receipt = {
            "transactionHash": TX_HASH,
            "blockNumber": hex(7),
            "logs": [
                make_transfer_log(log_index=0),
                other,
                make_transfer_log(log_index=2, amount=5),
            ],
        }

        events = decode_transfers(receipt, "anvil")

        assert [e.log_index for e in events] == [0, 2]
        assert all(e.tx_hash == TX_HASH and e.block_number == 7 for e in events)

    def test_missing_receipt_yields_nothing(self):
        assert decode_transfers(None, "anvil") == []
        assert decode_transfers({"transactionHash": TX_HASH, "logs": []}, "anvil") == []
