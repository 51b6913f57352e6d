#!/usr/bin/env python3
"""Tests for ERC-20 log decoding."""

import pytest
from web3 import Web3

from tx_explainer.models import Approval, EventLog, ValueTransfer
from tx_explainer.utils.event_decoder import (
    APPROVAL_TOPIC,
    TRANSFER_TOPIC,
    address_topic,
    decode_log,
    parse_address_topic,
    to_bytes32,
)

from conftest import ALICE, BOB, STABLECOIN, approval_log, transfer_log


class TestTopics:
    """Tests for topic helpers."""

    def test_transfer_topic_is_well_known_hash(self):
        assert Web3.to_hex(TRANSFER_TOPIC) == (
            "0xddf252ad1be2c89b69c2b068fc378daa952ba7f163c4a11628f55a4df523b3ef"
        )

    def test_approval_topic_is_well_known_hash(self):
        assert Web3.to_hex(APPROVAL_TOPIC) == (
            "0x8c5be1e5ebec7d5bd14f71427d1e84f3dd0314c0f7b2291e5b200ac8c7c3b925"
        )

    def test_address_topic_round_trip(self):
        """Test that an address padded to a topic parses back."""
        topic = address_topic(ALICE)

        assert len(topic) == 32
        assert topic[:12] == b"\0" * 12
        assert parse_address_topic(topic) == ALICE

    def test_parse_rejects_dirty_padding(self):
        """Test that a topic with non-zero high bytes is not an address."""
        topic = b"\x01" + address_topic(ALICE)[1:]

        assert parse_address_topic(topic) is None

    def test_parse_rejects_wrong_length(self):
        assert parse_address_topic(b"\0" * 20) is None

    @pytest.mark.parametrize("value", [
        "0x" + "ab" * 32,
        bytes.fromhex("ab" * 32),
        bytearray.fromhex("ab" * 32),
    ])
    def test_to_bytes32_accepts_provider_shapes(self, value):
        assert to_bytes32(value) == bytes.fromhex("ab" * 32)

    def test_to_bytes32_rejects_other_types(self):
        with pytest.raises(TypeError):
            to_bytes32(12345)


class TestDecodeLog:
    """Tests for decode_log."""

    def test_decode_transfer(self):
        event = decode_log(transfer_log(STABLECOIN, ALICE, BOB, 3_000_000))

        assert event == ValueTransfer(sender=ALICE, recipient=BOB, amount=3_000_000)

    def test_decode_approval(self):
        event = decode_log(approval_log(STABLECOIN, ALICE, BOB, 2**256 - 1))

        assert event == Approval(owner=ALICE, spender=BOB, amount=2**256 - 1)

    def test_unknown_signature(self):
        """Test that a log with an unrelated first topic is skipped."""
        log = transfer_log(STABLECOIN, ALICE, BOB, 1)
        log = EventLog(address=log.address, topics=(b"\x11" * 32,) + log.topics[1:], data=log.data)

        assert decode_log(log) is None

    def test_erc721_transfer_is_not_a_value_transfer(self):
        """Test that a Transfer with an indexed token id (4 topics) is skipped."""
        log = transfer_log(STABLECOIN, ALICE, BOB, 1)
        log = EventLog(
            address=log.address,
            topics=log.topics + ((7).to_bytes(32, 'big'),),
            data=b"",
        )

        assert decode_log(log) is None

    def test_empty_topics(self):
        assert decode_log(EventLog(address=STABLECOIN, topics=())) is None

    @pytest.mark.parametrize("data", [b"", b"\0" * 31, b"\0" * 64])
    def test_unexpected_data_length(self, data):
        """Test that data other than a single uint256 is rejected."""
        log = transfer_log(STABLECOIN, ALICE, BOB, 1)
        log = EventLog(address=log.address, topics=log.topics, data=data)

        assert decode_log(log) is None
