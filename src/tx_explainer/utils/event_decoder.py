"""
Decoder for the two ERC-20 event shapes the explainer understands.

Logs are matched by their first topic against the keccak hash of the event
signature and then parsed positionally. Anything else (other events, ERC-721
transfers with an indexed token id, truncated data) decodes to ``None``.
"""

import logging
from typing import Any

from eth_abi import decode as abi_decode
from web3 import Web3
from web3.types import HexBytes

from ..models import Approval, DecodedEvent, EventLog, ValueTransfer

logger = logging.getLogger(__name__)

TRANSFER_SIGNATURE = "Transfer(address,address,uint256)"
APPROVAL_SIGNATURE = "Approval(address,address,uint256)"

TRANSFER_TOPIC: bytes = bytes(Web3.keccak(text=TRANSFER_SIGNATURE))
APPROVAL_TOPIC: bytes = bytes(Web3.keccak(text=APPROVAL_SIGNATURE))

# signature + two indexed addresses; the amount lives in data
EXPECTED_TOPIC_COUNT = 3


def to_bytes32(value: Any) -> bytes:
    """
    Normalize a topic to raw bytes.

    Providers return topics as HexBytes, plain bytes or hex strings.

    :param value: The topic to convert
    :return: Raw topic bytes
    """
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    if isinstance(value, str):
        return bytes(HexBytes(value))
    raise TypeError(f"Unsupported topic type: {type(value).__name__}")


def address_topic(address: str) -> bytes:
    """Left-pad an address to a 32-byte indexed topic."""
    return Web3.to_bytes(hexstr=address).rjust(32, b'\0')


def parse_address_topic(topic: bytes) -> str | None:
    """
    Parse an indexed address topic.

    :param topic: 32-byte topic
    :return: Checksummed address, or None if the topic is not a padded address
    """
    if len(topic) != 32 or any(topic[:12]):
        return None
    return Web3.to_checksum_address(topic[12:])


def decode_log(log: EventLog) -> DecodedEvent | None:
    """
    Decode a log as a ValueTransfer or an Approval.

    :param log: Raw log entry
    :return: The decoded event, or None for any other log shape
    """
    if len(log.topics) != EXPECTED_TOPIC_COUNT:
        return None

    signature = log.topics[0]
    if signature not in (TRANSFER_TOPIC, APPROVAL_TOPIC):
        return None

    first = parse_address_topic(log.topics[1])
    second = parse_address_topic(log.topics[2])
    if first is None or second is None:
        logger.debug(f"Skipping log from {log.address}: malformed address topic")
        return None

    # Exactly one uint256; longer data means a different event with the same name
    if len(log.data) != 32:
        logger.debug(f"Skipping log from {log.address}: unexpected data length {len(log.data)}")
        return None
    (amount,) = abi_decode(["uint256"], log.data)

    if signature == TRANSFER_TOPIC:
        return ValueTransfer(sender=first, recipient=second, amount=amount)
    return Approval(owner=first, spender=second, amount=amount)
