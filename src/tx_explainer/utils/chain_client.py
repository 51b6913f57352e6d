"""
Read-only blockchain client built on ``web3.AsyncWeb3``.

One client talks to one RPC endpoint and exposes only the five reads the
explainer needs. Results are converted from web3 attribute dicts into the
package's frozen models; "transaction not found" becomes ``None``.
"""

import logging
from collections.abc import Mapping
from typing import Any, Protocol

from web3 import AsyncWeb3, Web3
from web3.exceptions import TransactionNotFound
from web3.types import HexBytes

from ..models import EventLog, LogFilter, ReceiptRecord, TransactionRecord
from .event_decoder import to_bytes32

logger = logging.getLogger(__name__)


class ChainClient(Protocol):
    """The narrow read interface consumed from each provider."""

    rpc_url: str

    async def get_network_id(self) -> int: ...

    async def get_block_height(self) -> int: ...

    async def get_transaction(self, tx_hash: str) -> TransactionRecord | None: ...

    async def get_transaction_receipt(self, tx_hash: str) -> ReceiptRecord | None: ...

    async def get_logs(self, log_filter: LogFilter) -> list[EventLog]: ...

    async def close(self) -> None: ...


def _hex(value: Any) -> str:
    """Render bytes or a hex string as lowercase 0x-hex."""
    if isinstance(value, (bytes, bytearray)):
        return Web3.to_hex(value).lower()
    text = str(value).lower()
    return text if text.startswith("0x") else "0x" + text


def _optional_int(value: Any) -> int | None:
    if value is None:
        return None
    return int(value)


def to_event_log(raw: Mapping[str, Any]) -> EventLog:
    """Convert a web3 log entry into an EventLog."""
    tx_hash = raw.get('transactionHash')
    return EventLog(
        address=str(raw['address']),
        topics=tuple(to_bytes32(topic) for topic in raw.get('topics', [])),
        data=bytes(HexBytes(raw.get('data', b''))),
        transaction_hash=_hex(tx_hash) if tx_hash is not None else None,
        log_index=_optional_int(raw.get('logIndex')),
    )


def to_transaction_record(raw: Mapping[str, Any]) -> TransactionRecord:
    """Convert a web3 transaction into a TransactionRecord."""
    recipient = raw.get('to')
    return TransactionRecord(
        tx_hash=_hex(raw['hash']),
        sender=Web3.to_checksum_address(raw['from']),
        recipient=Web3.to_checksum_address(recipient) if recipient else None,
        value=int(raw.get('value', 0) or 0),
        payload=bytes(HexBytes(raw.get('input', b'') or b'')),
        block_number=_optional_int(raw.get('blockNumber')),
    )


def to_receipt_record(raw: Mapping[str, Any]) -> ReceiptRecord:
    """Convert a web3 receipt into a ReceiptRecord."""
    return ReceiptRecord(
        tx_hash=_hex(raw['transactionHash']),
        status=int(raw.get('status', 0)),
        block_number=int(raw['blockNumber']),
        gas_used=_optional_int(raw.get('gasUsed')),
        effective_gas_price=_optional_int(raw.get('effectiveGasPrice')),
        logs=tuple(to_event_log(log) for log in raw.get('logs', [])),
    )


class Web3ChainClient:
    """ChainClient backed by an AsyncWeb3 HTTP provider."""

    def __init__(self, rpc_url: str) -> None:
        """
        Initialize the client.

        Args:
            rpc_url: HTTP(S) RPC endpoint
        """
        if not rpc_url:
            raise ValueError("RPC URL is required")

        self.rpc_url = rpc_url
        self.w3 = AsyncWeb3(AsyncWeb3.AsyncHTTPProvider(rpc_url))

    async def get_network_id(self) -> int:
        return int(await self.w3.eth.chain_id)

    async def get_block_height(self) -> int:
        return int(await self.w3.eth.block_number)

    async def get_transaction(self, tx_hash: str) -> TransactionRecord | None:
        try:
            raw = await self.w3.eth.get_transaction(tx_hash)
        except TransactionNotFound:
            return None
        return to_transaction_record(raw)

    async def get_transaction_receipt(self, tx_hash: str) -> ReceiptRecord | None:
        try:
            raw = await self.w3.eth.get_transaction_receipt(tx_hash)
        except TransactionNotFound:
            return None
        return to_receipt_record(raw)

    async def get_logs(self, log_filter: LogFilter) -> list[EventLog]:
        params = {
            'fromBlock': log_filter.from_block,
            'toBlock': log_filter.to_block,
            'address': Web3.to_checksum_address(log_filter.address),
            'topics': [
                Web3.to_hex(topic) if topic is not None else None
                for topic in log_filter.topics
            ],
        }
        logger.debug(f"eth_getLogs on {self.rpc_url}: {params}")
        raw_logs = await self.w3.eth.get_logs(params)
        return [to_event_log(raw) for raw in raw_logs]

    async def close(self) -> None:
        """Release the provider's HTTP session."""
        await self.w3.provider.disconnect()
