"""Shared fixtures: an in-memory chain standing in for RPC endpoints."""

import pytest

from tx_explainer.config import ExplainerConfig, PaymentConfig, ProviderConfig
from tx_explainer.models import EventLog, LogFilter, ReceiptRecord, TransactionRecord
from tx_explainer.utils.event_decoder import APPROVAL_TOPIC, TRANSFER_TOPIC, address_topic

CHAIN_ID = 8453

# Digit-only addresses are identical in checksum and lowercase form
PAYMENT_ADDRESS = "0x" + "33" * 20
STABLECOIN = "0x" + "44" * 20
OTHER_TOKEN = "0x" + "55" * 20
ALICE = "0x" + "11" * 20
BOB = "0x" + "22" * 20
PRICE = 3_000_000

TARGET_TX = "0x" + "a1" * 32
PAY_TX = "0x" + "b2" * 32
OTHER_TX = "0x" + "c3" * 32

RPC_URLS = ("https://rpc-1.test", "https://rpc-2.test", "https://rpc-3.test")


def transfer_log(token: str, sender: str, recipient: str, amount: int, tx_hash: str | None = None) -> EventLog:
    return EventLog(
        address=token,
        topics=(TRANSFER_TOPIC, address_topic(sender), address_topic(recipient)),
        data=amount.to_bytes(32, 'big'),
        transaction_hash=tx_hash,
    )


def approval_log(token: str, owner: str, spender: str, amount: int) -> EventLog:
    return EventLog(
        address=token,
        topics=(APPROVAL_TOPIC, address_topic(owner), address_topic(spender)),
        data=amount.to_bytes(32, 'big'),
    )


def make_transaction(
    tx_hash: str = TARGET_TX,
    value: int = 0,
    payload: bytes = b"",
    block_number: int | None = 990,
    recipient: str | None = BOB,
) -> TransactionRecord:
    return TransactionRecord(
        tx_hash=tx_hash,
        sender=ALICE,
        recipient=recipient,
        value=value,
        payload=payload,
        block_number=block_number,
    )


def make_receipt(
    tx_hash: str = TARGET_TX,
    logs: tuple[EventLog, ...] = (),
    status: int = 1,
    block_number: int = 990,
    gas_used: int | None = 21_000,
    effective_gas_price: int | None = 1_000_000_000,
) -> ReceiptRecord:
    return ReceiptRecord(
        tx_hash=tx_hash,
        status=status,
        block_number=block_number,
        gas_used=gas_used,
        effective_gas_price=effective_gas_price,
        logs=logs,
    )


class FakeEndpoint:
    """One simulated RPC endpoint with its own view of the chain."""

    def __init__(self, url: str, alive: bool = True, chain_id: int = CHAIN_ID, height: int = 1000):
        self.url = url
        self.alive = alive
        self.chain_id = chain_id
        self.height = height
        self.transactions: dict[str, TransactionRecord] = {}
        self.receipts: dict[str, ReceiptRecord] = {}
        self.block_logs: list[tuple[int, EventLog]] = []
        self.failing: set[str] = set()
        self.calls: list[str] = []
        self.log_filters: list[LogFilter] = []
        self.closed = 0

    def add_transaction(self, transaction: TransactionRecord) -> None:
        self.transactions[transaction.tx_hash.lower()] = transaction

    def add_receipt(self, receipt: ReceiptRecord) -> None:
        self.receipts[receipt.tx_hash.lower()] = receipt

    def add_block_log(self, block_number: int, log: EventLog) -> None:
        self.block_logs.append((block_number, log))

    def _enter(self, operation: str) -> None:
        self.calls.append(operation)
        if not self.alive or operation in self.failing:
            raise ConnectionError(f"{self.url} refused {operation}")


class FakeChainClient:
    """ChainClient implementation reading from a FakeEndpoint."""

    def __init__(self, endpoint: FakeEndpoint):
        self.endpoint = endpoint
        self.rpc_url = endpoint.url

    async def get_network_id(self) -> int:
        self.endpoint._enter("get_network_id")
        return self.endpoint.chain_id

    async def get_block_height(self) -> int:
        self.endpoint._enter("get_block_height")
        return self.endpoint.height

    async def get_transaction(self, tx_hash: str) -> TransactionRecord | None:
        self.endpoint._enter("get_transaction")
        return self.endpoint.transactions.get(tx_hash.lower())

    async def get_transaction_receipt(self, tx_hash: str) -> ReceiptRecord | None:
        self.endpoint._enter("get_transaction_receipt")
        return self.endpoint.receipts.get(tx_hash.lower())

    async def get_logs(self, log_filter: LogFilter) -> list[EventLog]:
        self.endpoint._enter("get_logs")
        self.endpoint.log_filters.append(log_filter)
        matched = []
        for block_number, log in self.endpoint.block_logs:
            if not log_filter.from_block <= block_number <= log_filter.to_block:
                continue
            if log.address.lower() != log_filter.address.lower():
                continue
            wanted = [
                (position, topic) for position, topic in enumerate(log_filter.topics)
                if topic is not None
            ]
            if all(position < len(log.topics) and log.topics[position] == topic for position, topic in wanted):
                matched.append(log)
        return matched

    async def close(self) -> None:
        self.endpoint.closed += 1


class FakeNetwork:
    """A set of endpoints addressed by URL, in the configured order."""

    def __init__(self, urls: tuple[str, ...] = RPC_URLS):
        self.endpoints = {url: FakeEndpoint(url) for url in urls}
        self.rpc_urls = urls

    def __getitem__(self, index: int) -> FakeEndpoint:
        return self.endpoints[self.rpc_urls[index]]

    def client_factory(self, url: str) -> FakeChainClient:
        return FakeChainClient(self.endpoints[url])

    def everywhere(self) -> list[FakeEndpoint]:
        return list(self.endpoints.values())

    @property
    def calls(self) -> list[str]:
        return [call for endpoint in self.everywhere() for call in endpoint.calls]


@pytest.fixture
def network():
    """Three healthy endpoints on the accepted chain."""
    return FakeNetwork()


@pytest.fixture
def payment_config():
    return PaymentConfig(
        payment_address=PAYMENT_ADDRESS,
        stablecoin_address=STABLECOIN,
        required_amount=PRICE,
        chain_id=CHAIN_ID,
        min_confirmations=1,
    )


@pytest.fixture
def explainer_config(payment_config):
    return ExplainerConfig(
        payment=payment_config,
        providers=ProviderConfig(rpc_urls=RPC_URLS, request_timeout=1.0),
    )
