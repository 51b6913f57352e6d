"""
Sequential failover across an ordered list of RPC endpoints.

Every read walks the list from the top: probe the candidate with a cheap
block-height call, then run the real read on that same candidate and return
whatever it answers, even an empty result. A failed probe or read moves on
to the next candidate. Each candidate's client is closed before moving on.
Nothing is cached and no candidate is preferred because it answered last
time.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import Generic, TypeVar

from ..exceptions import AllProvidersUnavailable
from ..models import EventLog, LogFilter, ReceiptRecord, TransactionRecord
from .chain_client import ChainClient, Web3ChainClient

logger = logging.getLogger(__name__)

T = TypeVar("T")

ReadOperation = Callable[[ChainClient], Awaitable[T]]


@dataclass(frozen=True)
class PoolResult(Generic[T]):
    """Outcome of a pool read.

    Either ``provider_url`` is set and ``value`` holds the answer (which may
    itself be None), or the pool was exhausted and ``last_error`` holds the
    error seen on the last candidate.
    """

    operation: str
    value: T | None = None
    provider_url: str | None = None
    last_error: BaseException | None = None
    attempted: tuple[str, ...] = ()

    @property
    def ok(self) -> bool:
        return self.provider_url is not None

    def unwrap(self) -> T | None:
        """Return the value or raise AllProvidersUnavailable."""
        if not self.ok:
            raise AllProvidersUnavailable(self.operation, self.last_error, self.attempted)
        return self.value


class ProviderPool:
    """Ordered, stateless failover over read-only chain clients."""

    def __init__(
        self,
        rpc_urls: Sequence[str],
        request_timeout: float = 10.0,
        client_factory: Callable[[str], ChainClient] = Web3ChainClient,
    ) -> None:
        """
        Initialize the pool.

        Args:
            rpc_urls: Candidate endpoints in priority order
            request_timeout: Bound on each probe and each read, in seconds
            client_factory: Builds a client for one endpoint
        """
        if not rpc_urls:
            raise ValueError("At least one RPC URL is required")

        self.rpc_urls: tuple[str, ...] = tuple(rpc_urls)
        self.request_timeout = request_timeout
        self.client_factory = client_factory

    async def read_via_any_provider(self, operation: str, read: ReadOperation[T]) -> PoolResult[T]:
        """
        Run ``read`` on the first candidate that passes the liveness probe.

        Args:
            operation: Name of the read, for logging and errors
            read: Coroutine function taking a ChainClient

        Returns:
            PoolResult with the value, or exhausted with the last error
        """
        last_error: BaseException | None = None
        attempted: list[str] = []

        for url in self.rpc_urls:
            attempted.append(url)
            client: ChainClient | None = None
            try:
                client = self.client_factory(url)
                await asyncio.wait_for(client.get_block_height(), self.request_timeout)
                value = await asyncio.wait_for(read(client), self.request_timeout)
            except Exception as e:
                last_error = e
                logger.warning(f"Provider {url} failed for {operation}: {type(e).__name__}: {e}")
                continue
            finally:
                if client is not None:
                    await self._close(client)

            logger.debug(f"{operation} served by {url}")
            return PoolResult(
                operation=operation,
                value=value,
                provider_url=url,
                attempted=tuple(attempted),
            )

        logger.error(f"All {len(attempted)} providers failed for {operation}: {last_error}")
        return PoolResult(
            operation=operation,
            last_error=last_error,
            attempted=tuple(attempted),
        )

    @staticmethod
    async def _close(client: ChainClient) -> None:
        """Close a candidate's client; a failed close does not change the read's outcome."""
        try:
            await client.close()
        except Exception as e:
            logger.warning(f"Failed to close client for {client.rpc_url}: {e}")

    async def get_network_id(self) -> PoolResult[int]:
        return await self.read_via_any_provider(
            "get_network_id", lambda client: client.get_network_id()
        )

    async def get_block_height(self) -> PoolResult[int]:
        return await self.read_via_any_provider(
            "get_block_height", lambda client: client.get_block_height()
        )

    async def get_transaction(self, tx_hash: str) -> PoolResult[TransactionRecord]:
        return await self.read_via_any_provider(
            "get_transaction", lambda client: client.get_transaction(tx_hash)
        )

    async def get_transaction_receipt(self, tx_hash: str) -> PoolResult[ReceiptRecord]:
        return await self.read_via_any_provider(
            "get_transaction_receipt", lambda client: client.get_transaction_receipt(tx_hash)
        )

    async def get_logs(self, log_filter: LogFilter) -> PoolResult[list[EventLog]]:
        return await self.read_via_any_provider(
            "get_logs", lambda client: client.get_logs(log_filter)
        )
