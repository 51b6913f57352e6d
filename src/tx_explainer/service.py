"""
Explainer service.

Wires the provider pool, fetcher, verifier and assembler together from one
ExplainerConfig and exposes the two request-facing operations.
"""

import asyncio
import logging
import time
from collections.abc import Callable

from .config import ExplainerConfig
from .explanation_assembler import ExplanationAssembler
from .models import ExplanationResult, PaymentStatus
from .payment_verifier import PaymentVerifier
from .transaction_fetcher import TransactionFetcher
from .utils.chain_client import ChainClient, Web3ChainClient
from .utils.provider_pool import ProviderPool

logger = logging.getLogger(__name__)


class ExplainerService:
    """
    Entry point for explain and verify requests.

    Holds only immutable configuration; every request re-reads the chain.
    """

    DEFAULT_POLL_INTERVAL = 5  # seconds
    DEFAULT_POLL_TIMEOUT = 120  # seconds

    def __init__(
        self,
        config: ExplainerConfig,
        client_factory: Callable[[str], ChainClient] = Web3ChainClient,
    ):
        """
        Initialize the service.

        Args:
            config: Explainer configuration
            client_factory: Builds a chain client for one RPC endpoint
        """
        self.config = config

        self.pool = ProviderPool(
            rpc_urls=config.providers.rpc_urls,
            request_timeout=config.providers.request_timeout,
            client_factory=client_factory,
        )
        self.fetcher = TransactionFetcher(self.pool)
        self.verifier = PaymentVerifier(config.payment, self.pool)
        self.assembler = ExplanationAssembler(config, self.fetcher, self.verifier)

        logger.info(
            f"ExplainerService initialized with {len(self.pool.rpc_urls)} providers "
            f"(chain {config.payment.chain_id})"
        )

    @classmethod
    def from_env(cls) -> "ExplainerService":
        """
        Create an ExplainerService from environment variables.

        Raises:
            ValueError: If a configured value is invalid
        """
        config = ExplainerConfig.from_env()
        config.log_config()
        return cls(config)

    async def explain(self, tx: str | None, pay_tx: str | None = None) -> ExplanationResult:
        """Explain a transaction; see ExplanationAssembler.explain."""
        return await self.assembler.explain(tx, pay_tx)

    async def verify_payment(self, pay_tx: str | None) -> PaymentStatus:
        """Verify a payment transaction; see PaymentVerifier.verify_payment."""
        return await self.verifier.verify_payment((pay_tx or "").strip())

    async def wait_for_payment(
        self,
        pay_tx: str | None,
        interval: float = DEFAULT_POLL_INTERVAL,
        timeout: float = DEFAULT_POLL_TIMEOUT,
    ) -> PaymentStatus:
        """
        Poll verify_payment until CONFIRMED, FAILED or the timeout.

        Args:
            pay_tx: Payment transaction hash
            interval: Seconds between checks
            timeout: Give up after this many seconds

        Returns:
            The last PaymentStatus observed
        """
        if interval <= 0:
            raise ValueError(f"Polling interval must be positive, got {interval}")

        deadline = time.monotonic() + timeout
        attempt = 0

        while True:
            attempt += 1
            status = await self.verify_payment(pay_tx)
            if status.is_terminal:
                return status

            remaining = deadline - time.monotonic()
            if remaining <= 0:
                logger.info(f"Stopped waiting for payment after {attempt} checks: {status}")
                return status

            logger.info(f"Check {attempt}: {status.state.value}, retrying in {interval}s")
            await asyncio.sleep(min(interval, remaining))
