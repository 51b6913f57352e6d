#!/usr/bin/env python3
"""Payment verification against on-chain state.

This module decides whether a payment transaction transferred at least the
configured amount of the stablecoin to the configured recipient on the
accepted network. Every call re-derives the answer from the chain; nothing a
client asserts about payment is trusted and nothing is stored.

Two paths are used. The receipt path decodes the payment's own receipt. When
no provider serves the receipt yet but the transaction is already mined, the
logs path queries the stablecoin's Transfer logs for that block instead.
"""

import logging
from collections.abc import Iterable

from .config import PaymentConfig
from .exceptions import AllProvidersUnavailable
from .models import (
    EventLog,
    FailureReason,
    LogFilter,
    PaymentState,
    PaymentStatus,
    ValueTransfer,
)
from .utils.event_decoder import TRANSFER_TOPIC, address_topic, decode_log
from .utils.format_utility import is_tx_hash
from .utils.provider_pool import ProviderPool

# Get logger for this module
logger = logging.getLogger(__name__)


class PaymentVerifier:
    """Verifies payments for a single, fixed PaymentConfig."""

    def __init__(self, config: PaymentConfig, pool: ProviderPool) -> None:
        """Initialize the PaymentVerifier.

        Args:
            config: Accepted network, token, recipient and price
            pool: Provider pool used for every chain read
        """
        self.config = config
        self.pool = pool
        self._stablecoin = config.stablecoin_address.lower()
        self._recipient = config.payment_address.lower()

    def paid_amount(self, logs: Iterable[EventLog], tx_hash: str | None = None) -> int:
        """Sum inbound stablecoin transfers to the payment address.

        Only logs emitted by the stablecoin contract that decode as a
        Transfer whose recipient is the payment address count. The sender is
        never looked at.

        Args:
            logs: Logs to inspect
            tx_hash: When given, logs that report a different originating
                transaction are ignored

        Returns:
            Total qualifying amount in the token's smallest unit
        """
        total = 0
        for log in logs:
            if not log.address or log.address.lower() != self._stablecoin:
                continue
            if (
                tx_hash is not None
                and log.transaction_hash is not None
                and log.transaction_hash.lower() != tx_hash.lower()
            ):
                continue

            event = decode_log(log)
            if isinstance(event, ValueTransfer) and event.recipient.lower() == self._recipient:
                total += event.amount
        return total

    def _classify_amount(self, paid: int, source: str) -> PaymentStatus:
        """Compare a summed amount with the price."""
        if paid >= self.config.required_amount:
            message = "Payment confirmed." if source == "receipt" else "Payment confirmed (logs fallback)."
            return PaymentStatus(PaymentState.CONFIRMED, message, paid_amount=paid)

        message = (
            "Transaction found, but payment not detected yet."
            if source == "receipt"
            else "Transaction found, waiting for payment."
        )
        return PaymentStatus(PaymentState.PENDING, message, paid_amount=paid)

    async def _confirmations_met(self, block_number: int) -> bool:
        """Check confirmation depth for a block.

        Raises:
            AllProvidersUnavailable: If the current height could not be read
        """
        if self.config.min_confirmations <= 1:
            # A mined transaction always has at least one confirmation
            return True

        height = (await self.pool.get_block_height()).unwrap()
        confirmations = height - block_number + 1
        logger.debug(
            f"Block {block_number}: {confirmations} confirmations "
            f"(need {self.config.min_confirmations})"
        )
        return confirmations >= self.config.min_confirmations

    async def verify_payment(self, pay_tx: str) -> PaymentStatus:
        """Determine the payment status of ``pay_tx``.

        Never raises; provider exhaustion is reported as a recoverable
        PENDING status.

        Args:
            pay_tx: Payment transaction hash

        Returns:
            PaymentStatus
        """
        try:
            status = await self._verify(pay_tx)
        except AllProvidersUnavailable as e:
            logger.warning(f"Cannot verify {str(pay_tx)[:10]}... right now: {e}")
            status = _unavailable()
        except Exception as e:
            logger.error(f"Unexpected error verifying {pay_tx!r}: {e}", exc_info=True)
            status = _unavailable()

        logger.info(f"Payment {str(pay_tx)[:10]}...: {status}")
        return status

    async def _verify(self, pay_tx: str) -> PaymentStatus:
        # 1. format, before any network call
        if not is_tx_hash(pay_tx):
            return PaymentStatus(
                PaymentState.FAILED, "Invalid tx hash.", reason=FailureReason.INVALID_INPUT
            )

        # 2. network identity gates every other read
        network_id = (await self.pool.get_network_id()).unwrap()
        if network_id != self.config.chain_id:
            logger.warning(
                f"Provider reports chain {network_id}, "
                f"expected {self.config.chain_id}"
            )
            return PaymentStatus(
                PaymentState.FAILED,
                f"Wrong network. Payment must be on chain {self.config.chain_id}.",
                reason=FailureReason.WRONG_NETWORK,
            )

        # 3. receipt path
        receipt_result = await self.pool.get_transaction_receipt(pay_tx)
        receipt = receipt_result.value if receipt_result.ok else None

        if receipt is not None:
            if not receipt.succeeded:
                return PaymentStatus(
                    PaymentState.FAILED,
                    "Transaction failed.",
                    reason=FailureReason.TRANSACTION_FAILED,
                )

            if not await self._confirmations_met(receipt.block_number):
                return PaymentStatus(PaymentState.PENDING, "Waiting for confirmations.")

            return self._classify_amount(self.paid_amount(receipt.logs), "receipt")

        # 4. no receipt anywhere: look at the transaction itself
        transaction = (await self.pool.get_transaction(pay_tx)).unwrap()
        if transaction is None:
            return PaymentStatus(PaymentState.NOT_FOUND, "Transaction not found yet.")

        if transaction.block_number is None:
            return PaymentStatus(PaymentState.PENDING, "Transaction is still pending.")

        return await self._verify_from_logs(pay_tx, transaction.block_number)

    async def _verify_from_logs(self, pay_tx: str, block_number: int) -> PaymentStatus:
        """Fallback: read the stablecoin's Transfer logs in the inclusion block."""
        if not await self._confirmations_met(block_number):
            return PaymentStatus(PaymentState.PENDING, "Waiting for confirmations.")

        log_filter = LogFilter(
            from_block=block_number,
            to_block=block_number,
            address=self.config.stablecoin_address,
            topics=(TRANSFER_TOPIC, None, address_topic(self.config.payment_address)),
        )
        logs = (await self.pool.get_logs(log_filter)).unwrap() or []
        logger.info(f"Logs fallback for {pay_tx[:10]}...: {len(logs)} candidate logs in block {block_number}")
        return self._classify_amount(self.paid_amount(logs, tx_hash=pay_tx), "logs")


def _unavailable() -> PaymentStatus:
    return PaymentStatus(
        PaymentState.PENDING,
        "Could not reach the network right now. Try again.",
        reason=FailureReason.PROVIDERS_UNAVAILABLE,
    )
