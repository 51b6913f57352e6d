#!/usr/bin/env python3
"""Assembly of the explain response.

The explanation for the target transaction is always computed and returned.
``access_unlocked`` is the only gated part and it has exactly one source: a
CONFIRMED answer from the PaymentVerifier for the supplied payment hash.
"""

import logging

from .config import ExplainerConfig
from .log_classifier import classify_receipt, format_fee, transaction_label
from .models import ExplanationResult, LogClassification
from .payment_verifier import PaymentVerifier
from .transaction_fetcher import FetchedTransaction, FetchState, TransactionFetcher
from .utils.format_utility import PLACEHOLDER, is_tx_hash, short_address

# Get logger for this module
logger = logging.getLogger(__name__)


class ExplanationAssembler:
    """Builds ExplanationResult objects for target transactions."""

    def __init__(
        self,
        config: ExplainerConfig,
        fetcher: TransactionFetcher,
        verifier: PaymentVerifier,
    ) -> None:
        """Initialize the assembler.

        Args:
            config: Explainer configuration (explorer and display settings)
            fetcher: Loads the target transaction and receipt
            verifier: Decides unlock status from the payment hash
        """
        self.config = config
        self.fetcher = fetcher
        self.verifier = verifier

    async def is_unlocked(self, pay_tx: str | None) -> bool:
        """The single unlock decision: no hash, no unlock."""
        if not pay_tx:
            return False
        status = await self.verifier.verify_payment(pay_tx)
        return status.is_confirmed

    async def explain(self, tx: str | None, pay_tx: str | None = None) -> ExplanationResult:
        """Explain ``tx``; unlock only if ``pay_tx`` verifies as CONFIRMED.

        Never raises.

        Args:
            tx: Target transaction hash
            pay_tx: Optional payment transaction hash

        Returns:
            ExplanationResult
        """
        tx = (tx or "").strip()
        pay_tx = (pay_tx or "").strip() or None
        explorer_url = self.config.explorer.tx_url(tx or None)

        if not is_tx_hash(tx):
            return ExplanationResult(
                summary="Paste a transaction hash",
                fee=PLACEHOLDER,
                explanation="Enter a valid transaction hash (0x...) and press Explain.",
                explorer_url=explorer_url,
                access_unlocked=False,
            )

        access_unlocked = await self.is_unlocked(pay_tx)

        try:
            fetched = await self.fetcher.fetch(tx)
        except Exception as e:
            logger.error(f"Unexpected error explaining {tx[:10]}...: {e}", exc_info=True)
            return self._unavailable(
                explorer_url,
                access_unlocked,
                "We couldn’t load enough information at the moment. "
                "Open it on the explorer and try again.",
            )

        if not fetched.available:
            return self._unavailable(
                explorer_url,
                access_unlocked,
                "This transaction may be real, but we couldn’t load its details at the moment. "
                "Open it on the explorer and try again in a minute.",
            )

        return self._assemble(fetched, explorer_url, access_unlocked)

    def _assemble(
        self,
        fetched: FetchedTransaction,
        explorer_url: str,
        access_unlocked: bool,
    ) -> ExplanationResult:
        transaction = fetched.transaction
        receipt = fetched.receipt
        classification: LogClassification = classify_receipt(receipt)

        explanation_lines = [
            f"• Status: {_status_text(fetched)}",
            f"• From: {short_address(transaction.sender)}",
            f"• To: {short_address(transaction.recipient)}",
            f"• Contracts touched: {classification.contracts_touched}",
            f"• Token transfers: {classification.token_transfers}",
            f"• Approvals: {classification.approvals}",
            f"• Risk level: {classification.risk.value}",
        ]

        return ExplanationResult(
            summary=transaction_label(transaction),
            fee=format_fee(receipt, self.config.explorer.native_symbol),
            explanation="\n".join(explanation_lines),
            explorer_url=explorer_url,
            access_unlocked=access_unlocked,
            classification=classification,
        )

    @staticmethod
    def _unavailable(explorer_url: str, access_unlocked: bool, explanation: str) -> ExplanationResult:
        return ExplanationResult(
            summary="We can’t load details right now",
            fee=PLACEHOLDER,
            explanation=explanation,
            explorer_url=explorer_url,
            access_unlocked=access_unlocked,
        )


def _status_text(fetched: FetchedTransaction) -> str:
    match fetched.state:
        case FetchState.PENDING:
            return "Pending (not yet mined)"
        case FetchState.INDEXING:
            return "Mined, receipt still indexing"
        case _ if fetched.receipt is not None and not fetched.receipt.succeeded:
            return "Failed"
        case _:
            return "Success"
