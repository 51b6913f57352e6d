"""Fetching a transaction and its receipt through the provider pool."""

import logging
from dataclasses import dataclass
from enum import Enum

from .exceptions import InvalidTransactionHash
from .models import ReceiptRecord, TransactionRecord
from .utils.format_utility import is_tx_hash
from .utils.provider_pool import ProviderPool

logger = logging.getLogger(__name__)


class FetchState(str, Enum):
    """How far along a fetched transaction is."""
    MINED = "mined"  # transaction and receipt both available
    PENDING = "pending"  # broadcast, not yet in a block
    INDEXING = "indexing"  # in a block, receipt not served by any provider yet
    NOT_FOUND = "not_found"  # no provider knows the transaction
    UNAVAILABLE = "unavailable"  # every provider failed


@dataclass(frozen=True, slots=True)
class FetchedTransaction:
    """Result of a fetch; ``transaction`` and ``receipt`` are independent."""

    tx_hash: str
    state: FetchState
    transaction: TransactionRecord | None = None
    receipt: ReceiptRecord | None = None

    @property
    def available(self) -> bool:
        return self.transaction is not None


class TransactionFetcher:
    """Loads a transaction body and its receipt as two separate failover reads.

    A provider that lags on one may still serve the other, so the two reads
    are not pinned to the same endpoint.
    """

    def __init__(self, pool: ProviderPool) -> None:
        self.pool = pool

    async def fetch(self, tx_hash: str) -> FetchedTransaction:
        """
        Fetch the transaction and receipt for an already validated hash.

        Never raises for provider failures; they are reported as
        ``FetchState.UNAVAILABLE``.

        Raises:
            InvalidTransactionHash: If ``tx_hash`` is malformed
        """
        if not is_tx_hash(tx_hash):
            raise InvalidTransactionHash(tx_hash)

        tx_result = await self.pool.get_transaction(tx_hash)
        receipt_result = await self.pool.get_transaction_receipt(tx_hash)

        transaction = tx_result.value if tx_result.ok else None
        receipt = receipt_result.value if receipt_result.ok else None

        if not receipt_result.ok:
            logger.warning(f"Receipt for {tx_hash[:10]}... unavailable from all providers")

        if transaction is None:
            if not tx_result.ok:
                state = FetchState.UNAVAILABLE
            elif receipt is not None:
                # Receipt indexed first; the body will follow
                state = FetchState.MINED
            else:
                state = FetchState.NOT_FOUND
        elif receipt is not None:
            state = FetchState.MINED
        elif transaction.is_pending:
            state = FetchState.PENDING
        else:
            state = FetchState.INDEXING

        logger.info(f"Fetched {tx_hash[:10]}...: {state.value}")
        return FetchedTransaction(
            tx_hash=tx_hash,
            state=state,
            transaction=transaction,
            receipt=receipt,
        )
