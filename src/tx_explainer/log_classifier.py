#!/usr/bin/env python3
"""Classification of a transaction and its emitted logs.

This module turns raw receipt logs into counts of token transfers and
approvals plus the set of contracts touched, and derives the summary label,
risk label and fee string shown to the user.
"""

import logging
from collections.abc import Iterable

from web3 import Web3

from .models import (
    Approval,
    EventLog,
    LogClassification,
    ReceiptRecord,
    TransactionRecord,
    ValueTransfer,
)
from .utils.event_decoder import decode_log
from .utils.format_utility import PLACEHOLDER

# Get logger for this module
logger = logging.getLogger(__name__)

NATIVE_TRANSFER_LABEL = "ETH transfer"
CONTRACT_INTERACTION_LABEL = "Contract interaction"


def classify_logs(logs: Iterable[EventLog]) -> LogClassification:
    """Count known events and collect touched contracts.

    Every log's emitter counts as touched, decodable or not. Logs that are
    neither a Transfer nor an Approval are skipped.

    Args:
        logs: Receipt logs in execution order

    Returns:
        LogClassification with the counts
    """
    touched: set[str] = set()
    token_transfers = 0
    approvals = 0

    for log in logs:
        if log.address:
            touched.add(log.address.lower())

        match decode_log(log):
            case ValueTransfer():
                token_transfers += 1
            case Approval():
                approvals += 1
            case None:
                pass

    classification = LogClassification(
        touched_contracts=frozenset(touched),
        token_transfers=token_transfers,
        approvals=approvals,
    )
    logger.debug(
        f"Classified logs: contracts={classification.contracts_touched} "
        f"transfers={token_transfers} approvals={approvals}"
    )
    return classification


def classify_receipt(receipt: ReceiptRecord | None) -> LogClassification:
    """Classify a receipt's logs; an absent receipt has no logs."""
    if receipt is None:
        return LogClassification()
    return classify_logs(receipt.logs)


def transaction_label(transaction: TransactionRecord) -> str:
    """Label a transaction as a plain native transfer or a contract call."""
    if transaction.value > 0 and len(transaction.payload) == 0:
        return NATIVE_TRANSFER_LABEL
    return CONTRACT_INTERACTION_LABEL


def format_fee(receipt: ReceiptRecord | None, native_symbol: str = "ETH") -> str:
    """Format gas used x effective gas price in the native display unit.

    >>> format_fee(None)
    '—'
    """
    if receipt is None or receipt.fee_wei is None:
        return PLACEHOLDER
    fee_ether = Web3.from_wei(receipt.fee_wei, "ether")
    return f"{fee_ether:.6f} {native_symbol}"

