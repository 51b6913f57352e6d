#!/usr/bin/env python3
"""Data models for the transaction explainer.

This module provides immutable data classes for the chain records read from
providers and for the results returned to callers. Every instance lives for a
single request; nothing here is persisted.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, TypeAlias

from .utils.format_utility import format_units


@dataclass(frozen=True, slots=True)
class EventLog:
    """A raw, undecoded log entry emitted during contract execution.

    Attributes:
        address: Emitting contract address
        topics: Indexed topic values, 32 bytes each, signature first
        data: ABI-encoded non-indexed values
        transaction_hash: Originating transaction, when the provider reports it
        log_index: Position of the log in its block, when reported
    """

    address: str
    topics: tuple[bytes, ...]
    data: bytes = b""
    transaction_hash: str | None = None
    log_index: int | None = None


@dataclass(frozen=True, slots=True)
class TransactionRecord:
    """A transaction body as returned by ``eth_getTransactionByHash``.

    Attributes:
        tx_hash: Transaction hash (0x-prefixed, lowercase)
        sender: Sender address
        recipient: Recipient address, None for contract creation
        value: Transferred native value in the smallest unit
        payload: Call data
        block_number: Inclusion block, None while pending
    """

    tx_hash: str
    sender: str
    recipient: str | None
    value: int
    payload: bytes
    block_number: int | None = None

    @property
    def is_pending(self) -> bool:
        return self.block_number is None


@dataclass(frozen=True, slots=True)
class ReceiptRecord:
    """Post-execution record of a mined transaction.

    Attributes:
        tx_hash: Transaction hash
        status: 1 for success, 0 for failure
        block_number: Inclusion block
        gas_used: Gas consumed, if reported
        effective_gas_price: Price actually paid per gas, if reported
        logs: Emitted logs in execution order
    """

    tx_hash: str
    status: int
    block_number: int
    gas_used: int | None = None
    effective_gas_price: int | None = None
    logs: tuple[EventLog, ...] = ()

    @property
    def succeeded(self) -> bool:
        return self.status == 1

    @property
    def fee_wei(self) -> int | None:
        if self.gas_used is None or self.effective_gas_price is None:
            return None
        return self.gas_used * self.effective_gas_price


@dataclass(frozen=True, slots=True)
class LogFilter:
    """Parameters for an ``eth_getLogs`` query.

    A ``None`` topic acts as a wildcard for that position.
    """

    from_block: int
    to_block: int
    address: str
    topics: tuple[bytes | None, ...] = ()


@dataclass(frozen=True, slots=True)
class ValueTransfer:
    """Decoded ``Transfer(address indexed from, address indexed to, uint256 value)``."""

    sender: str
    recipient: str
    amount: int


@dataclass(frozen=True, slots=True)
class Approval:
    """Decoded ``Approval(address indexed owner, address indexed spender, uint256 value)``."""

    owner: str
    spender: str
    amount: int


DecodedEvent: TypeAlias = ValueTransfer | Approval


class RiskLevel(str, Enum):
    """Heuristic label derived from a receipt's logs. Informational only."""
    LOW = "Low"
    LOW_MEDIUM = "Low–Medium"
    MEDIUM = "Medium"


@dataclass(frozen=True, slots=True)
class LogClassification:
    """Counts and touched contracts for a list of logs."""

    touched_contracts: frozenset[str] = frozenset()
    token_transfers: int = 0
    approvals: int = 0

    @property
    def contracts_touched(self) -> int:
        return len(self.touched_contracts)

    @property
    def risk(self) -> RiskLevel:
        if self.approvals > 0:
            return RiskLevel.MEDIUM
        if self.contracts_touched > 1:
            return RiskLevel.LOW_MEDIUM
        return RiskLevel.LOW


class PaymentState(str, Enum):
    """Outcome of a payment verification."""
    CONFIRMED = "CONFIRMED"
    PENDING = "PENDING"
    NOT_FOUND = "NOT_FOUND"
    FAILED = "FAILED"


class FailureReason(str, Enum):
    """Why a verification did not reach a positive answer."""
    INVALID_INPUT = "invalid_input"
    WRONG_NETWORK = "wrong_network"
    TRANSACTION_FAILED = "transaction_failed"
    PROVIDERS_UNAVAILABLE = "providers_unavailable"


@dataclass(frozen=True, slots=True)
class PaymentStatus:
    """Result of verifying a payment transaction.

    Attributes:
        state: One of CONFIRMED, PENDING, NOT_FOUND, FAILED
        message: Human-readable explanation
        paid_amount: Summed qualifying amount in the token's smallest unit
        reason: Failure or degradation cause, if any
    """

    state: PaymentState
    message: str
    paid_amount: int | None = None
    reason: FailureReason | None = None

    @property
    def is_confirmed(self) -> bool:
        return self.state is PaymentState.CONFIRMED

    @property
    def is_terminal(self) -> bool:
        """CONFIRMED and FAILED never change on re-polling."""
        return self.state in (PaymentState.CONFIRMED, PaymentState.FAILED)

    @property
    def is_client_error(self) -> bool:
        return self.reason is FailureReason.INVALID_INPUT

    @property
    def ok(self) -> bool:
        return self.state is not PaymentState.FAILED

    def __str__(self) -> str:
        """Human-readable string representation."""
        paid = f", paid={self.paid_amount}" if self.paid_amount is not None else ""
        return f"PaymentStatus({self.state.value}{paid}: {self.message})"

    def to_dict(self, token_decimals: int = 6, explorer_url: str | None = None) -> dict[str, Any]:
        """Convert to dictionary for serialization, with an optional explorer link."""
        result: dict[str, Any] = {
            "ok": self.ok,
            "status": self.state.value,
            "message": self.message,
        }
        if self.paid_amount is not None:
            result["paidAmount"] = format_units(self.paid_amount, token_decimals)
        if self.reason is not None:
            result["reason"] = self.reason.value
        if explorer_url is not None:
            result["explorer"] = explorer_url
        return result


@dataclass(frozen=True, slots=True)
class ExplanationResult:
    """Response payload for an explain request.

    The explanation is always computed; ``access_unlocked`` only tells the
    presentation layer whether to show it.
    """

    summary: str
    fee: str
    explanation: str
    explorer_url: str
    access_unlocked: bool = False
    classification: LogClassification | None = field(default=None, compare=False)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "summary": self.summary,
            "fee": self.fee,
            "explanation": self.explanation,
            "explorer": self.explorer_url,
            "accessUnlocked": self.access_unlocked,
        }
