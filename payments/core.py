"""
Core types and pure functions for the payments engine.

This module provides the foundational data structures for the engine:
1. Amount helpers: fixed-point Decimal parsing, quantizing and formatting
2. Enums: TransactionType, EntryKind, DisputeStatus, ApplyResult, RejectReason
3. Exceptions: PaymentsError and the ledger-specific error types
4. Immutable data structures: transaction records, LedgerEntry, Outcome,
   AccountSnapshot

Nothing in this module mutates engine state.
"""

from __future__ import annotations
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_HALF_EVEN, Context, Inexact
from enum import Enum
from typing import Optional, Tuple, Union


# ============================================================================
# DECIMAL CONFIGURATION
# ============================================================================
#
# Amounts are fixed-point: every stored value is a Decimal quantized to
# AMOUNT_QUANTUM. Quantizing goes through a private context that traps
# Inexact, so a value that would need rounding raises instead of changing.
#
# MAX_AMOUNT keeps every realistic balance sum far below the 28 significant
# digits of the default context, so additions never round either.
#

AMOUNT_SCALE = 4
AMOUNT_QUANTUM = Decimal(1).scaleb(-AMOUNT_SCALE)
MAX_AMOUNT = Decimal(10) ** 15
ZERO = Decimal(0).quantize(AMOUNT_QUANTUM)

_AMOUNT_CONTEXT = Context(prec=50, rounding=ROUND_HALF_EVEN, traps=[InvalidOperation, Inexact])

# Identifier bounds (unsigned 16-bit clients, unsigned 32-bit transactions).
MAX_CLIENT_ID = 2**16 - 1
MAX_TX_ID = 2**32 - 1


# ============================================================================
# AMOUNT HELPERS
# ============================================================================

def quantize_amount(value: Decimal) -> Decimal:
    """
    Bring a Decimal to the fixed amount scale without rounding.

    Args:
        value: Finite Decimal with at most AMOUNT_SCALE significant fractional digits

    Returns:
        The same value quantized to AMOUNT_QUANTUM

    Raises:
        ValueError: If the value is not a finite Decimal, is out of range,
            or would lose precision
    """
    if not isinstance(value, Decimal):
        raise ValueError(f"amount must be Decimal, got {type(value).__name__}")
    if not value.is_finite():
        raise ValueError(f"amount must be finite, got {value}")
    if abs(value) >= MAX_AMOUNT:
        raise ValueError(f"amount {value} out of range")
    try:
        quantized = value.quantize(AMOUNT_QUANTUM, context=_AMOUNT_CONTEXT)
    except Inexact:
        raise ValueError(
            f"amount {value} has more than {AMOUNT_SCALE} fractional digits"
        ) from None
    if quantized.is_zero():
        # Drop the sign of negative zero
        return ZERO
    return quantized


def parse_amount(text: str) -> Decimal:
    """
    Parse a textual amount into a fixed-point Decimal.

    Surrounding whitespace is ignored. Excess precision is an error,
    never truncated: "1.23450" parses, "1.23456" does not.

    Raises:
        ValueError: If the text is not a finite decimal number within range
    """
    cleaned = text.strip()
    if not cleaned:
        raise ValueError("amount is empty")
    try:
        value = Decimal(cleaned)
    except InvalidOperation:
        raise ValueError(f"invalid amount: {text!r}") from None
    return quantize_amount(value)


def format_amount(value: Decimal) -> str:
    """
    Render an amount or balance with exactly AMOUNT_SCALE fractional digits.

    Balances are sums of amounts, so MAX_AMOUNT does not apply here.
    """
    quantized = value.quantize(AMOUNT_QUANTUM, context=_AMOUNT_CONTEXT)
    if quantized.is_zero():
        quantized = ZERO
    return f"{quantized:f}"


# ============================================================================
# ENUMS
# ============================================================================

class TransactionType(Enum):
    """Type tag of an input record, as spelled in the input stream."""
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    DISPUTE = "dispute"
    RESOLVE = "resolve"
    CHARGEBACK = "chargeback"


class EntryKind(Enum):
    """Kind of transaction a ledger entry records."""
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"


class DisputeStatus(Enum):
    """
    Dispute lifecycle of a ledger entry.

    NOT_DISPUTED -> DISPUTED -> RESOLVED | CHARGED_BACK

    RESOLVED and CHARGED_BACK are terminal.
    """
    NOT_DISPUTED = "not_disputed"
    DISPUTED = "disputed"
    RESOLVED = "resolved"
    CHARGED_BACK = "charged_back"


# Allowed dispute status transitions (source -> targets)
DISPUTE_TRANSITIONS = {
    DisputeStatus.NOT_DISPUTED: frozenset({DisputeStatus.DISPUTED}),
    DisputeStatus.DISPUTED: frozenset({DisputeStatus.RESOLVED, DisputeStatus.CHARGED_BACK}),
    DisputeStatus.RESOLVED: frozenset(),
    DisputeStatus.CHARGED_BACK: frozenset(),
}


class ApplyResult(Enum):
    """
    Outcome of applying one transaction record.

    APPLIED: All checks passed and the effect was applied.
    REJECTED: A check failed; nothing was changed.
    """
    APPLIED = "applied"
    REJECTED = "rejected"


class RejectReason(Enum):
    """Why a transaction record was rejected."""
    MALFORMED = "malformed"
    DUPLICATE_TX = "duplicate tx"
    ACCOUNT_LOCKED = "account locked"
    INSUFFICIENT_FUNDS = "insufficient funds"
    UNKNOWN_TX = "unknown tx"
    CLIENT_MISMATCH = "client mismatch"
    UNSUPPORTED_DISPUTE_TARGET = "unsupported dispute target"
    INVALID_DISPUTE_STATE = "invalid dispute state"


# ============================================================================
# EXCEPTIONS
# ============================================================================

class PaymentsError(Exception):
    """Base exception for all payments engine errors."""
    pass


class DuplicateTx(PaymentsError):
    """Raised when inserting a ledger entry whose tx_id is already recorded."""
    pass


class UnknownTransaction(PaymentsError):
    """Raised when a tx_id has no ledger entry."""
    pass


class InvalidDisputeTransition(PaymentsError):
    """Raised when a dispute status change is not on the allowed path."""
    pass


# ============================================================================
# TRANSACTION RECORDS
# ============================================================================

def _check_ids(client_id: int, tx_id: int) -> None:
    # bool is an int subclass; True is not a client
    if not isinstance(client_id, int) or isinstance(client_id, bool):
        raise ValueError(f"client_id must be int, got {type(client_id).__name__}")
    if not isinstance(tx_id, int) or isinstance(tx_id, bool):
        raise ValueError(f"tx_id must be int, got {type(tx_id).__name__}")
    if not 0 <= client_id <= MAX_CLIENT_ID:
        raise ValueError(f"client_id {client_id} out of range")
    if not 0 <= tx_id <= MAX_TX_ID:
        raise ValueError(f"tx_id {tx_id} out of range")


def _check_positive(amount: Decimal) -> Decimal:
    quantized = quantize_amount(amount)
    if quantized <= 0:
        raise ValueError(f"amount must be positive, got {amount}")
    return quantized


@dataclass(frozen=True, slots=True)
class Deposit:
    """
    Credit `amount` to the client's available funds.

    Attributes:
        client_id: Target client.
        tx_id: Globally unique transaction id.
        amount: Strictly positive fixed-point amount.
    """
    client_id: int
    tx_id: int
    amount: Decimal

    def __post_init__(self):
        _check_ids(self.client_id, self.tx_id)
        object.__setattr__(self, "amount", _check_positive(self.amount))

    @property
    def type(self) -> TransactionType:
        return TransactionType.DEPOSIT


@dataclass(frozen=True, slots=True)
class Withdrawal:
    """Debit `amount` from the client's available funds."""
    client_id: int
    tx_id: int
    amount: Decimal

    def __post_init__(self):
        _check_ids(self.client_id, self.tx_id)
        object.__setattr__(self, "amount", _check_positive(self.amount))

    @property
    def type(self) -> TransactionType:
        return TransactionType.WITHDRAWAL


@dataclass(frozen=True, slots=True)
class Dispute:
    """Claim that deposit `tx_id` was erroneous; its funds become held."""
    client_id: int
    tx_id: int

    def __post_init__(self):
        _check_ids(self.client_id, self.tx_id)

    @property
    def type(self) -> TransactionType:
        return TransactionType.DISPUTE


@dataclass(frozen=True, slots=True)
class Resolve:
    """Close the dispute on `tx_id`, releasing its held funds."""
    client_id: int
    tx_id: int

    def __post_init__(self):
        _check_ids(self.client_id, self.tx_id)

    @property
    def type(self) -> TransactionType:
        return TransactionType.RESOLVE


@dataclass(frozen=True, slots=True)
class Chargeback:
    """Reverse disputed `tx_id`: held funds leave and the account locks."""
    client_id: int
    tx_id: int

    def __post_init__(self):
        _check_ids(self.client_id, self.tx_id)

    @property
    def type(self) -> TransactionType:
        return TransactionType.CHARGEBACK


@dataclass(frozen=True, slots=True)
class Malformed:
    """
    An input record that could not be decoded into a transaction.

    Attributes:
        raw: The raw fields as read from the input.
        reason: Human readable description of the decoding failure.
    """
    raw: Tuple[str, ...]
    reason: str


Transaction = Union[Deposit, Withdrawal, Dispute, Resolve, Chargeback]
Record = Union[Deposit, Withdrawal, Dispute, Resolve, Chargeback, Malformed]


# ============================================================================
# LEDGER ENTRY
# ============================================================================

@dataclass(frozen=True, slots=True)
class LedgerEntry:
    """
    Durable record of one accepted deposit or withdrawal.

    Entries are immutable. A dispute status change stores a new entry
    built with dataclasses.replace(); amount and kind never change.

    Attributes:
        tx_id: Transaction id the entry is addressed by.
        client_id: Owning client.
        amount: Original positive magnitude of the transaction.
        kind: DEPOSIT or WITHDRAWAL.
        dispute_status: Current position in the dispute lifecycle.
    """
    tx_id: int
    client_id: int
    amount: Decimal
    kind: EntryKind
    dispute_status: DisputeStatus = DisputeStatus.NOT_DISPUTED

    @property
    def is_deposit(self) -> bool:
        return self.kind is EntryKind.DEPOSIT


# ============================================================================
# OUTCOMES AND SNAPSHOTS
# ============================================================================

@dataclass(frozen=True, slots=True)
class Outcome:
    """
    Structured result of AccountStateMachine.apply().

    Attributes:
        record: The record that was applied or rejected.
        result: APPLIED or REJECTED.
        reason: Rejection reason (None when applied).
        detail: Optional human readable context for diagnostics.
    """
    record: Record
    result: ApplyResult
    reason: Optional[RejectReason] = None
    detail: str = ""

    @classmethod
    def applied(cls, record: Record) -> Outcome:
        return cls(record, ApplyResult.APPLIED)

    @classmethod
    def rejected(cls, record: Record, reason: RejectReason, detail: str = "") -> Outcome:
        return cls(record, ApplyResult.REJECTED, reason, detail)

    @property
    def is_applied(self) -> bool:
        return self.result is ApplyResult.APPLIED

    def __repr__(self) -> str:
        if self.is_applied:
            return f"Outcome(APPLIED {self.record!r})"
        return f"Outcome(REJECTED {self.reason.value}: {self.record!r})"


@dataclass(frozen=True, slots=True)
class AccountSnapshot:
    """One row of the final account table."""
    client_id: int
    available: Decimal
    held: Decimal
    total: Decimal
    locked: bool
