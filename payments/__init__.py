"""
payments - Transaction replay engine

Replays deposits, withdrawals, disputes, resolves and chargebacks against
client accounts and reports the final balances.

Usage:
    from decimal import Decimal
    from payments import AccountStateMachine, Deposit, Dispute, Chargeback

    machine = AccountStateMachine()
    machine.apply(Deposit(client_id=1, tx_id=1, amount=Decimal("5.0")))
    machine.apply(Dispute(client_id=1, tx_id=1))
    outcome = machine.apply(Chargeback(client_id=1, tx_id=1))

    for row in machine.snapshot():
        print(row.client_id, row.available, row.held, row.total, row.locked)
"""

# Core types
from .core import (
    Deposit,
    Withdrawal,
    Dispute,
    Resolve,
    Chargeback,
    Malformed,
    Transaction,
    Record,
    LedgerEntry,
    Outcome,
    AccountSnapshot,
    TransactionType,
    EntryKind,
    DisputeStatus,
    ApplyResult,
    RejectReason,
    PaymentsError,
    DuplicateTx,
    UnknownTransaction,
    InvalidDisputeTransition,
    parse_amount,
    format_amount,
    quantize_amount,
    AMOUNT_SCALE,
    ZERO,
)

# Ledger
from .ledger import TransactionLedger

# Engine
from .engine import AccountStateMachine, ClientAccount, replay

# Diagnostics
from .diagnostics import DiagnosticsSink, NullSink, LoggingSink, describe

# CSV codec
from .csv_io import read_transactions, write_accounts, parse_record

__all__ = [
    # Records
    'Deposit', 'Withdrawal', 'Dispute', 'Resolve', 'Chargeback', 'Malformed',
    'Transaction', 'Record',
    # Types
    'LedgerEntry', 'Outcome', 'AccountSnapshot',
    'TransactionType', 'EntryKind', 'DisputeStatus', 'ApplyResult', 'RejectReason',
    # Exceptions
    'PaymentsError', 'DuplicateTx', 'UnknownTransaction', 'InvalidDisputeTransition',
    # Amounts
    'parse_amount', 'format_amount', 'quantize_amount', 'AMOUNT_SCALE', 'ZERO',
    # Ledger and engine
    'TransactionLedger', 'AccountStateMachine', 'ClientAccount', 'replay',
    # Diagnostics
    'DiagnosticsSink', 'NullSink', 'LoggingSink', 'describe',
    # CSV
    'read_transactions', 'write_accounts', 'parse_record',
]

__version__ = '1.0.0'
