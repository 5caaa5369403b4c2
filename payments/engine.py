"""
engine.py - Account State Machine

The AccountStateMachine owns every client account and the transaction ledger.
It is the only object that mutates balances.

Each record is applied in arrival order. Every check for a record runs before
any mutation, so a rejected record leaves accounts and ledger untouched.
apply() never reports anything itself: it returns an Outcome and the caller
decides what to do with rejections (see replay()).
"""

from __future__ import annotations
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Tuple

from .core import (
    # Records
    Deposit, Withdrawal, Dispute, Resolve, Chargeback, Malformed, Record,
    # Ledger types
    LedgerEntry, EntryKind, DisputeStatus,
    # Results
    Outcome, RejectReason, AccountSnapshot,
    # Constants
    ZERO,
    # Exceptions
    DuplicateTx,
)
from .diagnostics import DiagnosticsSink, NullSink
from .ledger import TransactionLedger


@dataclass(slots=True)
class ClientAccount:
    """
    Mutable balance state of one client.

    Attributes:
        client_id: Owning client
        available: Funds not under dispute (negative only after a dispute)
        held: Funds under dispute, never negative
        locked: Set by a chargeback, never reset
    """
    client_id: int
    available: Decimal = ZERO
    held: Decimal = ZERO
    locked: bool = False

    @property
    def total(self) -> Decimal:
        return self.available + self.held

    def snapshot(self) -> AccountSnapshot:
        return AccountSnapshot(
            client_id=self.client_id,
            available=self.available,
            held=self.held,
            total=self.total,
            locked=self.locked,
        )


class AccountStateMachine:
    """
    Applies transaction records to client accounts.

    Design Principles:
        - Check everything first, then mutate: rejections are side-effect free
          (apart from lazily creating the target account).
        - Closed set of records: apply() dispatches on the record type and raises
          TypeError for anything else.
        - No reporting: outcomes are returned, never printed or logged.

    Thread Safety:
        Not thread-safe. Records must be applied one at a time, in order.

    Example:
        machine = AccountStateMachine()
        machine.apply(Deposit(1, 1, Decimal("5.0")))
        machine.apply(Withdrawal(1, 2, Decimal("1.5")))
        rows = machine.snapshot()
    """

    def __init__(self, ledger: Optional[TransactionLedger] = None) -> None:
        self.ledger = ledger if ledger is not None else TransactionLedger()
        # Insertion ordered: snapshot() reports clients in creation order
        self.accounts: Dict[int, ClientAccount] = {}

    # ========================================================================
    # ACCOUNT ACCESS
    # ========================================================================

    def account(self, client_id: int) -> ClientAccount:
        """Return the account for client_id, creating it on first reference."""
        account = self.accounts.get(client_id)
        if account is None:
            account = ClientAccount(client_id)
            self.accounts[client_id] = account
        return account

    def snapshot(self) -> List[AccountSnapshot]:
        """Return every account, in creation order."""
        return [account.snapshot() for account in self.accounts.values()]

    # ========================================================================
    # ENTRY POINT
    # ========================================================================

    def apply(self, record: Record) -> Outcome:
        """
        Apply one record.

        Args:
            record: A transaction record or a Malformed record

        Returns:
            Outcome.applied(record) if the effect was applied, otherwise an
            Outcome carrying the RejectReason

        Raises:
            TypeError: If record is not one of the known record types
        """
        if isinstance(record, Malformed):
            return Outcome.rejected(record, RejectReason.MALFORMED, record.reason)
        if isinstance(record, Deposit):
            return self._apply_deposit(record)
        if isinstance(record, Withdrawal):
            return self._apply_withdrawal(record)
        if isinstance(record, Dispute):
            return self._apply_dispute(record)
        if isinstance(record, Resolve):
            return self._apply_resolve(record)
        if isinstance(record, Chargeback):
            return self._apply_chargeback(record)
        raise TypeError(f"unsupported record type: {type(record).__name__}")

    # ========================================================================
    # DEPOSITS AND WITHDRAWALS
    # ========================================================================

    def _apply_deposit(self, record: Deposit) -> Outcome:
        account = self.account(record.client_id)
        if account.locked:
            return Outcome.rejected(record, RejectReason.ACCOUNT_LOCKED)

        entry = LedgerEntry(record.tx_id, record.client_id, record.amount, EntryKind.DEPOSIT)
        try:
            self.ledger.insert(entry)
        except DuplicateTx as e:
            return Outcome.rejected(record, RejectReason.DUPLICATE_TX, str(e))

        account.available += record.amount
        return Outcome.applied(record)

    def _apply_withdrawal(self, record: Withdrawal) -> Outcome:
        account = self.account(record.client_id)
        if account.locked:
            return Outcome.rejected(record, RejectReason.ACCOUNT_LOCKED)
        if account.available < record.amount:
            return Outcome.rejected(
                record, RejectReason.INSUFFICIENT_FUNDS,
                f"available {account.available}",
            )

        entry = LedgerEntry(record.tx_id, record.client_id, record.amount, EntryKind.WITHDRAWAL)
        try:
            self.ledger.insert(entry)
        except DuplicateTx as e:
            return Outcome.rejected(record, RejectReason.DUPLICATE_TX, str(e))

        account.available -= record.amount
        return Outcome.applied(record)

    # ========================================================================
    # DISPUTE LIFECYCLE
    # ========================================================================

    def _referenced_entry(
        self, record: Record, account: ClientAccount
    ) -> Tuple[Optional[LedgerEntry], Optional[Outcome]]:
        """
        Look up the entry a dispute/resolve/chargeback refers to.

        Returns:
            (entry, None) when found and owned by the record's client,
            otherwise (None, rejection Outcome)
        """
        entry = self.ledger.get(record.tx_id)
        if entry is None:
            return None, Outcome.rejected(record, RejectReason.UNKNOWN_TX)
        if entry.client_id != account.client_id:
            return None, Outcome.rejected(
                record, RejectReason.CLIENT_MISMATCH,
                f"tx {entry.tx_id} belongs to client {entry.client_id}",
            )
        return entry, None

    def _apply_dispute(self, record: Dispute) -> Outcome:
        account = self.account(record.client_id)
        entry, rejection = self._referenced_entry(record, account)
        if rejection is not None:
            return rejection
        if account.locked:
            return Outcome.rejected(record, RejectReason.ACCOUNT_LOCKED)
        if not entry.is_deposit:
            # Disputing a withdrawal would move already spent money into held
            return Outcome.rejected(record, RejectReason.UNSUPPORTED_DISPUTE_TARGET)
        if entry.dispute_status is not DisputeStatus.NOT_DISPUTED:
            return Outcome.rejected(
                record, RejectReason.INVALID_DISPUTE_STATE, entry.dispute_status.value
            )

        self.ledger.set_dispute_status(entry.tx_id, DisputeStatus.DISPUTED)
        # May take available below zero
        account.available -= entry.amount
        account.held += entry.amount
        return Outcome.applied(record)

    def _apply_resolve(self, record: Resolve) -> Outcome:
        account = self.account(record.client_id)
        entry, rejection = self._referenced_entry(record, account)
        if rejection is not None:
            return rejection
        if account.locked:
            return Outcome.rejected(record, RejectReason.ACCOUNT_LOCKED)
        if entry.dispute_status is not DisputeStatus.DISPUTED:
            return Outcome.rejected(
                record, RejectReason.INVALID_DISPUTE_STATE, entry.dispute_status.value
            )

        self.ledger.set_dispute_status(entry.tx_id, DisputeStatus.RESOLVED)
        account.held -= entry.amount
        account.available += entry.amount
        return Outcome.applied(record)

    def _apply_chargeback(self, record: Chargeback) -> Outcome:
        account = self.account(record.client_id)
        entry, rejection = self._referenced_entry(record, account)
        if rejection is not None:
            return rejection
        if entry.dispute_status is not DisputeStatus.DISPUTED:
            return Outcome.rejected(
                record, RejectReason.INVALID_DISPUTE_STATE, entry.dispute_status.value
            )
        # Only reachable when another entry was still disputed at lock time
        if account.locked:
            return Outcome.rejected(record, RejectReason.ACCOUNT_LOCKED)

        self.ledger.set_dispute_status(entry.tx_id, DisputeStatus.CHARGED_BACK)
        account.held -= entry.amount
        account.locked = True
        return Outcome.applied(record)


def replay(
    records: Iterable[Record],
    sink: Optional[DiagnosticsSink] = None,
) -> AccountStateMachine:
    """
    Fold a record stream into a fresh AccountStateMachine.

    Records are consumed lazily, one at a time, in order. Each rejected
    outcome is handed to the sink; rejections never stop the replay.

    Args:
        records: Iterable of transaction / Malformed records
        sink: Receives rejected outcomes (default: NullSink)

    Returns:
        The state machine after the last record
    """
    sink = sink if sink is not None else NullSink()
    machine = AccountStateMachine()
    for record in records:
        outcome = machine.apply(record)
        if not outcome.is_applied:
            sink.report(outcome)
    return machine
