"""
ledger.py - Transaction Ledger

Append-only record of accepted deposits and withdrawals, keyed by tx_id.

Key responsibilities:
    - Rejects duplicate tx_ids without touching the original entry
    - Keeps every entry for the lifetime of the run (later disputes need them)
    - Enforces the dispute status path on the only mutation it allows
"""

from __future__ import annotations
from dataclasses import replace
from typing import Dict, Optional

from .core import (
    LedgerEntry, DisputeStatus,
    DISPUTE_TRANSITIONS,
    DuplicateTx, UnknownTransaction, InvalidDisputeTransition,
)


class TransactionLedger:
    """
    Mapping from tx_id to LedgerEntry.

    There is no update path for an entry's amount or kind. The dispute
    status is changed with set_dispute_status(), which replaces the
    stored (frozen) entry with an updated copy.

    Thread Safety:
        Not thread-safe. One writer per run.

    Example:
        ledger = TransactionLedger()
        ledger.insert(LedgerEntry(1, 7, Decimal("5.0000"), EntryKind.DEPOSIT))
        ledger.set_dispute_status(1, DisputeStatus.DISPUTED)
    """

    def __init__(self) -> None:
        self._entries: Dict[int, LedgerEntry] = {}

    def insert(self, entry: LedgerEntry) -> None:
        """
        Record a newly accepted deposit or withdrawal.

        Raises:
            DuplicateTx: If entry.tx_id is already recorded
        """
        if entry.tx_id in self._entries:
            raise DuplicateTx(f"tx {entry.tx_id} already recorded")
        self._entries[entry.tx_id] = entry

    def get(self, tx_id: int) -> Optional[LedgerEntry]:
        """Return the entry for tx_id, or None if it was never recorded."""
        return self._entries.get(tx_id)

    def set_dispute_status(self, tx_id: int, status: DisputeStatus) -> LedgerEntry:
        """
        Move an entry along its dispute lifecycle.

        Args:
            tx_id: Entry to update
            status: Target status

        Returns:
            The updated entry

        Raises:
            UnknownTransaction: If tx_id has no entry
            InvalidDisputeTransition: If the change is not on the allowed path,
                or the entry is a withdrawal
        """
        entry = self._entries.get(tx_id)
        if entry is None:
            raise UnknownTransaction(f"tx {tx_id} not found")
        if not entry.is_deposit:
            raise InvalidDisputeTransition(f"tx {tx_id} is a withdrawal")
        if status not in DISPUTE_TRANSITIONS[entry.dispute_status]:
            raise InvalidDisputeTransition(
                f"tx {tx_id}: {entry.dispute_status.value} -> {status.value} not allowed"
            )
        updated = replace(entry, dispute_status=status)
        self._entries[tx_id] = updated
        return updated
