"""
test_replay_scenarios.py - End-to-end replay scenario tests

Tests complete record streams from CSV text to the encoded account table:
- Deposits and withdrawals
- Dispute / chargeback / resolve cycles
- Duplicate transactions
- Overdraft attempts on empty accounts
- Mixed clients with malformed rows
"""

import io

import pytest
from decimal import Decimal

from payments import (
    AccountStateMachine, Deposit, Withdrawal, Dispute, Resolve, Chargeback,
    RejectReason, read_transactions, write_accounts, replay,
)


def _run_csv(text: str, sink=None) -> str:
    machine = replay(read_transactions(io.StringIO(text)), sink)
    out = io.StringIO()
    write_accounts(machine.snapshot(), out)
    return out.getvalue()


class TestScenarios:
    """The reference scenarios, applied record by record."""

    def test_deposits_and_withdrawal(self, machine):
        """Scenario A: two deposits and a withdrawal."""
        for record in [
            Deposit(1, 1, Decimal("5.0")),
            Deposit(1, 2, Decimal("3.0")),
            Withdrawal(1, 3, Decimal("1.5")),
        ]:
            assert machine.apply(record).is_applied

        account = machine.accounts[1]
        assert account.available == Decimal("6.5")
        assert account.held == Decimal("0")
        assert account.locked is False

    def test_chargeback_locks_account(self, machine):
        """Scenario B: deposit, dispute, chargeback, then a refused deposit."""
        for record in [Deposit(1, 1, Decimal("5.0")), Dispute(1, 1), Chargeback(1, 1)]:
            assert machine.apply(record).is_applied

        account = machine.accounts[1]
        assert (account.available, account.held, account.locked) == (Decimal("0"), Decimal("0"), True)

        outcome = machine.apply(Deposit(1, 4, Decimal("10.0")))
        assert outcome.reason is RejectReason.ACCOUNT_LOCKED
        assert (account.available, account.held, account.locked) == (Decimal("0"), Decimal("0"), True)

    def test_dispute_then_resolve(self, machine):
        """Scenario C: deposit, dispute, resolve."""
        for record in [Deposit(1, 1, Decimal("5.0")), Dispute(1, 1), Resolve(1, 1)]:
            assert machine.apply(record).is_applied

        account = machine.accounts[1]
        assert (account.available, account.held, account.locked) == (Decimal("5"), Decimal("0"), False)

    def test_duplicate_deposit(self, machine):
        """Scenario D: the same tx deposited twice counts once."""
        assert machine.apply(Deposit(1, 1, Decimal("5.0"))).is_applied
        outcome = machine.apply(Deposit(1, 1, Decimal("5.0")))
        assert outcome.reason is RejectReason.DUPLICATE_TX
        assert machine.accounts[1].available == Decimal("5")

    def test_withdrawal_from_empty_account(self, machine):
        """Scenario E: overdraft on a fresh account."""
        outcome = machine.apply(Withdrawal(1, 1, Decimal("5.0")))
        assert outcome.reason is RejectReason.INSUFFICIENT_FUNDS
        assert machine.accounts[1].available == Decimal("0")


class TestCsvScenarios:
    """Scenarios driven through the CSV codec."""

    def test_sample_two_clients(self):
        output = _run_csv(
            "type, client, tx, amount\n"
            "deposit, 1, 1, 1.0\n"
            "deposit, 2, 2, 2.0\n"
            "deposit, 1, 3, 2.0\n"
            "withdrawal, 1, 4, 1.5\n"
            "withdrawal, 2, 5, 3.0\n"
        )
        assert output == (
            "client,available,held,total,locked\n"
            "1,1.5000,0.0000,1.5000,false\n"
            "2,2.0000,0.0000,2.0000,false\n"
        )

    def test_disputes_and_chargeback(self):
        output = _run_csv(
            "type,client,tx,amount\n"
            "deposit,1,1,10.0\n"
            "deposit,1,2,5.25\n"
            "withdrawal,1,3,3\n"
            "dispute,1,2,\n"
            "deposit,2,4,7.7777\n"
            "dispute,2,4,\n"
            "resolve,2,4,\n"
            "chargeback,1,2,\n"
            "deposit,1,5,100\n"
        )
        assert output == (
            "client,available,held,total,locked\n"
            "1,7.0000,0.0000,7.0000,true\n"
            "2,7.7777,0.0000,7.7777,false\n"
        )

    def test_dispute_into_debt(self):
        output = _run_csv(
            "deposit,1,1,100\n"
            "withdrawal,1,2,50\n"
            "deposit,1,3,200\n"
            "withdrawal,1,4,200\n"
            "dispute,1,1\n"
        )
        assert output == (
            "client,available,held,total,locked\n"
            "1,-50.0000,100.0000,50.0000,false\n"
        )

    def test_malformed_rows_are_skipped(self, recording_sink):
        output = _run_csv(
            "type,client,tx,amount\n"
            "deposit,1,1,1.0\n"
            "bacon,1,2,1.0\n"
            "deposit,x,3,1.0\n"
            "deposit,2,4,1.23456\n"
            "deposit,3,5,-1\n"
            "withdrawal,1,6\n"
            "deposit,1,7,0.5\n",
            recording_sink,
        )
        assert output == (
            "client,available,held,total,locked\n"
            "1,1.5000,0.0000,1.5000,false\n"
        )
        assert recording_sink.reasons == [RejectReason.MALFORMED] * 5

    def test_dispute_of_other_clients_tx(self, recording_sink):
        output = _run_csv(
            "deposit,1,1,4\n"
            "dispute,2,1\n",
            recording_sink,
        )
        assert output == (
            "client,available,held,total,locked\n"
            "1,4.0000,0.0000,4.0000,false\n"
            "2,0.0000,0.0000,0.0000,false\n"
        )
        assert recording_sink.reasons == [RejectReason.CLIENT_MISMATCH]

    def test_empty_input(self):
        assert _run_csv("type,client,tx,amount\n") == "client,available,held,total,locked\n"
