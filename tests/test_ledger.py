"""
Test suite for ledger module

Tests transaction recording, id generation, running balances and the
withdrawal rules. CRITICAL: a rejected entry must leave the ledger unchanged.
"""

import random
import pytest
from decimal import Decimal
from datetime import date, timedelta

from accrual_ledger.storage import InMemoryStorage
from accrual_ledger.ledger import (
    Ledger, Transaction, TransactionKind, BalanceEvent, build_balance_events
)


D = TransactionKind.DEPOSIT
W = TransactionKind.WITHDRAWAL


class TestTransactionKind:
    """Test parsing of D/W codes"""

    def test_parse_codes(self):
        assert TransactionKind.parse("D") == D
        assert TransactionKind.parse("w") == W
        assert TransactionKind.parse(" d ") == D

    def test_parse_rejects_other_codes(self):
        for code in ("I", "X", "", "DW"):
            with pytest.raises(ValueError, match="Invalid transaction type"):
                TransactionKind.parse(code)


class TestTransaction:
    """Test transaction value object"""

    def test_signed_amount(self):
        deposit = Transaction("20230601-01", "AC001", date(2023, 6, 1), D, Decimal('100.00'))
        withdrawal = Transaction("20230602-01", "AC001", date(2023, 6, 2), W, Decimal('40.00'))

        assert deposit.signed_amount == Decimal('100.00')
        assert withdrawal.signed_amount == Decimal('-40.00')

    def test_immutable(self):
        txn = Transaction("20230601-01", "AC001", date(2023, 6, 1), D, Decimal('100.00'))
        with pytest.raises(Exception):
            txn.amount = Decimal('1')


class TestLedgerAppend:
    """Test recording transactions"""

    def setup_method(self):
        self.storage = InMemoryStorage()
        self.ledger = Ledger(self.storage)

    def test_deposit_assigns_daily_sequence_id(self):
        txn = self.ledger.append("AC001", date(2023, 6, 26), D, Decimal('100.00'))

        assert txn.id == "20230626-01"
        assert txn.account == "AC001"
        assert txn.kind == D
        assert txn.amount == Decimal('100.00')

    def test_counter_is_shared_across_accounts(self):
        """The per-day counter is ledger-wide, not per account"""
        first = self.ledger.append("AC001", date(2023, 6, 26), D, Decimal('100.00'))
        second = self.ledger.append("AC002", date(2023, 6, 26), D, Decimal('50.00'))
        third = self.ledger.append("AC001", date(2023, 6, 27), D, Decimal('10.00'))

        assert first.id == "20230626-01"
        assert second.id == "20230626-02"
        assert third.id == "20230627-01"

    def test_accepts_string_codes_and_amounts(self):
        txn = self.ledger.append("AC001", date(2023, 6, 1), "d", "25.50")
        assert txn.kind == D
        assert txn.amount == Decimal('25.50')

    def test_rejects_non_positive_amount(self):
        for amount in (Decimal('0'), Decimal('-5.00')):
            with pytest.raises(ValueError, match="positive number"):
                self.ledger.append("AC001", date(2023, 6, 1), D, amount)

        assert self.ledger.transactions_for("AC001") == []

    def test_rejects_interest_kind(self):
        with pytest.raises(ValueError, match="Invalid transaction type"):
            self.ledger.append("AC001", date(2023, 6, 1), TransactionKind.INTEREST, Decimal('1.00'))

    def test_rejects_empty_account(self):
        with pytest.raises(ValueError, match="Account"):
            self.ledger.append("  ", date(2023, 6, 1), D, Decimal('1.00'))

    def test_rejects_first_withdrawal(self):
        with pytest.raises(ValueError, match="first transaction"):
            self.ledger.append("AC001", date(2023, 6, 1), W, Decimal('10.00'))

        assert self.ledger.transactions_for("AC001") == []

    def test_first_withdrawal_checked_per_account(self):
        """Another account's history does not open this account"""
        self.ledger.append("AC001", date(2023, 6, 1), D, Decimal('100.00'))

        with pytest.raises(ValueError, match="first transaction"):
            self.ledger.append("AC002", date(2023, 6, 2), W, Decimal('10.00'))

    def test_rejects_withdrawal_exceeding_balance(self):
        self.ledger.append("AC001", date(2023, 6, 1), D, Decimal('100.00'))
        self.ledger.append("AC001", date(2023, 6, 2), W, Decimal('30.00'))

        with pytest.raises(ValueError, match="You can withdraw up to 70.00"):
            self.ledger.append("AC001", date(2023, 6, 3), W, Decimal('70.01'))

        assert self.ledger.balance_of("AC001") == Decimal('70.00')

    def test_withdrawal_of_whole_balance_allowed(self):
        self.ledger.append("AC001", date(2023, 6, 1), D, Decimal('100.00'))
        self.ledger.append("AC001", date(2023, 6, 2), W, Decimal('100.00'))

        assert self.ledger.balance_of("AC001") == Decimal('0')

    def test_balance_check_uses_all_time_history(self):
        """Deposits from earlier months count toward the withdrawable balance"""
        self.ledger.append("AC001", date(2023, 1, 5), D, Decimal('500.00'))
        txn = self.ledger.append("AC001", date(2023, 6, 1), W, Decimal('450.00'))

        assert txn.kind == W
        assert self.ledger.balance_of("AC001") == Decimal('50.00')

    def test_rejects_backdated_withdrawal_that_overdraws(self):
        """A back-dated withdrawal may not overdraw the balance at its own date"""
        self.ledger.append("AC001", date(2023, 6, 1), D, Decimal('100.00'))
        self.ledger.append("AC001", date(2023, 6, 20), D, Decimal('400.00'))

        with pytest.raises(ValueError, match="overdraw the account on 20230610"):
            self.ledger.append("AC001", date(2023, 6, 10), W, Decimal('150.00'))

        assert len(self.ledger.transactions_for("AC001")) == 2

    def test_rejects_withdrawal_dated_before_first_deposit(self):
        self.ledger.append("AC001", date(2023, 6, 10), D, Decimal('100.00'))

        with pytest.raises(ValueError, match="first transaction"):
            self.ledger.append("AC001", date(2023, 6, 1), W, Decimal('10.00'))

    def test_rejection_does_not_consume_sequence(self):
        self.ledger.append("AC001", date(2023, 6, 1), D, Decimal('10.00'))
        with pytest.raises(ValueError):
            self.ledger.append("AC001", date(2023, 6, 1), W, Decimal('20.00'))

        txn = self.ledger.append("AC001", date(2023, 6, 1), W, Decimal('5.00'))
        assert txn.id == "20230601-02"


class TestLedgerQueries:
    """Test ordering and balance queries"""

    def setup_method(self):
        self.ledger = Ledger(InMemoryStorage())

    def test_transactions_ordered_by_date_then_id(self):
        self.ledger.append("AC001", date(2023, 6, 26), D, Decimal('100.00'))
        self.ledger.append("AC001", date(2023, 6, 1), D, Decimal('150.00'))
        self.ledger.append("AC001", date(2023, 6, 26), W, Decimal('20.00'))

        ids = [t.id for t in self.ledger.transactions_for("AC001")]
        assert ids == ["20230601-01", "20230626-01", "20230626-02"]

    def test_ordering_follows_transaction_id_past_99_a_day(self):
        """Ids order as strings within a day, so -100 sorts between -10 and -11"""
        for _ in range(100):
            self.ledger.append("AC001", date(2023, 6, 1), D, Decimal('1.00'))

        ids = [t.id for t in self.ledger.transactions_for("AC001")]
        assert ids == sorted(ids)
        assert ids.index("20230601-100") == ids.index("20230601-10") + 1
        assert [e.id for e in self.ledger.balance_events("AC001")] == ids

    def test_transactions_filtered_by_account(self):
        self.ledger.append("AC001", date(2023, 6, 1), D, Decimal('100.00'))
        self.ledger.append("AC002", date(2023, 6, 1), D, Decimal('200.00'))

        assert [t.account for t in self.ledger.transactions_for("AC002")] == ["AC002"]
        assert self.ledger.accounts() == ["AC001", "AC002"]

    def test_balance_events_carry_running_balance(self):
        self.ledger.append("AC001", date(2023, 5, 5), D, Decimal('100.00'))
        self.ledger.append("AC001", date(2023, 6, 1), D, Decimal('150.00'))
        self.ledger.append("AC001", date(2023, 6, 26), W, Decimal('20.00'))

        events = self.ledger.balance_events("AC001")
        assert [e.running_balance for e in events] == [
            Decimal('100.00'), Decimal('250.00'), Decimal('230.00')
        ]
        assert all(isinstance(e, BalanceEvent) for e in events)

    def test_repeated_reads_are_identical(self):
        self.ledger.append("AC001", date(2023, 6, 1), D, Decimal('100.00'))
        self.ledger.append("AC001", date(2023, 6, 2), W, Decimal('10.00'))

        assert self.ledger.balance_events("AC001") == self.ledger.balance_events("AC001")

    def test_balance_of_unknown_account_is_zero(self):
        assert self.ledger.balance_of("nobody") == Decimal('0')
        assert self.ledger.balance_events("nobody") == []


class TestBuildBalanceEvents:
    """Test running balance derivation"""

    def test_sorts_before_accumulating(self):
        later = Transaction("20230602-01", "AC001", date(2023, 6, 2), W, Decimal('30.00'))
        earlier = Transaction("20230601-01", "AC001", date(2023, 6, 1), D, Decimal('100.00'))

        events = build_balance_events([later, earlier])
        assert [e.id for e in events] == ["20230601-01", "20230602-01"]
        assert events[-1].running_balance == Decimal('70.00')

    def test_empty(self):
        assert build_balance_events([]) == []


class TestRunningBalanceProperty:
    """Randomized check: accepted histories never go negative"""

    def test_random_histories_stay_non_negative(self):
        rng = random.Random(20230601)
        ledger = Ledger(InMemoryStorage())
        start = date(2023, 1, 1)

        for _ in range(200):
            account = rng.choice(["AC001", "AC002", "AC003"])
            kind = rng.choice([D, W])
            amount = Decimal(rng.randint(1, 50000)) / 100
            txn_date = start + timedelta(days=rng.randint(0, 90))
            try:
                ledger.append(account, txn_date, kind, amount)
            except ValueError:
                pass

        for account in ledger.accounts():
            events = ledger.balance_events(account)
            expected = Decimal('0')
            for event in events:
                expected += event.amount if event.kind == D else -event.amount
                assert event.running_balance == expected
                assert event.running_balance >= 0
