"""
Transaction Ledger Module

Authoritative store of deposits and withdrawals for all accounts. Balances
are never stored; they are derived from the recorded transactions in
(date, id) order, so every statement sees the same history.
"""

from abc import ABC, abstractmethod
from decimal import Decimal
from datetime import date
from dataclasses import dataclass
from typing import Dict, Iterable, List, Union
from enum import Enum

from .amounts import ZERO, to_decimal, format_amount
from .periods import format_date
from .storage import StorageInterface
from .logging_config import get_logger, log_action


class TransactionKind(Enum):
    """Kinds of statement entries, valued by their single-letter code"""
    DEPOSIT = "D"
    WITHDRAWAL = "W"
    INTEREST = "I"  # Synthetic month-end line, never recorded in the ledger

    @classmethod
    def parse(cls, code: str) -> 'TransactionKind':
        """Parse a user-entered D/W code (case-insensitive)"""
        normalized = (code or "").strip().upper()
        if normalized not in (cls.DEPOSIT.value, cls.WITHDRAWAL.value):
            raise ValueError("Invalid transaction type! Use 'D' for DEPOSIT or 'W' for WITHDRAW.")
        return cls(normalized)


@dataclass(frozen=True)
class Transaction:
    """A recorded deposit or withdrawal. Immutable once created."""
    id: str
    account: str
    date: date
    kind: TransactionKind
    amount: Decimal

    @property
    def signed_amount(self) -> Decimal:
        """Amount with the sign of its effect on the balance"""
        if self.kind == TransactionKind.WITHDRAWAL:
            return -self.amount
        return self.amount

    @property
    def sort_key(self):
        return (self.date, self.id)


@dataclass(frozen=True)
class BalanceEvent:
    """
    A statement line: a transaction annotated with the account's running
    balance immediately after it. The month-end interest line uses the same
    shape with kind INTEREST and an empty id.
    """
    account: str
    date: date
    id: str
    kind: TransactionKind
    amount: Decimal
    running_balance: Decimal

    @property
    def is_interest(self) -> bool:
        return self.kind == TransactionKind.INTEREST


def build_balance_events(transactions: Iterable[Transaction]) -> List[BalanceEvent]:
    """
    Annotate transactions with their running balance

    Args:
        transactions: All transactions of one account, in any order

    Returns:
        BalanceEvents ordered by (date, id), each carrying the cumulative
        signed sum of every transaction up to and including it
    """
    running_balance = ZERO
    events = []
    for txn in sorted(transactions, key=lambda t: t.sort_key):
        running_balance += txn.signed_amount
        events.append(BalanceEvent(
            account=txn.account,
            date=txn.date,
            id=txn.id,
            kind=txn.kind,
            amount=txn.amount,
            running_balance=running_balance
        ))
    return events


class TransactionSource(ABC):
    """Read access to an account's recorded transactions"""

    @abstractmethod
    def transactions_for(self, account: str) -> List[Transaction]:
        """All transactions of the account ordered by (date, id)"""
        pass


class Ledger(TransactionSource):
    """
    Records transactions for all accounts and validates each new entry
    against the account's complete history
    """

    def __init__(self, storage: StorageInterface):
        self.storage = storage
        self.table_name = "transactions"
        # Date key (YYYYMMDD) -> last sequence issued, shared by all accounts
        self._daily_counters: Dict[str, int] = {}
        self.logger = get_logger("accrual_ledger.ledger")

    def append(
        self,
        account: str,
        txn_date: date,
        kind: Union[TransactionKind, str],
        amount: Union[Decimal, int, str]
    ) -> Transaction:
        """
        Record a deposit or withdrawal

        Args:
            account: Account identifier
            txn_date: Calendar date of the transaction
            kind: DEPOSIT or WITHDRAWAL (or its D/W code)
            amount: Strictly positive amount

        Returns:
            The recorded Transaction with its generated id

        Raises:
            ValueError: If the entry is rejected; the ledger is left unchanged
        """
        if not isinstance(kind, TransactionKind):
            kind = TransactionKind.parse(kind)
        amount = to_decimal(amount)

        try:
            if not account or not account.strip():
                raise ValueError("Account must not be empty.")
            if kind == TransactionKind.INTEREST:
                raise ValueError("Invalid transaction type! Use 'D' for DEPOSIT or 'W' for WITHDRAW.")
            if amount <= ZERO:
                raise ValueError("Invalid amount! Please enter a positive number.")

            with self.storage.atomic():
                date_key = format_date(txn_date)
                sequence = self._daily_counters.get(date_key, 0) + 1

                txn_id = f"{date_key}-{sequence:02d}"
                if kind == TransactionKind.WITHDRAWAL:
                    self._validate_withdrawal(account, txn_date, txn_id, amount)

                transaction = Transaction(
                    id=txn_id,
                    account=account,
                    date=txn_date,
                    kind=kind,
                    amount=amount
                )
                self._save_transaction(transaction)
                self._daily_counters[date_key] = sequence

        except ValueError as e:
            log_action(
                self.logger, "warning", f"Transaction rejected: {e}",
                account=account, action="append_transaction",
                extra={"date": txn_date.isoformat(), "kind": kind.value, "amount": str(amount)}
            )
            raise

        log_action(
            self.logger, "info", f"Transaction recorded: {transaction.id}",
            account=account, action="append_transaction",
            resource=f"transaction:{transaction.id}",
            extra={"date": txn_date.isoformat(), "kind": kind.value, "amount": str(amount)}
        )
        return transaction

    def transactions_for(self, account: str) -> List[Transaction]:
        """Get all transactions of an account ordered by (date, id)"""
        records = self.storage.find(self.table_name, {"account": account})
        transactions = [self._transaction_from_dict(data) for data in records]
        transactions.sort(key=lambda t: t.sort_key)
        return transactions

    def balance_events(self, account: str) -> List[BalanceEvent]:
        """Get the account's complete history annotated with running balances"""
        return build_balance_events(self.transactions_for(account))

    def balance_of(self, account: str) -> Decimal:
        """All-time balance of an account"""
        return sum((t.signed_amount for t in self.transactions_for(account)), ZERO)

    def accounts(self) -> List[str]:
        """Accounts with at least one recorded transaction"""
        return sorted({data["account"] for data in self.storage.load_all(self.table_name)})

    def _validate_withdrawal(
        self,
        account: str,
        txn_date: date,
        txn_id: str,
        amount: Decimal
    ) -> None:
        """
        Reject a withdrawal that would open the account, exceed its all-time
        balance, or overdraw it at any point of its (date, id) history
        """
        history = self.transactions_for(account)
        if not history:
            raise ValueError("Invalid: The first transaction on an account cannot be a withdrawal.")

        balance = sum((t.signed_amount for t in history), ZERO)
        if amount > balance:
            raise ValueError(f"Insufficient funds! You can withdraw up to {format_amount(balance)}.")

        candidate = Transaction(
            id=txn_id,
            account=account,
            date=txn_date,
            kind=TransactionKind.WITHDRAWAL,
            amount=amount
        )
        events = build_balance_events(history + [candidate])
        if events[0].id == candidate.id:
            raise ValueError("Invalid: The first transaction on an account cannot be a withdrawal.")

        for event in events:
            if event.running_balance < ZERO:
                raise ValueError(
                    f"Insufficient funds! The withdrawal would overdraw the account "
                    f"on {format_date(event.date)}."
                )

    def _save_transaction(self, transaction: Transaction) -> None:
        """Save transaction to storage"""
        self.storage.save(self.table_name, transaction.id, self._transaction_to_dict(transaction))

    def _transaction_to_dict(self, transaction: Transaction) -> Dict:
        """Convert Transaction to dictionary for storage"""
        return {
            'id': transaction.id,
            'account': transaction.account,
            'date': transaction.date.isoformat(),
            'kind': transaction.kind.value,
            'amount': str(transaction.amount)
        }

    def _transaction_from_dict(self, data: Dict) -> Transaction:
        """Convert dictionary to Transaction"""
        return Transaction(
            id=data['id'],
            account=data['account'],
            date=date.fromisoformat(data['date']),
            kind=TransactionKind(data['kind']),
            amount=Decimal(data['amount'])
        )
