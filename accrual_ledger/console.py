"""
Interactive Console

Menu-driven front end: record transactions, define interest rules and print
monthly statements. Raw text is parsed here into typed values; every
rejection is reported and the user is prompted again with state unchanged.
"""

from decimal import Decimal
from datetime import date
from dataclasses import dataclass
from typing import List, Optional, Tuple
from enum import Enum
import sys

from .amounts import parse_amount, parse_rate
from .config import get_config
from .ledger import TransactionKind
from .logging_config import setup_logging
from .periods import YearMonth, parse_date
from .system import LedgerSystem


class MenuAction(Enum):
    """Main menu choices, valued by their key"""
    RECORD_TRANSACTION = "T"
    DEFINE_RULE = "I"
    PRINT_STATEMENT = "P"
    QUIT = "Q"

    @classmethod
    def parse(cls, choice: Optional[str]) -> Optional['MenuAction']:
        normalized = (choice or "").strip().upper()
        for action in cls:
            if action.value == normalized:
                return action
        return None


MENU_LINES = [
    "[T] Input transactions",
    "[I] Define interest rules",
    "[P] Print statement",
    "[Q] Quit",
]


class ConsoleIO:
    """Line-oriented terminal input/output"""

    def read_line(self, prompt: str = "") -> Optional[str]:
        """Read one line; None at end of input"""
        try:
            return input(prompt)
        except EOFError:
            return None

    def write_line(self, message: str = "") -> None:
        print(message)


@dataclass(frozen=True)
class TransactionInput:
    txn_date: date
    account: str
    kind: TransactionKind
    amount: Decimal


@dataclass(frozen=True)
class RuleInput:
    effective_date: date
    rule_id: str
    rate_percent: Decimal


def _split(line: str, expected: int, usage: str) -> List[str]:
    parts = line.split()
    if len(parts) != expected:
        raise ValueError(f"Invalid format! Please enter in {usage} format.")
    return parts


def parse_transaction_input(line: str) -> TransactionInput:
    """Parse '<Date> <Account> <Type> <Amount>'"""
    date_text, account, kind_text, amount_text = _split(line, 4, "<Date> <Account> <Type> <Amount>")
    return TransactionInput(
        txn_date=parse_date(date_text),
        account=account,
        kind=TransactionKind.parse(kind_text),
        amount=parse_amount(amount_text)
    )


def parse_rule_input(line: str) -> RuleInput:
    """Parse '<Date> <RuleId> <Rate in %>'"""
    date_text, rule_id, rate_text = _split(line, 3, "<Date> <RuleId> <Rate in %>")
    return RuleInput(
        effective_date=parse_date(date_text),
        rule_id=rule_id,
        rate_percent=parse_rate(rate_text)
    )


def parse_statement_input(line: str) -> Tuple[str, YearMonth]:
    """Parse '<Account> <Year><Month>'"""
    account, month_text = _split(line, 2, "<Account> <Year><Month>")
    return account, YearMonth.parse(month_text)


class LedgerConsole:
    """Menu loop over a LedgerSystem"""

    def __init__(self, system: LedgerSystem, io: Optional[ConsoleIO] = None):
        self.system = system
        self.io = io or ConsoleIO()
        self.bank_name = system.config.bank_name

    def run(self) -> None:
        """Show the menu until the user quits or input ends"""
        greeting = f"Welcome to {self.bank_name}! What would you like to do?"
        while True:
            self.io.write_line(greeting)
            for line in MENU_LINES:
                self.io.write_line(line)

            choice = self.io.read_line("> ")
            if choice is None:
                return

            action = MenuAction.parse(choice)
            if action is None:
                self.io.write_line("Invalid choice! Please try again.")
            elif action == MenuAction.RECORD_TRANSACTION:
                self.record_transactions()
            elif action == MenuAction.DEFINE_RULE:
                self.define_rules()
            elif action == MenuAction.PRINT_STATEMENT:
                self.print_statements()
            elif action == MenuAction.QUIT:
                self.io.write_line(f"Thank you for banking with {self.bank_name}.")
                self.io.write_line("Have a nice day!")
                return

            greeting = "Is there anything else you'd like to do?"

    def record_transactions(self) -> None:
        while True:
            line = self._prompt(
                "Please enter transaction details in <Date> <Account> <Type> <Amount> format"
            )
            if line is None:
                return
            try:
                entry = parse_transaction_input(line)
                self.system.ledger.append(entry.account, entry.txn_date, entry.kind, entry.amount)
            except ValueError as e:
                self.io.write_line(str(e))
                continue
            self.io.write_line(self.system.statements.render_transactions(entry.account))

    def define_rules(self) -> None:
        while True:
            line = self._prompt(
                "Please enter interest rules details in <Date> <RuleId> <Rate in %> format"
            )
            if line is None:
                return
            try:
                entry = parse_rule_input(line)
                self.system.rules.define(entry.effective_date, entry.rule_id, entry.rate_percent)
            except ValueError as e:
                self.io.write_line(str(e))
                continue
            self.io.write_line(self.system.statements.render_rules())

    def print_statements(self) -> None:
        while True:
            line = self._prompt(
                "Please enter account and month to generate the statement <Account> <Year><Month>"
            )
            if line is None:
                return
            try:
                account, year_month = parse_statement_input(line)
            except ValueError as e:
                self.io.write_line(str(e))
                continue
            statement = self.system.statements.build(account, year_month)
            self.io.write_line(self.system.statements.render(statement))

    def _prompt(self, instruction: str) -> Optional[str]:
        """Show an instruction and read a line; None when the user leaves blank"""
        self.io.write_line(instruction)
        self.io.write_line("(or enter blank to go back to main menu):")
        line = self.io.read_line("> ")
        if line is None or not line.strip():
            return None
        return line


def main() -> int:
    """Console entry point"""
    config = get_config()
    setup_logging(config.log_level, config.log_format, config.log_file)
    LedgerConsole(LedgerSystem(config)).run()
    return 0


if __name__ == "__main__":
    sys.exit(main())
