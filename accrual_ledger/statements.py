"""
Statement Builder Module

Orders and renders monthly statements: the month's transactions with their
running balances followed by the month-end interest line. Also renders the
transaction and interest rule listings shown after each entry.
"""

from decimal import Decimal
from dataclasses import dataclass
from typing import Dict, List
from enum import Enum
import csv
import io
import json

from .amounts import format_amount
from .interest import InterestAccrualEngine
from .ledger import BalanceEvent, Ledger
from .periods import YearMonth, format_date
from .rules import RuleTimeline


# A statement line is a balance event or the synthetic interest line
MonthlyStatementLine = BalanceEvent


class StatementFormat(Enum):
    """Statement export formats, valued by their API name"""
    JSON = "json"
    CSV = "csv"
    TEXT = "text"


@dataclass(frozen=True)
class Statement:
    """Monthly statement for one account"""
    account: str
    year_month: YearMonth
    lines: List[MonthlyStatementLine]
    interest: Decimal

    @property
    def transactions(self) -> List[MonthlyStatementLine]:
        return [line for line in self.lines if not line.is_interest]

    @property
    def closing_balance(self) -> Decimal:
        return self.lines[-1].running_balance

    def to_dict(self) -> Dict:
        return {
            'account': self.account,
            'month': str(self.year_month),
            'interest': format_amount(self.interest),
            'closing_balance': format_amount(self.closing_balance),
            'lines': [_line_to_dict(line) for line in self.lines]
        }


def _line_to_dict(line: MonthlyStatementLine) -> Dict:
    return {
        'date': format_date(line.date),
        'txn_id': line.id,
        'type': line.kind.value,
        'amount': format_amount(line.amount),
        'balance': format_amount(line.running_balance)
    }


class StatementBuilder:
    """Builds and renders statements from a ledger and rule timeline"""

    def __init__(self, ledger: Ledger, rules: RuleTimeline, engine: InterestAccrualEngine):
        self.ledger = ledger
        self.rules = rules
        self.engine = engine

    def build(self, account: str, year_month: YearMonth) -> Statement:
        """Build the statement with the interest line last"""
        accrual = self.engine.compute_monthly_accrual(account, year_month, self.ledger, self.rules)
        events = sorted(accrual.events, key=lambda e: e.date)
        return Statement(
            account=account,
            year_month=year_month,
            lines=events + [accrual.interest_line],
            interest=accrual.interest
        )

    def render(self, statement: Statement) -> str:
        """Render a statement as a pipe table"""
        rows = [
            f"Account: {statement.account}",
            "| Date     | Txn Id      | Type | Amount | Balance |",
        ]
        for line in statement.lines:
            rows.append(
                f"| {format_date(line.date)} | {line.id:<11} | {line.kind.value:<4} "
                f"| {format_amount(line.amount):>6} | {format_amount(line.running_balance):>7} |"
            )
        return "\n".join(rows)

    def render_transactions(self, account: str) -> str:
        """Render every transaction of an account (no balances)"""
        transactions = self.ledger.transactions_for(account)
        if not transactions:
            return f"No transactions found for account {account}."

        rows = [
            f"Account: {account}",
            "| Date     | Txn Id      | Type | Amount |",
        ]
        for txn in transactions:
            rows.append(
                f"| {format_date(txn.date)} | {txn.id:<11} | {txn.kind.value:<4} "
                f"| {format_amount(txn.amount):>6} |"
            )
        return "\n".join(rows)

    def render_rules(self) -> str:
        """Render the interest rule timeline"""
        rows = [
            "Interest rules:",
            "| Date     | RuleId | Rate (%) |",
        ]
        for rule in self.rules.rules():
            rows.append(
                f"| {format_date(rule.effective_date)} | {rule.id:<6} "
                f"| {format_amount(rule.rate_percent):>8} |"
            )
        return "\n".join(rows)

    def export(self, statement: Statement, format: StatementFormat) -> str:
        """
        Export statement in specified format
        """
        if format == StatementFormat.TEXT:
            return self.render(statement)

        elif format == StatementFormat.JSON:
            return json.dumps(statement.to_dict(), indent=2)

        elif format == StatementFormat.CSV:
            output = io.StringIO()
            writer = csv.DictWriter(output, fieldnames=['date', 'txn_id', 'type', 'amount', 'balance'])
            writer.writeheader()
            for line in statement.lines:
                writer.writerow(_line_to_dict(line))
            csv_content = output.getvalue()
            output.close()
            return csv_content

        else:
            raise ValueError(f"Unsupported export format: {format}")
