"""
Interest Accrual Engine Module

Computes the interest an account earns over one calendar month. The month is
partitioned into day-segments bounded by balance-changing transactions and
interest rule changes; each segment is charged at the rule in force, and the
day-weighted sum is divided by the day-count basis and rounded half-up.
"""

from decimal import Decimal
from datetime import date
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Union

from .amounts import ZERO, to_decimal, round_half_up
from .ledger import BalanceEvent, TransactionKind, TransactionSource, build_balance_events
from .periods import YearMonth
from .rules import InterestRule, RuleSource
from .logging_config import get_logger, log_action


HUNDRED = Decimal('100')


def calculate_interest_amount(
    balance: Union[Decimal, int, str],
    rate: Union[Decimal, int, str],
    days: int
) -> Decimal:
    """
    Day-weighted interest for one segment, before division by the day-count basis

    Args:
        balance: Balance held during the segment
        rate: Annual rate in percent
        days: Number of days the balance was held

    Returns:
        rate * days * balance / 100
    """
    return to_decimal(rate) * days * to_decimal(balance) / HUNDRED


@dataclass(frozen=True)
class DaySegment:
    """Contiguous days over which one balance and one rule apply"""
    start: date
    days: int
    balance: Decimal
    rule: Optional[InterestRule]  # None when no rule was in force yet

    @property
    def interest(self) -> Decimal:
        if self.rule is None:
            return ZERO
        return calculate_interest_amount(self.balance, self.rule.rate_percent, self.days)


@dataclass(frozen=True)
class MonthlyAccrual:
    """Result of a monthly accrual computation"""
    account: str
    year_month: YearMonth
    interest: Decimal
    interest_line: BalanceEvent
    events: List[BalanceEvent] = field(default_factory=list)
    segments: List[DaySegment] = field(default_factory=list)

    @property
    def lines(self) -> List[BalanceEvent]:
        """Statement lines: the month's events followed by the interest line"""
        return list(self.events) + [self.interest_line]


class InterestAccrualEngine:
    """
    Pure read/compute service; never mutates the ledger or rule timeline
    """

    def __init__(self, day_count_basis: int = 365, precision: int = 2):
        if day_count_basis <= 0:
            raise ValueError("Day-count basis must be positive")
        self.day_count_basis = day_count_basis
        self.precision = precision
        self.logger = get_logger("accrual_ledger.interest")

    def compute_monthly_accrual(
        self,
        account: str,
        year_month: YearMonth,
        transactions: TransactionSource,
        rules: RuleSource
    ) -> MonthlyAccrual:
        """
        Compute the interest accrued by an account during a month

        Running balances are computed over the account's complete history
        before filtering to the month, so balances carried in from earlier
        months are reflected in the month's events.

        Args:
            account: Account identifier
            year_month: Statement month
            transactions: Source of the account's transactions
            rules: Interest rule timeline

        Returns:
            MonthlyAccrual with the rounded interest and the synthetic
            month-end interest line
        """
        all_events = build_balance_events(transactions.transactions_for(account))
        month_events = [e for e in all_events if year_month.contains(e.date)]
        return self.accrue_events(account, year_month, month_events, rules)

    def accrue_events(
        self,
        account: str,
        year_month: YearMonth,
        events: Sequence[BalanceEvent],
        rules: RuleSource
    ) -> MonthlyAccrual:
        """
        Accrue interest over already balance-annotated events of one month

        Raises:
            RuntimeError: If the events are out of (date, id) order or fall
                outside the month; this means a collaborator broke its contract
        """
        events = list(events)
        self._check_events(account, year_month, events)

        segments = self.day_segments(year_month, events, rules)
        total = sum((segment.interest for segment in segments), ZERO)
        interest = round_half_up(total / self.day_count_basis, self.precision)

        closing_balance = events[-1].running_balance if events else ZERO
        interest_line = BalanceEvent(
            account=account,
            date=year_month.last_day,
            id="",
            kind=TransactionKind.INTEREST,
            amount=interest,
            running_balance=closing_balance + interest
        )

        log_action(
            self.logger, "info", f"Interest accrued for {year_month}",
            account=account, action="compute_monthly_accrual",
            extra={
                "month": str(year_month),
                "interest": str(interest),
                "event_count": len(events),
                "segment_count": len(segments)
            }
        )

        return MonthlyAccrual(
            account=account,
            year_month=year_month,
            interest=interest,
            interest_line=interest_line,
            events=events,
            segments=segments
        )

    def day_segments(
        self,
        year_month: YearMonth,
        events: Sequence[BalanceEvent],
        rules: RuleSource
    ) -> List[DaySegment]:
        """
        Partition the month into day-segments

        Accrual opens with the month's first event; each later event closes
        the gap held at the previous event's balance, and the last event's
        balance holds through the end of the month inclusive.
        """
        segments: List[DaySegment] = []
        for previous, current in zip(events, events[1:]):
            segments.extend(self._gap_segments(previous, current, rules))

        if events:
            segments.extend(self._tail_segments(events[-1], year_month, rules))

        for segment in segments:
            if segment.rule is None:
                log_action(
                    self.logger, "debug",
                    f"No interest rule in force from {segment.start.isoformat()}; segment accrues nothing",
                    action="day_segment",
                    extra={"start": segment.start.isoformat(), "days": segment.days}
                )
        return segments

    def _gap_segments(
        self,
        previous: BalanceEvent,
        current: BalanceEvent,
        rules: RuleSource
    ) -> List[DaySegment]:
        """
        Segments between two consecutive events, charged on the earlier balance

        When the rule active on the later event's date took effect after the
        earlier event, the gap is split once at that effective date: the days
        before it go at the immediately preceding rule, the rest at the active
        rule. Any older rule changes inside the gap are not split out.
        """
        balance = previous.running_balance
        rule = rules.active_at(current.date)

        if rule is None or rule.effective_date <= previous.date:
            segments = [DaySegment(
                start=previous.date,
                days=(current.date - previous.date).days,
                balance=balance,
                rule=rule
            )]
        else:
            segments = [
                DaySegment(
                    start=previous.date,
                    days=(rule.effective_date - previous.date).days,
                    balance=balance,
                    rule=rules.preceding_rule_of(rule)
                ),
                DaySegment(
                    start=rule.effective_date,
                    days=(current.date - rule.effective_date).days,
                    balance=balance,
                    rule=rule
                ),
            ]
        return [s for s in segments if s.days > 0]

    def _tail_segments(
        self,
        last: BalanceEvent,
        year_month: YearMonth,
        rules: RuleSource
    ) -> List[DaySegment]:
        """Last event's balance from its own date through month-end, at the rule active on that date"""
        days = (year_month.last_day - last.date).days + 1
        return [DaySegment(
            start=last.date,
            days=days,
            balance=last.running_balance,
            rule=rules.active_at(last.date)
        )]

    @staticmethod
    def _check_events(account: str, year_month: YearMonth, events: List[BalanceEvent]) -> None:
        for event in events:
            if event.account != account:
                raise RuntimeError(f"Event {event.id} belongs to account {event.account}, not {account}")
            if not year_month.contains(event.date):
                raise RuntimeError(f"Event {event.id} dated {event.date.isoformat()} is outside {year_month}")
            if event.kind == TransactionKind.INTEREST:
                raise RuntimeError("Interest lines cannot be accrued on")

        for previous, current in zip(events, events[1:]):
            if (previous.date, previous.id) >= (current.date, current.id):
                raise RuntimeError(
                    f"Balance events out of order: {previous.id} ({previous.date.isoformat()}) "
                    f"before {current.id} ({current.date.isoformat()})"
                )
