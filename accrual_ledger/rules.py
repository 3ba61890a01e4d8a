"""
Interest Rule Timeline Module

Date-effective interest rates. A rule applies from its effective date until
the next rule's effective date; there is at most one rule per date.
"""

from abc import ABC, abstractmethod
from decimal import Decimal
from datetime import date
from dataclasses import dataclass
from typing import Dict, List, Optional, Union

from .amounts import to_decimal, validate_rate
from .storage import StorageInterface
from .logging_config import get_logger, log_action


@dataclass(frozen=True)
class InterestRule:
    """Annual interest rate, in percent, effective from a date"""
    effective_date: date
    id: str
    rate_percent: Decimal

    def __post_init__(self):
        if not isinstance(self.rate_percent, Decimal):
            object.__setattr__(self, 'rate_percent', to_decimal(self.rate_percent))
        validate_rate(self.rate_percent)
        if not self.id or not self.id.strip():
            raise ValueError("Rule id must not be empty.")


class RuleSource(ABC):
    """Read access to the interest rule timeline"""

    @abstractmethod
    def active_at(self, on_date: date) -> Optional[InterestRule]:
        """Rule with the greatest effective date on or before the date"""
        pass

    @abstractmethod
    def preceding_rule_of(self, rule: InterestRule) -> Optional[InterestRule]:
        """Rule immediately before the given rule in effective-date order"""
        pass

    @abstractmethod
    def rules(self) -> List[InterestRule]:
        """All rules ordered by effective date"""
        pass


class RuleTimeline(RuleSource):
    """Stores interest rules keyed by effective date"""

    def __init__(self, storage: StorageInterface):
        self.storage = storage
        self.table_name = "interest_rules"
        self.logger = get_logger("accrual_ledger.rules")

    def upsert(self, rule: InterestRule) -> None:
        """
        Insert a rule, replacing any rule with the same effective date

        Raises:
            ValueError: If the rate is outside (0, 100]
        """
        validate_rate(rule.rate_percent)

        record_id = rule.effective_date.isoformat()
        with self.storage.atomic():
            replaced = self.storage.load(self.table_name, record_id)
            self.storage.save(self.table_name, record_id, self._rule_to_dict(rule))

        log_action(
            self.logger, "info", f"Interest rule defined: {rule.id}",
            action="upsert_rule", resource=f"rule:{rule.id}",
            extra={
                "effective_date": rule.effective_date.isoformat(),
                "rate_percent": str(rule.rate_percent),
                "replaced": replaced['id'] if replaced else None
            }
        )

    def define(
        self,
        effective_date: date,
        rule_id: str,
        rate_percent: Union[Decimal, int, str]
    ) -> InterestRule:
        """Build and upsert a rule in one step"""
        rule = InterestRule(
            effective_date=effective_date,
            id=rule_id,
            rate_percent=to_decimal(rate_percent)
        )
        self.upsert(rule)
        return rule

    def rules(self) -> List[InterestRule]:
        """All rules ordered by effective date"""
        rules = [self._rule_from_dict(data) for data in self.storage.load_all(self.table_name)]
        rules.sort(key=lambda r: r.effective_date)
        return rules

    def rule_on(self, effective_date: date) -> Optional[InterestRule]:
        """Rule whose effective date is exactly the given date"""
        data = self.storage.load(self.table_name, effective_date.isoformat())
        if data:
            return self._rule_from_dict(data)
        return None

    def active_at(self, on_date: date) -> Optional[InterestRule]:
        """Rule with the greatest effective date on or before the date"""
        active = None
        for rule in self.rules():
            if rule.effective_date > on_date:
                break
            active = rule
        return active

    def preceding_rule_of(self, rule: InterestRule) -> Optional[InterestRule]:
        """Rule immediately before the given rule in effective-date order"""
        preceding = None
        for candidate in self.rules():
            if candidate.effective_date >= rule.effective_date:
                break
            preceding = candidate
        return preceding

    def _rule_to_dict(self, rule: InterestRule) -> Dict:
        """Convert rule to dictionary"""
        return {
            'id': rule.id,
            'effective_date': rule.effective_date.isoformat(),
            'rate_percent': str(rule.rate_percent)
        }

    def _rule_from_dict(self, data: Dict) -> InterestRule:
        """Convert dictionary to rule"""
        return InterestRule(
            effective_date=date.fromisoformat(data['effective_date']),
            id=data['id'],
            rate_percent=Decimal(data['rate_percent'])
        )
