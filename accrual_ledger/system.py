"""
Ledger System Wiring

One explicitly owned ledger and rule timeline, with the accrual engine and
statement builder that read them. Every surface (console, API) receives a
LedgerSystem instead of reaching for module-level state.
"""

from typing import Optional

from .config import LedgerConfig, get_config
from .interest import InterestAccrualEngine
from .ledger import Ledger
from .rules import RuleTimeline
from .statements import StatementBuilder
from .storage import InMemoryStorage, StorageInterface


class LedgerSystem:
    """Accrual ledger with all components initialized"""

    def __init__(
        self,
        config: Optional[LedgerConfig] = None,
        storage: Optional[StorageInterface] = None
    ):
        self.config = config or get_config()
        self.storage = storage or InMemoryStorage()

        self.ledger = Ledger(self.storage)
        self.rules = RuleTimeline(self.storage)
        self.engine = InterestAccrualEngine(
            day_count_basis=self.config.day_count_basis,
            precision=self.config.interest_precision
        )
        self.statements = StatementBuilder(self.ledger, self.rules, self.engine)
