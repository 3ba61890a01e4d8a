"""
Accrual Ledger

Interactive deposit/withdrawal ledger with date-effective interest rules and
monthly statements carrying a day-weighted interest accrual line. All
financial calculations use Decimal.
"""

__version__ = "1.0.0"
