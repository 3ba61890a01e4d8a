"""
Decimal Amount Helpers

Parsing, rounding and formatting for monetary amounts and percentage rates.
NEVER uses float for monetary values.
"""

from decimal import Decimal, ROUND_HALF_UP, InvalidOperation, getcontext
from typing import Union
import re

# Set global decimal context for financial precision
getcontext().prec = 28

CENT = Decimal('0.01')
ZERO = Decimal('0')
MAX_RATE = Decimal('100')

_NUMBER_PATTERN = re.compile(r'^[+-]?(\d+(\.\d*)?|\.\d+)$')


def to_decimal(value: Union[Decimal, int, str]) -> Decimal:
    """Convert an int, str or Decimal to Decimal without passing through float"""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        raise TypeError("Use Decimal or str for amounts, not float")
    return Decimal(str(value))


def parse_decimal(value: str) -> Decimal:
    """
    Parse a plain decimal number typed by a user

    Args:
        value: String such as "100", "100.50" or ".5"

    Returns:
        Decimal value

    Raises:
        ValueError: If the string is not a plain decimal number
    """
    if not value or not isinstance(value, str):
        raise ValueError("Value must be a non-empty string")

    clean_value = value.strip()
    if not _NUMBER_PATTERN.match(clean_value):
        raise ValueError(f"Cannot convert '{value}' to Decimal")

    try:
        return Decimal(clean_value)
    except InvalidOperation:
        raise ValueError(f"Cannot convert '{value}' to Decimal")


def parse_amount(value: str) -> Decimal:
    """Parse a strictly positive transaction amount with at most 2 decimal places"""
    try:
        amount = parse_decimal(value)
    except ValueError:
        raise ValueError("Invalid amount! Please enter a positive number.")

    if amount <= ZERO:
        raise ValueError("Invalid amount! Please enter a positive number.")
    if amount != amount.quantize(CENT):
        raise ValueError("Invalid amount! Up to 2 decimal places are allowed.")
    return amount


def parse_rate(value: str) -> Decimal:
    """Parse an interest rate percentage in (0, 100]"""
    try:
        rate = parse_decimal(value)
    except ValueError:
        raise ValueError("Interest rate should be greater than 0 and less than or equal to 100.")

    validate_rate(rate)
    return rate


def validate_rate(rate: Decimal) -> None:
    """Raise ValueError unless 0 < rate <= 100"""
    if rate <= ZERO or rate > MAX_RATE:
        raise ValueError("Interest rate should be greater than 0 and less than or equal to 100.")


def round_half_up(value: Decimal, places: int = 2) -> Decimal:
    """Round to a fixed number of decimal places using half-up rounding"""
    return value.quantize(Decimal('0.1') ** places, rounding=ROUND_HALF_UP)


def format_amount(value: Decimal, places: int = 2) -> str:
    """Format for display with a fixed number of decimal places"""
    return f"{round_half_up(value, places):.{places}f}"
