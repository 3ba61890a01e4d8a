"""
Calendar Period Helpers

Statement months and the compact date formats used for input and display.
"""

from dataclasses import dataclass
from datetime import date, datetime
import calendar


DATE_FORMAT = "%Y%m%d"
MONTH_FORMAT = "%Y%m"


def parse_date(value: str) -> date:
    """Parse a YYYYMMDD date"""
    try:
        if len(value) != 8 or not value.isdigit():
            raise ValueError(value)
        return datetime.strptime(value, DATE_FORMAT).date()
    except (TypeError, ValueError):
        raise ValueError("Invalid date format! Use YYYYMMDD.")


def format_date(value: date) -> str:
    """Format a date as YYYYMMDD"""
    return value.strftime(DATE_FORMAT)


@dataclass(frozen=True, order=True)
class YearMonth:
    """A calendar month"""
    year: int
    month: int

    def __post_init__(self):
        if not 1 <= self.month <= 12:
            raise ValueError(f"Month must be between 1 and 12, got {self.month}")
        if not 1 <= self.year <= 9999:
            raise ValueError(f"Year must be between 1 and 9999, got {self.year}")

    @classmethod
    def parse(cls, value: str) -> 'YearMonth':
        """Parse a YYYYMM string"""
        if not isinstance(value, str) or len(value) != 6 or not value.isdigit():
            raise ValueError("Invalid month format! Use YYYYMM.")
        try:
            return cls(int(value[:4]), int(value[4:]))
        except ValueError:
            raise ValueError("Invalid month format! Use YYYYMM.")

    @classmethod
    def of(cls, value: date) -> 'YearMonth':
        """Month containing the given date"""
        return cls(value.year, value.month)

    @property
    def first_day(self) -> date:
        return date(self.year, self.month, 1)

    @property
    def last_day(self) -> date:
        return date(self.year, self.month, calendar.monthrange(self.year, self.month)[1])

    @property
    def days(self) -> int:
        return calendar.monthrange(self.year, self.month)[1]

    def contains(self, value: date) -> bool:
        """Check whether a date falls inside this month"""
        return value.year == self.year and value.month == self.month

    def __str__(self) -> str:
        return f"{self.year:04d}{self.month:02d}"
