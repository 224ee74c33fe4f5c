"""
Helpers for working with FileMaker field values.

FileMaker returns numbers, booleans, dates and times as text formatted the
way the database is configured. These helpers convert between those strings
and Python values.
"""

import re
from datetime import date, datetime, time

_FIND_OPERATORS = re.compile(r'([\\=!<≤>≥…?@#*"~]|//)')
_NUMBER_PARTS = re.compile(r"^[^\d\-.]*(-?)([^.]*)(\.?)(.*)$", re.DOTALL)
_NON_DIGITS = re.compile(r"\D+")


def quote(value: str) -> str:
    """Escape find operators so a value is matched literally in a find request."""
    return _FIND_OPERATORS.sub(r"\\\1", value)


def parse_number(value: str | int | float) -> float | int | None:
    """
    Parse a FileMaker value as a number.

    Works the way FileMaker interprets text as a number: everything but the
    first minus sign, the first decimal point and digits is ignored. An empty
    string is ``None``.
    """
    if isinstance(value, (int, float)):
        return value

    sign, integer, point, fraction = _NUMBER_PARTS.match(value).groups()
    value = sign + _NON_DIGITS.sub("", integer) + point + _NON_DIGITS.sub("", fraction)

    if value == "":
        return None
    if value == "-":
        return 0
    if value.startswith("."):
        value = f"0{value}"
    if value.endswith("."):
        value = f"{value}0"
    return float(value)


def parse_boolean(value: str | int | float) -> bool:
    """Parse a FileMaker value as a boolean. Any non-zero, non-empty value is true."""
    if isinstance(value, (int, float)):
        return value != 0
    return value not in ("0", "")


class DateUtil:
    """Parse and format dates, times and timestamps in a database's formats."""

    def __init__(
        self,
        date_format: str = "%m/%d/%Y",
        time_format: str = "%H:%M:%S",
        timestamp_format: str = "%m/%d/%Y %H:%M:%S",
    ):
        self.date_format = date_format
        self.time_format = time_format
        self.timestamp_format = timestamp_format

    def parse_date(self, value: str) -> date:
        return datetime.strptime(value, self.date_format).date()

    def parse_time(self, value: str) -> time:
        return datetime.strptime(value, self.time_format).time()

    def parse_timestamp(self, value: str) -> datetime:
        return datetime.strptime(value, self.timestamp_format)

    def format_date(self, value: date) -> str:
        return value.strftime(self.date_format)

    def format_time(self, value: time) -> str:
        return value.strftime(self.time_format)

    def format_timestamp(self, value: datetime) -> str:
        return value.strftime(self.timestamp_format)
