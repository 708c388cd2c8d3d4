"""
Date parsing and pattern formatting for the format transformation.

Patterns use the token style stored in templates (MM/dd/yyyy, yyyy-MM-dd,
MMMM d, yyyy). A pattern containing "%" is treated as a strftime pattern.
"""

import calendar
import re
from datetime import date, datetime
from typing import Any, Callable, Dict, Optional

from dateutil import parser as date_parser


_TOKEN_PATTERN = re.compile(r"'[^']*'|yyyy|yy|MMMM|MMM|MM|M|dd|d|EEEE|EEE|HH|H|hh|h|mm|ss|a")


def _hour12(value: datetime) -> int:
    return value.hour % 12 or 12


_TOKEN_RENDERERS: Dict[str, Callable[[datetime], str]] = {
    "yyyy": lambda v: f"{v.year:04d}",
    "yy": lambda v: f"{v.year % 100:02d}",
    "MMMM": lambda v: calendar.month_name[v.month],
    "MMM": lambda v: calendar.month_abbr[v.month],
    "MM": lambda v: f"{v.month:02d}",
    "M": lambda v: str(v.month),
    "dd": lambda v: f"{v.day:02d}",
    "d": lambda v: str(v.day),
    "EEEE": lambda v: calendar.day_name[v.weekday()],
    "EEE": lambda v: calendar.day_abbr[v.weekday()],
    "HH": lambda v: f"{v.hour:02d}",
    "H": lambda v: str(v.hour),
    "hh": lambda v: f"{_hour12(v):02d}",
    "h": lambda v: str(_hour12(v)),
    "mm": lambda v: f"{v.minute:02d}",
    "ss": lambda v: f"{v.second:02d}",
    "a": lambda v: "AM" if v.hour < 12 else "PM",
}


def parse_date(value: Any) -> Optional[datetime]:
    """
    Parse a value into a datetime.

    Numbers are read as epoch milliseconds, strings go through dateutil.

    Returns:
        datetime, or None when the value is not a date
    """
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value / 1000)
        except (OverflowError, OSError, ValueError):
            return None

    text = str(value).strip() if value is not None else ""
    if not text:
        return None

    try:
        return date_parser.parse(text)
    except (ValueError, OverflowError):
        return None


def format_date_pattern(value: datetime, pattern: str) -> str:
    """
    Render a datetime with a token pattern.

    Example:
        >>> format_date_pattern(datetime(2024, 6, 5), "MM/dd/yyyy")
        "06/05/2024"
    """
    if "%" in pattern:
        return value.strftime(pattern)

    def render(match: re.Match) -> str:
        token = match.group(0)
        if token.startswith("'"):
            return token[1:-1]
        return _TOKEN_RENDERERS[token](value)

    return _TOKEN_PATTERN.sub(render, pattern)
