"""Date parsing utilities."""

import re
from datetime import date, datetime, timedelta
from typing import Any

from dateutil import parser as date_parser

MONTH_ABBREVIATIONS = {
    "jan": 1,
    "feb": 2,
    "mar": 3,
    "apr": 4,
    "may": 5,
    "jun": 6,
    "jul": 7,
    "aug": 8,
    "sep": 9,
    "oct": 10,
    "nov": 11,
    "dec": 12,
}

# Format tag -> (pattern, order of the captured day/month/year groups)
STATEMENT_DATE_FORMATS = {
    "DD/MM/YYYY": (re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})"), ("day", "month", "year")),
    "DD-MM-YYYY": (re.compile(r"^(\d{1,2})-(\d{1,2})-(\d{4})"), ("day", "month", "year")),
    "YYYY-MM-DD": (re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})"), ("year", "month", "day")),
    "DD-MMM-YYYY": (
        re.compile(r"^(\d{1,2})-([A-Za-z]{3})-(\d{4})"),
        ("day", "month", "year"),
    ),
}


def parse_date(date_str: str) -> date:
    """Parse a date string typed by a user into a date object.

    Supports absolute dates ("2024-01-15", "15 January 2024") and the
    relative words "today", "yesterday" and "tomorrow".

    Args:
        date_str: Date string in various formats

    Returns:
        Date object

    Raises:
        ValueError: If date string cannot be parsed
    """
    date_str = date_str.strip().lower()
    today = date.today()

    relative_dates = {
        "today": today,
        "yesterday": today - timedelta(days=1),
        "tomorrow": today + timedelta(days=1),
    }

    if date_str in relative_dates:
        return relative_dates[date_str]

    try:
        dt = date_parser.parse(date_str)
        return dt.date()
    except (ValueError, TypeError, OverflowError) as e:
        raise ValueError(f"Could not parse date '{date_str}': {e}")


def parse_statement_date(value: Any, date_format: str) -> date:
    """Parse a statement cell into a date using the bank profile's format tag.

    Supported tags are DD/MM/YYYY, DD-MM-YYYY, YYYY-MM-DD and DD-MMM-YYYY
    (three-letter month, any case). Trailing time components are ignored.
    Cells that are already dates pass through. Unknown tags fall back to
    day-first free-form parsing.

    Args:
        value: Cell value from the statement row
        date_format: Format tag from the bank profile

    Returns:
        Date object

    Raises:
        ValueError: If the value cannot be parsed with the given format
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if value is None:
        raise ValueError("Empty date value")

    text = str(value).strip().strip('"').strip()
    if not text:
        raise ValueError("Empty date value")

    layout = STATEMENT_DATE_FORMATS.get(date_format)
    if layout is None:
        try:
            return date_parser.parse(text, dayfirst=True).date()
        except (ValueError, TypeError, OverflowError) as e:
            raise ValueError(f"Could not parse date '{text}': {e}")

    pattern, order = layout
    match = pattern.match(text)
    if match is None:
        raise ValueError(f"Date '{text}' does not match format {date_format}")

    parts = dict(zip(order, match.groups()))
    month_part = parts["month"]
    if month_part.isdigit():
        month = int(month_part)
    else:
        month = MONTH_ABBREVIATIONS.get(month_part.lower())
        if month is None:
            raise ValueError(f"Unknown month abbreviation '{month_part}'")

    try:
        return date(int(parts["year"]), month, int(parts["day"]))
    except ValueError as e:
        raise ValueError(f"Invalid date '{text}': {e}")
