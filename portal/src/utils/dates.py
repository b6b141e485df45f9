"""Date parsing and formatting for exam windows and documents.

Exam dates are stored as ``"dd MMMM yyyy"`` strings (``"05 April 2025"``).
Documents print them with an unpadded day (``"5 April 2025"``). Held dates
are ``"<Month> <YYYY>"`` with the full English month name.
"""

import calendar
import re
from datetime import date, datetime
from typing import Optional

MONTH_NAMES = list(calendar.month_name)[1:]

HELD_DATE_PATTERN = re.compile(r"^(" + "|".join(MONTH_NAMES) + r") \d{4}$")
ISO_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")

BLANK = "__________"


def is_valid_held_date(value: str) -> bool:
    """Check a held date reads ``Month YYYY`` (e.g. ``January 2026``)."""
    return bool(HELD_DATE_PATTERN.match(value or ""))


def is_iso_date(value: str) -> bool:
    """Check a value is a real calendar date written as ``YYYY-MM-DD``."""
    if not ISO_DATE_PATTERN.match(value or ""):
        return False
    try:
        date.fromisoformat(value)
    except ValueError:
        return False
    return True


def parse_exam_date(value: Optional[str]) -> Optional[date]:
    """
    Parse an exam date.

    Accepts ISO ``YYYY-MM-DD``, ``dd MMMM yyyy`` and ``d MMMM yyyy``.
    Month names must be English and are matched case-insensitively.

    Args:
        value: Raw date string

    Returns:
        Parsed date, or None when the value is empty or unparseable
    """
    if not value:
        return None

    text = " ".join(str(value).split())
    if is_iso_date(text):
        return date.fromisoformat(text)

    # strptime %B is locale-dependent, match month names explicitly
    parts = text.split(" ")
    if len(parts) != 3:
        return None
    day, month_name, year = parts
    months = {name.lower(): index for index, name in enumerate(MONTH_NAMES, start=1)}
    month = months.get(month_name.lower())
    if month is None or not day.isdigit() or not year.isdigit() or len(year) != 4:
        return None
    try:
        return date(int(year), month, int(day))
    except ValueError:
        return None


def format_stored_date(value: date) -> str:
    """Format a date for storage: ``05 April 2025``."""
    return f"{value.day:02d} {MONTH_NAMES[value.month - 1]} {value.year}"


def format_long_date(value: Optional[str]) -> str:
    """Format a stored or ISO date for display: ``5 April 2025``."""
    parsed = parse_exam_date(value)
    if parsed is None:
        return BLANK
    return f"{parsed.day} {MONTH_NAMES[parsed.month - 1]} {parsed.year}"


def today_iso() -> str:
    """Today's date as ``YYYY-MM-DD`` (server local time)."""
    return datetime.now().date().isoformat()
