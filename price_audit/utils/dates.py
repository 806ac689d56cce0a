"""
Calendar-date helpers.

Invoice and baseline dates arrive as loosely formatted strings from the
extraction service and from older snapshots. Everything here works at day
granularity: any time-of-day or timezone suffix is cut off before parsing, so
an invoice stamped late in the evening in one timezone never lands on a
different calendar day than the same document read elsewhere.
"""

from datetime import date, datetime
from typing import Any, Optional


DATE_FORMATS = ("%Y-%m-%d", "%Y/%m/%d")


def parse_calendar_date(value: Any) -> Optional[date]:
    """
    Parse a calendar date, returning None when the value is missing or malformed.

    Accepts ``date``/``datetime`` objects and strings such as ``2024-01-15``,
    ``2024/01/15`` or ``2024-01-15T23:30:00+10:00``.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None

    text = value.strip()[:10]
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None


def to_iso_date(value: Any) -> Optional[str]:
    """Normalise a date-like value to ``YYYY-MM-DD``, or None if unparseable."""
    parsed = parse_calendar_date(value)
    return parsed.isoformat() if parsed else None


def today_iso() -> str:
    return date.today().isoformat()
