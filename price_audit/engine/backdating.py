"""
Backdating guard.

An invoice dated before its baseline's last update must not be compared
against, or allowed to move, that baseline.
"""

from typing import Any

from price_audit.utils.dates import parse_calendar_date


def is_backdated(invoice_date: Any, baseline_last_updated: Any) -> bool:
    """
    True iff the invoice predates the baseline's last update.

    Comparison is by calendar day. Fails open: if either date is missing or
    unparseable the invoice is treated as not backdated.
    """
    invoice_day = parse_calendar_date(invoice_date)
    baseline_day = parse_calendar_date(baseline_last_updated)

    if invoice_day is None or baseline_day is None:
        return False

    return invoice_day < baseline_day
