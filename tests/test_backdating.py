"""
Tests for the backdating guard.
"""

from datetime import date, datetime

import pytest

from price_audit.engine.backdating import is_backdated


def test_earlier_invoice_is_backdated():
    assert is_backdated("2024-01-15", "2024-02-01") is True


def test_same_day_is_not_backdated():
    assert is_backdated("2024-02-01", "2024-02-01") is False


def test_later_invoice_is_not_backdated():
    assert is_backdated("2024-03-01", "2024-02-01") is False


@pytest.mark.parametrize("invoice_date, baseline_date", [
    (None, "2024-02-01"),
    ("2024-01-01", None),
    ("", "2024-02-01"),
    ("not a date", "2024-02-01"),
    ("2024-01-01", "31/01/2024"),
    ("2024-13-45", "2024-02-01"),
])
def test_missing_or_malformed_dates_fail_open(invoice_date, baseline_date):
    assert is_backdated(invoice_date, baseline_date) is False


def test_time_of_day_is_ignored():
    """Same calendar day with different times and offsets is never backdated."""
    assert is_backdated("2024-02-01T00:05:00+10:00", "2024-02-01T23:59:59Z") is False
    assert is_backdated("2024-01-31T23:59:59", "2024-02-01T00:00:00") is True


def test_accepts_date_objects():
    assert is_backdated(date(2024, 1, 1), datetime(2024, 1, 2, 8, 30)) is True
    assert is_backdated(datetime(2024, 1, 2, 1, 0), date(2024, 1, 2)) is False


def test_slash_separated_dates():
    assert is_backdated("2024/01/10", "2024-01-11") is True
