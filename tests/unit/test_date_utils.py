"""Unit tests for calendar helpers"""

from datetime import date
from card_ledger.utils.date_utils import add_months, clamp_day, last_day_of_month, shift_month


def test_clamp_day_february():
    """closing_day=31 in February lands on the last day of February"""
    assert clamp_day(2025, 2, 31) == date(2025, 2, 28)
    assert clamp_day(2024, 2, 31) == date(2024, 2, 29)


def test_clamp_day_keeps_valid_day():
    assert clamp_day(2025, 4, 15) == date(2025, 4, 15)
    assert clamp_day(2025, 4, 31) == date(2025, 4, 30)


def test_last_day_of_month():
    assert last_day_of_month(2025, 1) == 31
    assert last_day_of_month(2025, 6) == 30


def test_shift_month_across_years():
    assert shift_month(2025, 12, 1) == (2026, 1)
    assert shift_month(2025, 1, -1) == (2024, 12)
    assert shift_month(2025, 3, 23) == (2027, 2)


def test_add_months_keeps_anchor_day():
    """Jan 31 -> Feb 28 -> Mar 31: clamping does not drift the anchor"""
    start = date(2025, 1, 31)
    assert add_months(start, 1) == date(2025, 2, 28)
    assert add_months(start, 2) == date(2025, 3, 31)
    assert add_months(start, 3) == date(2025, 4, 30)
