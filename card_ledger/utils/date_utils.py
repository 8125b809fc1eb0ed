"""Calendar helpers for day-of-month billing markers"""

import calendar
from datetime import date


def last_day_of_month(year: int, month: int) -> int:
    """Number of days in the given month"""
    return calendar.monthrange(year, month)[1]


def clamp_day(year: int, month: int, day: int) -> date:
    """Build a date, clamping day to the last valid day of that month (31 in Feb -> 28/29)"""
    return date(year, month, min(day, last_day_of_month(year, month)))


def shift_month(year: int, month: int, months: int) -> tuple[int, int]:
    """Move a (year, month) pair by a number of months"""
    index = year * 12 + (month - 1) + months
    return index // 12, index % 12 + 1


def add_months(from_date: date, months: int) -> date:
    """
    Add calendar months, keeping the original day where the target month allows.

    Jan 31 + 1 -> Feb 28 (or 29), Jan 31 + 2 -> Mar 31.
    """
    year, month = shift_month(from_date.year, from_date.month, months)
    return clamp_day(year, month, from_date.day)
