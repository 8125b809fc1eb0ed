"""Unit tests for bill cycle dates and status transitions"""

import pytest
from datetime import date
from card_ledger.domain.billing import apply_bill_payment, billing_cycle, effective_status, initial_status
from card_ledger.domain.exceptions import AlreadySettledError, InvalidInputError, OverPaymentError
from card_ledger.domain.models import BillStatus


def test_billing_cycle_due_next_month():
    """Closing 25th, due 5th: due date falls in the month after closing"""
    cycle = billing_cycle(closing_day=25, due_day=5, month=3, year=2025)
    assert cycle.period_start == date(2025, 2, 25)
    assert cycle.closing_date == date(2025, 3, 25)
    assert cycle.due_date == date(2025, 4, 5)


def test_billing_cycle_due_same_month():
    cycle = billing_cycle(closing_day=3, due_day=10, month=6, year=2025)
    assert cycle.closing_date == date(2025, 6, 3)
    assert cycle.due_date == date(2025, 6, 10)


def test_billing_cycle_clamps_short_months():
    """closing_day=31 in February -> Feb 28; previous closing Jan 31"""
    cycle = billing_cycle(closing_day=31, due_day=10, month=2, year=2025)
    assert cycle.closing_date == date(2025, 2, 28)
    assert cycle.period_start == date(2025, 1, 31)
    assert cycle.due_date == date(2025, 3, 10)


def test_billing_cycle_january_wraps_year():
    cycle = billing_cycle(closing_day=25, due_day=5, month=1, year=2025)
    assert cycle.period_start == date(2024, 12, 25)


@pytest.mark.parametrize("month", [0, 13])
def test_billing_cycle_rejects_bad_month(month: int):
    with pytest.raises(InvalidInputError):
        billing_cycle(closing_day=25, due_day=5, month=month, year=2025)


def test_initial_status():
    assert initial_status(date(2025, 4, 5), 50000, today=date(2025, 3, 10)) is BillStatus.OPEN
    assert initial_status(date(2025, 3, 5), 50000, today=date(2025, 3, 10)) is BillStatus.OVERDUE
    assert initial_status(date(2025, 3, 5), 0, today=date(2025, 3, 10)) is BillStatus.OPEN


def test_full_payment_marks_paid():
    outcome = apply_bill_payment(total_cents=50000, paid_cents=0, amount_cents=50000, status="open")
    assert outcome.status is BillStatus.PAID
    assert outcome.remaining_cents == 0
    assert outcome.paid_cents == 50000


def test_partial_then_full():
    first = apply_bill_payment(50000, 0, 20000, "open")
    assert first.status is BillStatus.PARTIAL
    assert first.remaining_cents == 30000

    second = apply_bill_payment(50000, first.paid_cents, 30000, first.status.value)
    assert second.status is BillStatus.PAID
    assert second.remaining_cents == 0


def test_overdue_bill_moves_to_partial_on_payment():
    """Overdue is not a dead end"""
    outcome = apply_bill_payment(50000, 0, 10000, "overdue")
    assert outcome.status is BillStatus.PARTIAL


def test_overpayment_rejected():
    with pytest.raises(OverPaymentError):
        apply_bill_payment(50000, 20000, 30001, "partial")


def test_paid_bill_rejects_further_payment():
    with pytest.raises(AlreadySettledError):
        apply_bill_payment(50000, 50000, 100, "paid")


def test_effective_status_derives_overdue():
    today = date(2025, 4, 10)
    assert effective_status("open", date(2025, 4, 5), 50000, today) is BillStatus.OVERDUE
    assert effective_status("partial", date(2025, 4, 5), 100, today) is BillStatus.OVERDUE
    assert effective_status("paid", date(2025, 4, 5), 0, today) is BillStatus.PAID
    assert effective_status("open", date(2025, 4, 15), 50000, today) is BillStatus.OPEN
