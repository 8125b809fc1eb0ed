"""Unit tests for installment plan generation"""

import pytest
from datetime import date
from card_ledger.domain.exceptions import InvalidAmountError
from card_ledger.domain.installments import derive_plan_status, generate_installment_plan, item_display_status
from card_ledger.domain.models import ItemDisplayStatus, PlanStatus


def test_generate_installment_plan_equal_split():
    """$1200 over 12 -> twelve items of $100"""
    amount = 120000
    installments = generate_installment_plan(amount, 12, date(2025, 3, 10))

    assert len(installments) == 12
    assert all(inst.amount_cents == 10000 for inst in installments)
    assert sum(inst.amount_cents for inst in installments) == amount


def test_generate_installment_plan_rounding():
    """Test last installment absorbs remainder"""
    amount = 10000  # $100.00
    installments = generate_installment_plan(amount, 3, date(2025, 3, 10))

    assert [inst.amount_cents for inst in installments] == [3333, 3333, 3334]
    assert sum(inst.amount_cents for inst in installments) == amount


@pytest.mark.parametrize("amount,count", [(1, 24), (99999, 7), (100, 3), (123457, 11)])
def test_generate_installment_plan_sum_is_exact(amount, count):
    installments = generate_installment_plan(amount, count, date(2025, 1, 1))
    assert sum(inst.amount_cents for inst in installments) == amount
    assert [inst.installment_number for inst in installments] == list(range(1, count + 1))


def test_generate_installment_plan_monthly_dates():
    """Due dates one calendar month apart, clamped at month end"""
    installments = generate_installment_plan(40000, 4, date(2025, 1, 31))

    assert [inst.due_date for inst in installments] == [
        date(2025, 1, 31),
        date(2025, 2, 28),
        date(2025, 3, 31),
        date(2025, 4, 30),
    ]


def test_generate_installment_plan_single_installment():
    installments = generate_installment_plan(5000, 1, date(2025, 5, 1))
    assert len(installments) == 1
    assert installments[0].amount_cents == 5000


@pytest.mark.parametrize("count", [0, 25, -1])
def test_generate_installment_plan_count_bounds(count):
    with pytest.raises(InvalidAmountError):
        generate_installment_plan(10000, count, date(2025, 3, 10))


def test_generate_installment_plan_zero_amount():
    with pytest.raises(InvalidAmountError):
        generate_installment_plan(0, 3, date(2025, 3, 10))


def test_derive_plan_status():
    assert derive_plan_status("active", ["paid", "paid"]) is PlanStatus.COMPLETED
    assert derive_plan_status("active", ["paid", "pending"]) is PlanStatus.ACTIVE
    assert derive_plan_status("cancelled", ["paid", "paid"]) is PlanStatus.CANCELLED


def test_item_display_status():
    today = date(2025, 3, 10)
    assert item_display_status("paid", date(2025, 1, 1), today) is ItemDisplayStatus.PAID
    assert item_display_status("pending", date(2025, 3, 9), today) is ItemDisplayStatus.OVERDUE
    assert item_display_status("pending", date(2025, 3, 17), today) is ItemDisplayStatus.DUE_SOON
    assert item_display_status("pending", date(2025, 3, 18), today) is ItemDisplayStatus.ON_TIME
