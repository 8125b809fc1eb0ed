"""Installment plan generation for multi-month card purchases"""

from datetime import date, timedelta
from typing import Iterable, List

from card_ledger.domain.exceptions import InvalidAmountError
from card_ledger.domain.ledger import validate_amount
from card_ledger.domain.models import Installment, ItemDisplayStatus, ItemStatus, PlanStatus
from card_ledger.utils.date_utils import add_months


def generate_installment_plan(
    total_cents: int,
    num_installments: int,
    first_date: date,
    max_installments: int = 24,
) -> List[Installment]:
    """
    Split a purchase into monthly installments.

    Requirements:
    - 1..max_installments equal slices
    - One calendar month apart, clamped to month end (Jan 31 -> Feb 28 -> Mar 31)
    - Last installment absorbs rounding remainder so the sum equals the total exactly

    Example:
        $100.00 over 3 -> [$33.33, $33.33, $33.34]
        10000 cents // 3 = 3333 base, remainder 1
        Last installment: 3333 + 1 = 3334
    """
    validate_amount(total_cents, field="total_cents")
    if isinstance(num_installments, bool) or not isinstance(num_installments, int):
        raise InvalidAmountError("installments_count must be an integer")
    if not 1 <= num_installments <= max_installments:
        raise InvalidAmountError(
            f"installments_count must be between 1 and {max_installments}",
            installments_count=num_installments,
        )

    base_amount = total_cents // num_installments
    remainder = total_cents % num_installments

    installments = []
    for i in range(num_installments):
        # Last installment absorbs remainder to ensure exact total
        amount = base_amount + (remainder if i == num_installments - 1 else 0)
        installments.append(
            Installment(
                installment_number=i + 1,
                due_date=add_months(first_date, i),
                amount_cents=amount,
            )
        )

    return installments


def derive_plan_status(stored_status: str, item_statuses: Iterable[str]) -> PlanStatus:
    """Plan status is recomputed from its items: completed iff every item is paid"""
    if PlanStatus(stored_status) is PlanStatus.CANCELLED:
        return PlanStatus.CANCELLED
    statuses = list(item_statuses)
    if statuses and all(ItemStatus(s) is ItemStatus.PAID for s in statuses):
        return PlanStatus.COMPLETED
    return PlanStatus.ACTIVE


def item_display_status(status: str, due_date: date, today: date, due_soon_days: int = 7) -> ItemDisplayStatus:
    if ItemStatus(status) is ItemStatus.PAID:
        return ItemDisplayStatus.PAID
    if due_date < today:
        return ItemDisplayStatus.OVERDUE
    if due_date <= today + timedelta(days=due_soon_days):
        return ItemDisplayStatus.DUE_SOON
    return ItemDisplayStatus.ON_TIME
