"""Read-side projections: limit usage and installment plan summaries"""

from datetime import date
from typing import Sequence

from card_ledger.domain.installments import derive_plan_status
from card_ledger.domain.models import CardSummary, Installment, ItemStatus, PlanSummary, UsageLevel

# Usage thresholds in percent of the credit limit
NOTICE_THRESHOLD = 50.0
WARNING_THRESHOLD = 75.0
CRITICAL_THRESHOLD = 90.0


def usage_percent(used_cents: int, credit_limit_cents: int) -> float:
    if credit_limit_cents <= 0:
        return 100.0
    return round(used_cents * 100 / credit_limit_cents, 2)


def usage_level(percent: float) -> UsageLevel:
    if percent >= CRITICAL_THRESHOLD:
        return UsageLevel.CRITICAL
    if percent >= WARNING_THRESHOLD:
        return UsageLevel.WARNING
    if percent >= NOTICE_THRESHOLD:
        return UsageLevel.NOTICE
    return UsageLevel.NORMAL


def summarize_card(card_id: str, credit_limit_cents: int, used_cents: int) -> CardSummary:
    """
    Limit usage for a card.

    available_cents is floored at zero: after a limit decrease the used
    amount may legitimately sit above the new limit.
    """
    percent = usage_percent(used_cents, credit_limit_cents)
    return CardSummary(
        card_id=card_id,
        credit_limit_cents=credit_limit_cents,
        used_cents=used_cents,
        available_cents=max(credit_limit_cents - used_cents, 0),
        usage_percent=percent,
        usage_level=usage_level(percent),
    )


def summarize_plan(stored_status: str, items: Sequence[Installment], item_statuses: Sequence[str]) -> PlanSummary:
    """Aggregate a plan's items; items and item_statuses are parallel sequences"""
    paid = [item for item, status in zip(items, item_statuses) if ItemStatus(status) is ItemStatus.PAID]
    pending = [item for item, status in zip(items, item_statuses) if ItemStatus(status) is ItemStatus.PENDING]

    next_due: date | None = min((item.due_date for item in pending), default=None)

    return PlanSummary(
        status=derive_plan_status(stored_status, item_statuses),
        paid_count=len(paid),
        pending_count=len(pending),
        paid_cents=sum(item.amount_cents for item in paid),
        remaining_cents=sum(item.amount_cents for item in pending),
        next_due_date=next_due,
    )
