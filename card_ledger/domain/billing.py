"""Bill cycle dates and the bill status state machine"""

from datetime import date

from card_ledger.domain.exceptions import AlreadySettledError, InvalidInputError, OverPaymentError
from card_ledger.domain.ledger import validate_amount
from card_ledger.domain.models import BillingCycle, BillPaymentOutcome, BillStatus
from card_ledger.utils.date_utils import clamp_day, shift_month


def billing_cycle(closing_day: int, due_day: int, month: int, year: int) -> BillingCycle:
    """
    Compute the cycle dates for a card's bill of (month, year).

    Day markers are clamped to the month's last valid day. When the due day
    falls on or before the closing day, the due date moves to the following
    month (closing on the 25th, due on the 5th of the next month).
    """
    if not 1 <= month <= 12:
        raise InvalidInputError(f"month must be between 1 and 12, got {month}", month=month)

    closing_date = clamp_day(year, month, closing_day)

    prev_year, prev_month = shift_month(year, month, -1)
    period_start = clamp_day(prev_year, prev_month, closing_day)

    due_date = clamp_day(year, month, due_day)
    if due_date <= closing_date:
        next_year, next_month = shift_month(year, month, 1)
        due_date = clamp_day(next_year, next_month, due_day)

    return BillingCycle(
        month=month,
        year=year,
        period_start=period_start,
        closing_date=closing_date,
        due_date=due_date,
    )


def initial_status(due_date: date, total_cents: int, today: date) -> BillStatus:
    """A freshly generated bill is open, or overdue straight away if its due date already passed"""
    if total_cents > 0 and due_date < today:
        return BillStatus.OVERDUE
    return BillStatus.OPEN


def effective_status(status: str, due_date: date, remaining_cents: int, today: date) -> BillStatus:
    """Status as displayed: any unpaid bill past its due date reads as overdue"""
    status = BillStatus(status)
    if status is not BillStatus.PAID and remaining_cents > 0 and due_date < today:
        return BillStatus.OVERDUE
    return status


def apply_bill_payment(total_cents: int, paid_cents: int, amount_cents: int, status: str) -> BillPaymentOutcome:
    """
    Next paid/remaining/status for a bill receiving a payment.

    Transitions: open -> partial -> paid; overdue -> partial/paid.
    """
    validate_amount(amount_cents)
    remaining = total_cents - paid_cents
    if BillStatus(status) is BillStatus.PAID or remaining <= 0:
        raise AlreadySettledError("Bill is already paid")
    if amount_cents > remaining:
        raise OverPaymentError(
            "Payment exceeds the bill's remaining amount",
            remaining_cents=remaining,
            amount_cents=amount_cents,
        )

    new_paid = paid_cents + amount_cents
    new_remaining = total_cents - new_paid
    if new_remaining == 0:
        new_status = BillStatus.PAID
    elif new_remaining < total_cents:
        new_status = BillStatus.PARTIAL
    else:
        new_status = BillStatus(status)

    return BillPaymentOutcome(paid_cents=new_paid, remaining_cents=new_remaining, status=new_status)
