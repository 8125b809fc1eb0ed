"""ORM entity -> response schema conversion"""

from card_ledger.api.v1.schemas import BillSchema, CardResponse, InstallmentItemSchema, MovementSchema, PlanResponse
from card_ledger.domain.projections import summarize_card
from card_ledger.infrastructure.database.models import Bill, Card, InstallmentItem, InstallmentPlan, LimitMovement
from card_ledger.services.bills import BillManager
from card_ledger.services.installments import InstallmentScheduler


def card_response(card: Card) -> CardResponse:
    summary = summarize_card(str(card.id), card.credit_limit_cents, card.used_cents)
    return CardResponse(
        card_id=str(card.id),
        name=card.name,
        last_four_digits=card.last_four_digits,
        credit_limit_cents=card.credit_limit_cents,
        used_cents=card.used_cents,
        available_cents=summary.available_cents,
        usage_percent=summary.usage_percent,
        usage_level=summary.usage_level.value,
        closing_day=card.closing_day,
        due_day=card.due_day,
    )


def movement_schema(movement: LimitMovement) -> MovementSchema:
    return MovementSchema(
        movement_id=str(movement.id),
        sequence=movement.sequence,
        movement_type=movement.movement_type,
        amount_cents=movement.amount_cents,
        previous_used_cents=movement.previous_used_cents,
        new_used_cents=movement.new_used_cents,
        previous_limit_cents=movement.previous_limit_cents,
        new_limit_cents=movement.new_limit_cents,
        description=movement.description,
        created_at=movement.created_at,
    )


def bill_schema(bill: Bill, manager: BillManager) -> BillSchema:
    return BillSchema(
        bill_id=str(bill.id),
        card_id=str(bill.card_id),
        bill_month=bill.bill_month,
        bill_year=bill.bill_year,
        closing_date=bill.closing_date,
        due_date=bill.due_date,
        total_cents=bill.total_cents,
        paid_cents=bill.paid_cents,
        remaining_cents=bill.remaining_cents,
        status=manager.display_status(bill).value,
    )


def item_schema(item: InstallmentItem, scheduler: InstallmentScheduler) -> InstallmentItemSchema:
    return InstallmentItemSchema(
        item_id=str(item.id),
        plan_id=str(item.plan_id),
        installment_number=item.installment_number,
        amount_cents=item.amount_cents,
        due_date=item.due_date,
        status=item.status,
        display_status=scheduler.item_status(item).value,
        paid_date=item.paid_date,
        account_id=str(item.account_id) if item.account_id else None,
    )


def plan_response(plan: InstallmentPlan, scheduler: InstallmentScheduler) -> PlanResponse:
    summary = scheduler.summarize(plan)
    return PlanResponse(
        plan_id=str(plan.id),
        card_id=str(plan.card_id),
        category_id=str(plan.category_id),
        description=plan.description,
        total_cents=plan.total_cents,
        installments_count=plan.installments_count,
        first_installment_date=plan.first_installment_date,
        status=summary.status.value,
        paid_count=summary.paid_count,
        pending_count=summary.pending_count,
        paid_cents=summary.paid_cents,
        remaining_cents=summary.remaining_cents,
        next_due_date=summary.next_due_date,
        items=[item_schema(item, scheduler) for item in plan.items],
        created_at=plan.created_at,
    )
