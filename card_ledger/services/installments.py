"""Installment plan scheduler - plan creation and per-item settlement"""

import uuid
from dataclasses import dataclass
from datetime import date, timedelta
from typing import List

from sqlalchemy.orm import Session

from card_ledger.config import settings
from card_ledger.domain.exceptions import AlreadySettledError, InvalidAmountError, LimitExceededError, NotFoundError
from card_ledger.domain.installments import generate_installment_plan, item_display_status
from card_ledger.domain.ledger import validate_amount
from card_ledger.domain.models import Installment, ItemDisplayStatus, ItemStatus, PlanSummary
from card_ledger.domain.projections import summarize_plan
from card_ledger.infrastructure.database.models import InstallmentItem, InstallmentPlan, LimitMovement
from card_ledger.infrastructure.database.repositories import PlanRepository, ReferenceRepository
from card_ledger.infrastructure.observability.metrics import installment_settlement_counter
from card_ledger.services.limit_ledger import LimitLedger
from card_ledger.services.unit_of_work import CardLockRegistry, card_locks, card_transaction
from card_ledger.utils.clock import SystemClock


@dataclass
class PlanResult:
    plan: InstallmentPlan
    movement: LimitMovement


class InstallmentScheduler:
    """
    Creates installment plans and records per-item settlement.

    Settling an item is bookkeeping only: the whole purchase was charged to
    the card when the plan was created, so settlement marks which account
    covered the slice and never touches the limit ledger. Card balance only
    goes down through bill or card payments.
    """

    def __init__(self, db: Session, clock=None, locks: CardLockRegistry = card_locks, ledger: LimitLedger | None = None):
        self.db = db
        self.clock = clock or SystemClock()
        self.locks = locks
        self.ledger = ledger or LimitLedger(db, clock=self.clock, locks=locks)
        self.plans = PlanRepository(db)
        self.references = ReferenceRepository(db)

    def create_plan(
        self,
        user_id: str,
        card_id: uuid.UUID,
        category_id: uuid.UUID,
        description: str,
        total_cents: int,
        installments_count: int,
        first_installment_date: date,
        notes: str | None = None,
    ) -> PlanResult:
        """
        Create a plan, its items and a single charge for the full total, atomically.

        The limit is checked here before anything is written; the ledger
        charge is then posted for the whole amount as one movement.
        """
        with card_transaction(self.db, card_id, "create_plan", self.locks):
            schedule = generate_installment_plan(
                total_cents,
                installments_count,
                first_installment_date,
                max_installments=settings.max_installments,
            )
            card = self.ledger.lock_card(card_id, user_id)
            if self.references.get_category(category_id, user_id) is None:
                raise NotFoundError("Category not found", category_id=str(category_id))

            if card.used_cents + total_cents > card.credit_limit_cents:
                raise LimitExceededError(
                    "Installment purchase would exceed the card's credit limit",
                    credit_limit_cents=card.credit_limit_cents,
                    used_cents=card.used_cents,
                    available_cents=max(card.credit_limit_cents - card.used_cents, 0),
                    amount_cents=total_cents,
                )

            movement = self.ledger.post_charge(
                card,
                total_cents,
                f"Installment purchase: {description} ({installments_count}x)",
                allow_over_limit=True,
            )
            plan = self.plans.create_plan(
                user_id=user_id,
                card_id=card.id,
                category_id=category_id,
                charge_movement_id=movement.id,
                description=description,
                total_cents=total_cents,
                first_installment_date=first_installment_date,
                installments=schedule,
                created_at=self.clock.now(),
                notes=notes,
            )
        return PlanResult(plan=plan, movement=movement)

    def settle_item(
        self,
        user_id: str,
        item_id: uuid.UUID,
        account_id: uuid.UUID,
        amount_cents: int,
    ) -> InstallmentItem:
        """
        Mark one installment item paid from a funding account.

        The amount must match the item exactly; partial settlement is not
        supported. Does not change the card's used amount.
        """
        item = self.get_item(user_id, item_id)

        with card_transaction(self.db, item.plan.card_id, "settle_item", self.locks):
            item = self.plans.get_item_for_user(item_id, user_id, lock=True)
            if ItemStatus(item.status) is not ItemStatus.PENDING:
                raise AlreadySettledError("Installment already paid", item_id=str(item_id))
            validate_amount(amount_cents)
            if amount_cents != item.amount_cents:
                raise InvalidAmountError(
                    "Settlement must match the installment amount exactly",
                    amount_cents=amount_cents,
                    expected_cents=item.amount_cents,
                )
            self.ledger.require_account(account_id, user_id)

            item.status = ItemStatus.PAID.value
            item.paid_date = self.clock.today()
            item.account_id = account_id
            self.db.flush()

        installment_settlement_counter.inc()
        return item

    def get_plan(self, user_id: str, plan_id: uuid.UUID) -> InstallmentPlan:
        plan = self.plans.get_for_user(plan_id, user_id)
        if plan is None:
            raise NotFoundError("Installment plan not found", plan_id=str(plan_id))
        return plan

    def get_item(self, user_id: str, item_id: uuid.UUID) -> InstallmentItem:
        item = self.plans.get_item_for_user(item_id, user_id)
        if item is None:
            raise NotFoundError("Installment item not found", item_id=str(item_id))
        return item

    def summarize(self, plan: InstallmentPlan) -> PlanSummary:
        return summarize_plan(
            plan.status,
            [_as_installment(item) for item in plan.items],
            [item.status for item in plan.items],
        )

    def item_status(self, item: InstallmentItem, today: date | None = None) -> ItemDisplayStatus:
        return item_display_status(
            item.status,
            item.due_date,
            today or self.clock.today(),
            due_soon_days=settings.due_soon_days,
        )

    def upcoming_items(self, user_id: str, within_days: int | None = None) -> List[InstallmentItem]:
        """Unpaid items due up to within_days from today, overdue ones included"""
        within_days = settings.due_soon_days if within_days is None else within_days
        return self.plans.get_pending_items_due_by(user_id, self.clock.today() + timedelta(days=within_days))


def _as_installment(item: InstallmentItem) -> Installment:
    return Installment(
        installment_number=item.installment_number,
        due_date=item.due_date,
        amount_cents=item.amount_cents,
    )
