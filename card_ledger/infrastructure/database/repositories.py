"""Data access layer for card ledger entities"""

import uuid
from datetime import date, datetime
from typing import List, Optional
from sqlalchemy import func
from sqlalchemy.orm import Session
from card_ledger.infrastructure.database.models import (
    Account,
    Bill,
    Card,
    Category,
    InstallmentItem,
    InstallmentPlan,
    LimitMovement,
    PaymentIdempotencyKey,
)
from card_ledger.domain.models import BalanceChange, BillingCycle, Installment, MovementType


class CardRepository:
    """Repository for cards"""

    def __init__(self, db: Session):
        self.db = db

    def get_for_user(self, card_id: uuid.UUID, user_id: str) -> Optional[Card]:
        """Fetch a card owned by the user"""
        return (
            self.db.query(Card)
            .filter(Card.id == card_id, Card.user_id == user_id)
            .first()
        )

    def lock_for_user(self, card_id: uuid.UUID, user_id: str) -> Optional[Card]:
        """Fetch a card row with SELECT ... FOR UPDATE for the rest of the transaction"""
        return (
            self.db.query(Card)
            .filter(Card.id == card_id, Card.user_id == user_id)
            .populate_existing()
            .with_for_update()
            .first()
        )

    def list_ids(self) -> List[uuid.UUID]:
        return [row.id for row in self.db.query(Card.id).order_by(Card.created_at).all()]

    def get_by_id(self, card_id: uuid.UUID) -> Optional[Card]:
        return self.db.query(Card).filter(Card.id == card_id).first()

    def list_for_user(self, user_id: str) -> List[Card]:
        """User's cards in registration order"""
        return (
            self.db.query(Card)
            .filter(Card.user_id == user_id)
            .order_by(Card.created_at.asc(), Card.name.asc())
            .all()
        )

    def create(
        self,
        user_id: str,
        name: str,
        last_four_digits: str,
        credit_limit_cents: int,
        closing_day: int,
        due_day: int,
        created_at: datetime,
    ) -> Card:
        """New card with nothing used; its movement chain starts empty"""
        card = Card(
            user_id=user_id,
            name=name,
            last_four_digits=last_four_digits,
            credit_limit_cents=credit_limit_cents,
            used_cents=0,
            closing_day=closing_day,
            due_day=due_day,
            created_at=created_at,
        )
        self.db.add(card)
        self.db.flush()
        return card


class MovementRepository:
    """Repository for the append-only limit movement log"""

    def __init__(self, db: Session):
        self.db = db

    def append(
        self,
        card: Card,
        movement_type: MovementType,
        amount_cents: int,
        change: BalanceChange,
        description: str,
        created_at: datetime,
        previous_limit_cents: int | None = None,
        new_limit_cents: int | None = None,
    ) -> LimitMovement:
        """Append the next movement in the card's chain"""
        last_sequence = (
            self.db.query(func.max(LimitMovement.sequence))
            .filter(LimitMovement.card_id == card.id)
            .scalar()
        )
        movement = LimitMovement(
            card_id=card.id,
            user_id=card.user_id,
            sequence=(last_sequence or 0) + 1,
            movement_type=movement_type.value,
            amount_cents=amount_cents,
            previous_used_cents=change.previous_used_cents,
            new_used_cents=change.new_used_cents,
            previous_limit_cents=previous_limit_cents,
            new_limit_cents=new_limit_cents,
            description=description,
            created_at=created_at,
        )
        self.db.add(movement)
        self.db.flush()  # Get ID and hit the sequence constraint without committing
        return movement

    def get_by_id(self, movement_id: uuid.UUID) -> Optional[LimitMovement]:
        return self.db.query(LimitMovement).filter(LimitMovement.id == movement_id).first()

    def get_recent(self, card_id: uuid.UUID, limit: int = 20) -> List[LimitMovement]:
        """Most recent movements, newest first"""
        return (
            self.db.query(LimitMovement)
            .filter(LimitMovement.card_id == card_id)
            .order_by(LimitMovement.sequence.desc())
            .limit(limit)
            .all()
        )

    def get_all(self, card_id: uuid.UUID) -> List[LimitMovement]:
        """Full chain in creation order"""
        return (
            self.db.query(LimitMovement)
            .filter(LimitMovement.card_id == card_id)
            .order_by(LimitMovement.sequence.asc())
            .all()
        )

    def sum_charges_between(self, card_id: uuid.UUID, start: datetime, end: datetime) -> int:
        """Total charged in [start, end)"""
        total = (
            self.db.query(func.coalesce(func.sum(LimitMovement.amount_cents), 0))
            .filter(
                LimitMovement.card_id == card_id,
                LimitMovement.movement_type == MovementType.CHARGE.value,
                LimitMovement.created_at >= start,
                LimitMovement.created_at < end,
            )
            .scalar()
        )
        return int(total)


class BillRepository:
    """Repository for card bills"""

    def __init__(self, db: Session):
        self.db = db

    def get_for_cycle(self, card_id: uuid.UUID, month: int, year: int) -> Optional[Bill]:
        return (
            self.db.query(Bill)
            .filter(Bill.card_id == card_id, Bill.bill_month == month, Bill.bill_year == year)
            .first()
        )

    def create_bill(self, card: Card, cycle: BillingCycle, total_cents: int, status: str, created_at: datetime) -> Bill:
        db_bill = Bill(
            card_id=card.id,
            bill_month=cycle.month,
            bill_year=cycle.year,
            closing_date=cycle.closing_date,
            due_date=cycle.due_date,
            total_cents=total_cents,
            paid_cents=0,
            remaining_cents=total_cents,
            status=status,
            created_at=created_at,
        )
        self.db.add(db_bill)
        self.db.flush()
        return db_bill

    def get_for_user(self, bill_id: uuid.UUID, user_id: str) -> Optional[Bill]:
        """Fetch a bill whose card belongs to the user"""
        return (
            self.db.query(Bill)
            .join(Card, Card.id == Bill.card_id)
            .filter(Bill.id == bill_id, Card.user_id == user_id)
            .first()
        )

    def get_by_card(self, card_id: uuid.UUID) -> List[Bill]:
        """Bills for a card, newest cycle first"""
        return (
            self.db.query(Bill)
            .filter(Bill.card_id == card_id)
            .order_by(Bill.bill_year.desc(), Bill.bill_month.desc())
            .all()
        )

    def get_past_due(self, user_id: str, today: date) -> List[Bill]:
        """Unpaid bills past their due date that are not yet marked overdue"""
        return (
            self.db.query(Bill)
            .join(Card, Card.id == Bill.card_id)
            .filter(
                Card.user_id == user_id,
                Bill.due_date < today,
                Bill.remaining_cents > 0,
                Bill.status.in_(["open", "partial"]),
            )
            .all()
        )


class PlanRepository:
    """Repository for installment plans"""

    def __init__(self, db: Session):
        self.db = db

    def create_plan(
        self,
        user_id: str,
        card_id: uuid.UUID,
        category_id: uuid.UUID,
        charge_movement_id: uuid.UUID,
        description: str,
        total_cents: int,
        first_installment_date: date,
        installments: List[Installment],
        created_at: datetime,
        notes: str | None = None,
    ) -> InstallmentPlan:
        """Create plan with installment items"""
        db_plan = InstallmentPlan(
            user_id=user_id,
            card_id=card_id,
            category_id=category_id,
            charge_movement_id=charge_movement_id,
            description=description,
            notes=notes,
            total_cents=total_cents,
            installments_count=len(installments),
            first_installment_date=first_installment_date,
            status="active",
            created_at=created_at,
        )
        self.db.add(db_plan)
        self.db.flush()

        # Create installments
        for inst in installments:
            db_item = InstallmentItem(
                plan_id=db_plan.id,
                installment_number=inst.installment_number,
                amount_cents=inst.amount_cents,
                due_date=inst.due_date,
                status="pending",
            )
            self.db.add(db_item)

        self.db.flush()
        return db_plan

    def get_for_user(self, plan_id: uuid.UUID, user_id: str) -> Optional[InstallmentPlan]:
        """Fetch plan with installments"""
        return (
            self.db.query(InstallmentPlan)
            .filter(InstallmentPlan.id == plan_id, InstallmentPlan.user_id == user_id)
            .first()
        )

    def get_item_for_user(self, item_id: uuid.UUID, user_id: str, lock: bool = False) -> Optional[InstallmentItem]:
        query = (
            self.db.query(InstallmentItem)
            .join(InstallmentPlan, InstallmentPlan.id == InstallmentItem.plan_id)
            .filter(InstallmentItem.id == item_id, InstallmentPlan.user_id == user_id)
        )
        if lock:
            query = query.populate_existing().with_for_update(of=InstallmentItem)
        return query.first()

    def get_pending_items_due_by(self, user_id: str, until: date) -> List[InstallmentItem]:
        """Unpaid items of the user's active plans due on or before a date, earliest first"""
        return (
            self.db.query(InstallmentItem)
            .join(InstallmentPlan, InstallmentPlan.id == InstallmentItem.plan_id)
            .filter(
                InstallmentPlan.user_id == user_id,
                InstallmentPlan.status == "active",
                InstallmentItem.status == "pending",
                InstallmentItem.due_date <= until,
            )
            .order_by(InstallmentItem.due_date.asc(), InstallmentItem.installment_number.asc())
            .all()
        )


class ReferenceRepository:
    """Read-only lookups for accounts and categories"""

    def __init__(self, db: Session):
        self.db = db

    def get_account(self, account_id: uuid.UUID, user_id: str) -> Optional[Account]:
        return (
            self.db.query(Account)
            .filter(Account.id == account_id, Account.user_id == user_id)
            .first()
        )

    def get_category(self, category_id: uuid.UUID, user_id: str) -> Optional[Category]:
        return (
            self.db.query(Category)
            .filter(Category.id == category_id, Category.user_id == user_id)
            .first()
        )


class IdempotencyRepository:
    """Repository for keyed payment outcomes"""

    def __init__(self, db: Session):
        self.db = db

    def get(self, user_id: str, key: str) -> Optional[PaymentIdempotencyKey]:
        return (
            self.db.query(PaymentIdempotencyKey)
            .filter(PaymentIdempotencyKey.user_id == user_id, PaymentIdempotencyKey.key == key)
            .first()
        )

    def save(
        self,
        user_id: str,
        key: str,
        operation: str,
        card_id: uuid.UUID,
        movement_id: uuid.UUID,
        created_at: datetime,
        bill_id: uuid.UUID | None = None,
    ) -> PaymentIdempotencyKey:
        record = PaymentIdempotencyKey(
            user_id=user_id,
            key=key,
            operation=operation,
            card_id=card_id,
            bill_id=bill_id,
            movement_id=movement_id,
            created_at=created_at,
        )
        self.db.add(record)
        self.db.flush()
        return record
