"""Bill lifecycle - cycle generation, payment application and overdue transitions"""

import uuid
from collections import defaultdict
from datetime import date, datetime, time, timedelta, timezone
from typing import List

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from card_ledger.domain.billing import apply_bill_payment, billing_cycle, effective_status, initial_status
from card_ledger.domain.exceptions import CycleNotClosedError, DuplicateBillError, NotFoundError
from card_ledger.domain.models import BillStatus, ExpenseRecord
from card_ledger.infrastructure.database.models import Bill
from card_ledger.infrastructure.database.repositories import BillRepository, MovementRepository
from card_ledger.infrastructure.observability.metrics import bill_payment_counter, bills_generated_counter
from card_ledger.services.limit_ledger import LimitLedger, PaymentResult
from card_ledger.services.unit_of_work import CardLockRegistry, card_locks, card_transaction
from card_ledger.utils.clock import SystemClock


def _start_of_day(day: date) -> datetime:
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


class BillManager:
    """Creates bills per card cycle and applies payments through the limit ledger"""

    def __init__(self, db: Session, clock=None, locks: CardLockRegistry = card_locks, ledger: LimitLedger | None = None):
        self.db = db
        self.clock = clock or SystemClock()
        self.locks = locks
        self.ledger = ledger or LimitLedger(db, clock=self.clock, locks=locks)
        self.bills = BillRepository(db)
        self.movements = MovementRepository(db)

    def generate_bill(self, user_id: str, card_id: uuid.UUID, month: int, year: int) -> Bill:
        """
        Create the bill for one card cycle.

        total is the sum of charge movements dated after the previous closing
        date and up to this closing date (UTC days), so the cycle must have
        closed: generating on or before the closing date raises
        CycleNotClosedError. Retrying the same cycle raises DuplicateBillError
        and leaves the existing bill untouched.
        """
        with card_transaction(self.db, card_id, "generate_bill", self.locks):
            card = self.ledger.lock_card(card_id, user_id)
            if self.bills.get_for_cycle(card.id, month, year) is not None:
                raise DuplicateBillError("Bill already exists for this cycle", month=month, year=year)

            cycle = billing_cycle(card.closing_day, card.due_day, month, year)
            if cycle.closing_date >= self.clock.today():
                raise CycleNotClosedError(
                    "Billing cycle has not closed yet",
                    month=month,
                    year=year,
                    closing_date=cycle.closing_date.isoformat(),
                )
            total = self.movements.sum_charges_between(
                card.id,
                _start_of_day(cycle.period_start + timedelta(days=1)),
                _start_of_day(cycle.closing_date + timedelta(days=1)),
            )
            status = initial_status(cycle.due_date, total, self.clock.today())

            try:
                bill = self.bills.create_bill(card, cycle, total, status.value, created_at=self.clock.now())
            except IntegrityError as e:
                raise DuplicateBillError("Bill already exists for this cycle", month=month, year=year) from e

        bills_generated_counter.inc()
        return bill

    def apply_payment(
        self,
        user_id: str,
        bill_id: uuid.UUID,
        amount_cents: int,
        account_id: uuid.UUID | None = None,
        description: str = "Bill payment",
        idempotency_key: str | None = None,
    ) -> PaymentResult:
        """
        Pay a bill. The ledger payment and the bill update commit together.

        The returned expense record is for the general transaction history and
        is delivered separately; losing it does not undo the payment.
        """
        bill = self.get_bill(user_id, bill_id)

        with card_transaction(self.db, bill.card_id, "apply_payment", self.locks):
            card = self.ledger.lock_card(bill.card_id, user_id)
            self.db.refresh(bill, with_for_update=True)

            if idempotency_key:
                replay = self.ledger.find_replay(user_id, idempotency_key, "bill_payment", card.id, bill.id)
                if replay is not None:
                    return PaymentResult(card=card, movement=replay, bill=bill, replayed=True)

            if account_id is not None:
                self.ledger.require_account(account_id, user_id)

            outcome = apply_bill_payment(bill.total_cents, bill.paid_cents, amount_cents, bill.status)
            movement = self.ledger.post_payment(card, amount_cents, description)

            bill.paid_cents = outcome.paid_cents
            bill.remaining_cents = outcome.remaining_cents
            bill.status = outcome.status.value
            bill.updated_at = self.clock.now()

            if idempotency_key:
                self.ledger.idempotency.save(
                    user_id,
                    idempotency_key,
                    "bill_payment",
                    card.id,
                    movement.id,
                    created_at=self.clock.now(),
                    bill_id=bill.id,
                )
            self.db.flush()

            expense = ExpenseRecord(
                user_id=user_id,
                description=f"Bill payment {card.name} - {bill.bill_month}/{bill.bill_year}",
                amount_cents=amount_cents,
                date=self.clock.today(),
                card_id=str(card.id),
                account_id=str(account_id) if account_id else None,
                notes=description,
            )

        bill_payment_counter.labels(resulting_status=outcome.status.value).inc()
        return PaymentResult(card=card, movement=movement, bill=bill, expense=expense)

    def refresh_overdue(self, user_id: str, today: date | None = None) -> List[Bill]:
        """Persist overdue on the user's unpaid bills past their due date"""
        today = today or self.clock.today()
        by_card = defaultdict(list)
        for bill in self.bills.get_past_due(user_id, today):
            by_card[bill.card_id].append(bill)

        updated = []
        for card_id, bills in by_card.items():
            with card_transaction(self.db, card_id, "refresh_overdue", self.locks):
                for bill in bills:
                    self.db.refresh(bill, with_for_update=True)
                    if effective_status(bill.status, bill.due_date, bill.remaining_cents, today) is BillStatus.OVERDUE:
                        bill.status = BillStatus.OVERDUE.value
                        bill.updated_at = self.clock.now()
                        updated.append(bill)
        return updated

    def get_bill(self, user_id: str, bill_id: uuid.UUID) -> Bill:
        bill = self.bills.get_for_user(bill_id, user_id)
        if bill is None:
            raise NotFoundError("Bill not found", bill_id=str(bill_id))
        return bill

    def list_bills(self, user_id: str, card_id: uuid.UUID) -> List[Bill]:
        """Card bills, newest cycle first"""
        card = self.ledger.get_card(user_id, card_id)
        return self.bills.get_by_card(card.id)

    def display_status(self, bill: Bill, today: date | None = None) -> BillStatus:
        return effective_status(bill.status, bill.due_date, bill.remaining_cents, today or self.clock.today())
