"""Installment scheduler service tests against the test database

Item settlement is bookkeeping only: it never changes the card's used
amount, because the whole purchase was charged when the plan was created.
Several tests below pin that behavior down explicitly.
"""

import uuid
import pytest
from datetime import date
from sqlalchemy.orm import Session
from card_ledger.domain.exceptions import (
    AlreadySettledError,
    InvalidAmountError,
    LimitExceededError,
    NotFoundError,
)
from card_ledger.domain.models import ItemDisplayStatus, PlanStatus
from card_ledger.infrastructure.database.models import (
    Account,
    Card,
    Category,
    InstallmentItem,
    InstallmentPlan,
    LimitMovement,
)
from card_ledger.services.installments import InstallmentScheduler
from card_ledger.services.limit_ledger import LimitLedger
from card_ledger.utils.clock import FixedClock

USER_ID = "user_1"


@pytest.fixture
def wide_card(db: Session) -> Card:
    """Card with a $2000 limit and nothing used"""
    card = Card(
        user_id=USER_ID,
        name="Black",
        last_four_digits="9999",
        credit_limit_cents=200000,
        used_cents=0,
        closing_day=25,
        due_day=5,
    )
    db.add(card)
    db.commit()
    return card


def test_create_plan_scenario(scheduler: InstallmentScheduler, wide_card: Card, category: Category, db: Session):
    """$1200 in 12x on a $2000 card: used becomes $1200 at once, twelve $100 items monthly"""
    result = scheduler.create_plan(
        USER_ID, wide_card.id, category.id, "Notebook", 120000, 12, date(2025, 4, 10)
    )

    plan = result.plan
    assert plan.installments_count == 12
    assert [item.amount_cents for item in plan.items] == [10000] * 12
    assert [item.due_date for item in plan.items][:3] == [date(2025, 4, 10), date(2025, 5, 10), date(2025, 6, 10)]
    assert plan.items[-1].due_date == date(2026, 3, 10)
    assert all(item.status == "pending" for item in plan.items)

    db.refresh(wide_card)
    assert wide_card.used_cents == 120000

    # One movement for the full amount, not one per item
    movements = db.query(LimitMovement).filter(LimitMovement.card_id == wide_card.id).all()
    assert len(movements) == 1
    assert movements[0].amount_cents == 120000
    assert movements[0].previous_used_cents == 0
    assert movements[0].new_used_cents == 120000
    assert plan.charge_movement_id == movements[0].id


def test_create_plan_rounding_lands_on_last_item(scheduler: InstallmentScheduler, card: Card, category: Category):
    result = scheduler.create_plan(USER_ID, card.id, category.id, "Chair", 10000, 3, date(2025, 3, 10))
    assert [item.amount_cents for item in result.plan.items] == [3333, 3333, 3334]


def test_create_plan_over_limit_rejected(scheduler: InstallmentScheduler, ledger: LimitLedger, card: Card, category: Category, db: Session):
    ledger.record_charge(USER_ID, card.id, 50000)

    with pytest.raises(LimitExceededError):
        scheduler.create_plan(USER_ID, card.id, category.id, "TV", 60000, 6, date(2025, 3, 10))

    assert db.query(InstallmentPlan).count() == 0
    assert db.query(InstallmentItem).count() == 0
    assert db.query(LimitMovement).count() == 1
    assert ledger.get_card(USER_ID, card.id).used_cents == 50000


@pytest.mark.parametrize("count", [0, 25])
def test_create_plan_count_out_of_range(scheduler: InstallmentScheduler, card: Card, category: Category, db: Session, count: int):
    with pytest.raises(InvalidAmountError):
        scheduler.create_plan(USER_ID, card.id, category.id, "Bike", 10000, count, date(2025, 3, 10))
    assert db.query(LimitMovement).count() == 0


def test_create_plan_unknown_category(scheduler: InstallmentScheduler, card: Card, db: Session):
    with pytest.raises(NotFoundError):
        scheduler.create_plan(USER_ID, card.id, uuid.uuid4(), "Bike", 10000, 2, date(2025, 3, 10))
    assert db.query(LimitMovement).count() == 0


def test_settle_item_is_ledger_inert(
    scheduler: InstallmentScheduler, ledger: LimitLedger, card: Card, category: Category, account: Account, clock: FixedClock
):
    """Settling an item marks it paid but leaves the card's used amount as it was"""
    plan = scheduler.create_plan(USER_ID, card.id, category.id, "Phone", 30000, 3, date(2025, 3, 10)).plan
    item = plan.items[0]

    settled = scheduler.settle_item(USER_ID, item.id, account.id, 10000)

    assert settled.status == "paid"
    assert settled.paid_date == clock.today()
    assert settled.account_id == account.id
    assert ledger.get_card(USER_ID, card.id).used_cents == 30000
    assert len(ledger.history(USER_ID, card.id)) == 1


def test_settle_item_twice_rejected(scheduler: InstallmentScheduler, card: Card, category: Category, account: Account):
    plan = scheduler.create_plan(USER_ID, card.id, category.id, "Phone", 30000, 3, date(2025, 3, 10)).plan
    item_id = plan.items[0].id
    scheduler.settle_item(USER_ID, item_id, account.id, 10000)

    with pytest.raises(AlreadySettledError):
        scheduler.settle_item(USER_ID, item_id, account.id, 10000)


def test_settle_item_requires_exact_amount(scheduler: InstallmentScheduler, card: Card, category: Category, account: Account, db: Session):
    plan = scheduler.create_plan(USER_ID, card.id, category.id, "Phone", 10000, 3, date(2025, 3, 10)).plan
    last = plan.items[-1]

    with pytest.raises(InvalidAmountError):
        scheduler.settle_item(USER_ID, last.id, account.id, 3333)

    db.refresh(last)
    assert last.status == "pending"
    assert scheduler.settle_item(USER_ID, last.id, account.id, 3334).status == "paid"


def test_settle_item_unknown_account(scheduler: InstallmentScheduler, card: Card, category: Category):
    plan = scheduler.create_plan(USER_ID, card.id, category.id, "Phone", 10000, 2, date(2025, 3, 10)).plan
    with pytest.raises(NotFoundError):
        scheduler.settle_item(USER_ID, plan.items[0].id, uuid.uuid4(), 5000)


def test_settle_item_of_other_user(scheduler: InstallmentScheduler, card: Card, category: Category, account: Account):
    plan = scheduler.create_plan(USER_ID, card.id, category.id, "Phone", 10000, 2, date(2025, 3, 10)).plan
    with pytest.raises(NotFoundError):
        scheduler.settle_item("user_2", plan.items[0].id, account.id, 5000)


def test_plan_status_recomputed_from_items(scheduler: InstallmentScheduler, card: Card, category: Category, account: Account):
    plan = scheduler.create_plan(USER_ID, card.id, category.id, "Desk", 20000, 2, date(2025, 3, 10)).plan
    assert scheduler.summarize(plan).status is PlanStatus.ACTIVE

    for item in list(plan.items):
        scheduler.settle_item(USER_ID, item.id, account.id, item.amount_cents)

    summary = scheduler.summarize(scheduler.get_plan(USER_ID, plan.id))
    assert summary.status is PlanStatus.COMPLETED
    assert summary.paid_cents == 20000
    assert summary.remaining_cents == 0
    assert summary.next_due_date is None


def test_item_display_status_and_upcoming(scheduler: InstallmentScheduler, card: Card, category: Category, clock: FixedClock):
    plan = scheduler.create_plan(USER_ID, card.id, category.id, "Sofa", 30000, 3, date(2025, 3, 5)).plan

    statuses = [scheduler.item_status(item) for item in plan.items]
    assert statuses == [ItemDisplayStatus.OVERDUE, ItemDisplayStatus.ON_TIME, ItemDisplayStatus.ON_TIME]

    upcoming = scheduler.upcoming_items(USER_ID)
    assert [item.installment_number for item in upcoming] == [1]

    upcoming = scheduler.upcoming_items(USER_ID, within_days=30)
    assert [item.installment_number for item in upcoming] == [1, 2]
