"""Scheduled job tests against the test database"""

import pytest
from sqlalchemy.orm import Session, sessionmaker
from card_ledger import jobs
from card_ledger.infrastructure.database.models import Card
from card_ledger.services.bills import BillManager
from card_ledger.services.limit_ledger import LimitLedger
from card_ledger.utils.clock import FixedClock

USER_ID = "user_1"


@pytest.fixture
def factory(db: Session) -> sessionmaker:
    """Sessions on the test database, separate from the fixture session"""
    return sessionmaker(autocommit=False, autoflush=False, bind=db.get_bind())


def test_reconciliation_job_reports_drift(ledger: LimitLedger, card: Card, other_card: Card, db: Session, factory: sessionmaker):
    ledger.record_charge(USER_ID, card.id, 30000)
    other_card.used_cents = 500
    db.commit()

    assert jobs.run_reconciliation(factory) == [str(other_card.id)]


def test_reconciliation_job_clean_ledger(ledger: LimitLedger, card: Card, factory: sessionmaker):
    ledger.record_charge(USER_ID, card.id, 30000)
    ledger.record_payment(USER_ID, card.id, 1000)

    assert jobs.run_reconciliation(factory) == []


def test_overdue_refresh_job(
    bill_manager: BillManager, ledger: LimitLedger, card: Card, clock: FixedClock, db: Session, factory: sessionmaker
):
    """Job runs on the system clock, well past the April 2025 due date"""
    ledger.record_charge(USER_ID, card.id, 12000)
    clock.advance(days=16)  # Mar 26
    bill = bill_manager.generate_bill(USER_ID, card.id, 3, 2025)
    assert bill.status == "open"

    assert jobs.run_overdue_refresh([USER_ID], factory) == 1

    db.refresh(bill)
    assert bill.status == "overdue"


def test_jobs_cli_requires_command():
    with pytest.raises(SystemExit):
        jobs.main([])
