"""Pytest fixtures for testing"""

import pytest
from datetime import datetime, timezone
from typing import Generator
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from card_ledger.api.dependencies import get_clock
from card_ledger.api.main import create_app
from card_ledger.infrastructure.database.models import Account, Base, Card, Category
from card_ledger.infrastructure.database.session import get_db
from card_ledger.services.bills import BillManager
from card_ledger.services.installments import InstallmentScheduler
from card_ledger.services.limit_ledger import LimitLedger
from card_ledger.utils.clock import FixedClock


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

USER_ID = "user_1"
OTHER_USER_ID = "user_2"


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def clock() -> FixedClock:
    """Frozen at 2025-03-10 12:00 UTC"""
    return FixedClock(datetime(2025, 3, 10, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def client(db: Session, clock: FixedClock) -> TestClient:
    """Create FastAPI test client with test database and frozen clock"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: clock
    return TestClient(app)


@pytest.fixture
def card(db: Session) -> Card:
    """Card with a $1000 limit, closing on the 25th and due on the 5th"""
    card = Card(
        user_id=USER_ID,
        name="Platinum",
        last_four_digits="4242",
        credit_limit_cents=100000,
        used_cents=0,
        closing_day=25,
        due_day=5,
    )
    db.add(card)
    db.commit()
    return card


@pytest.fixture
def other_card(db: Session) -> Card:
    """Card owned by a different user"""
    card = Card(
        user_id=OTHER_USER_ID,
        name="Other",
        last_four_digits="0000",
        credit_limit_cents=100000,
        used_cents=0,
        closing_day=10,
        due_day=20,
    )
    db.add(card)
    db.commit()
    return card


@pytest.fixture
def account(db: Session) -> Account:
    account = Account(user_id=USER_ID, name="Checking")
    db.add(account)
    db.commit()
    return account


@pytest.fixture
def category(db: Session) -> Category:
    category = Category(user_id=USER_ID, name="Electronics")
    db.add(category)
    db.commit()
    return category


@pytest.fixture
def ledger(db: Session, clock: FixedClock) -> LimitLedger:
    return LimitLedger(db, clock=clock)


@pytest.fixture
def bill_manager(db: Session, clock: FixedClock, ledger: LimitLedger) -> BillManager:
    return BillManager(db, clock=clock, ledger=ledger)


@pytest.fixture
def scheduler(db: Session, clock: FixedClock, ledger: LimitLedger) -> InstallmentScheduler:
    return InstallmentScheduler(db, clock=clock, ledger=ledger)
