"""SQLAlchemy ORM models for cards, the limit ledger, bills and installment plans"""

import uuid
from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

Base = declarative_base()


class Account(Base):
    """Funding account (read-only reference for payments)"""

    __tablename__ = "accounts"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Text, nullable=False, index=True)
    name = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class Category(Base):
    """Spending category (read-only reference for installment plans)"""

    __tablename__ = "categories"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Text, nullable=False, index=True)
    name = Column(Text, nullable=False)


class Card(Base):
    """Credit card; used_cents is the denormalized head of its movement chain"""

    __tablename__ = "cards"
    __table_args__ = (
        CheckConstraint("credit_limit_cents > 0", name="ck_cards_limit_positive"),
        CheckConstraint("used_cents >= 0", name="ck_cards_used_non_negative"),
        CheckConstraint("closing_day BETWEEN 1 AND 31", name="ck_cards_closing_day"),
        CheckConstraint("due_day BETWEEN 1 AND 31", name="ck_cards_due_day"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Text, nullable=False, index=True)
    name = Column(Text, nullable=False)
    last_four_digits = Column(String(4), nullable=False)
    credit_limit_cents = Column(BigInteger, nullable=False)
    used_cents = Column(BigInteger, nullable=False, default=0)
    closing_day = Column(Integer, nullable=False)
    due_day = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=True)

    movements = relationship("LimitMovement", back_populates="card", order_by="LimitMovement.sequence")
    bills = relationship("Bill", back_populates="card")


class LimitMovement(Base):
    """Append-only ledger entry; never updated or deleted"""

    __tablename__ = "card_limit_movements"
    __table_args__ = (
        UniqueConstraint("card_id", "sequence", name="uq_movement_card_sequence"),
        CheckConstraint("amount_cents >= 0", name="ck_movement_amount_non_negative"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    card_id = Column(Uuid, ForeignKey("cards.id", ondelete="RESTRICT"), nullable=False, index=True)
    user_id = Column(Text, nullable=False, index=True)
    sequence = Column(Integer, nullable=False)
    movement_type = Column(Text, nullable=False)  # charge | payment | adjustment
    amount_cents = Column(BigInteger, nullable=False)
    previous_used_cents = Column(BigInteger, nullable=False)
    new_used_cents = Column(BigInteger, nullable=False)
    previous_limit_cents = Column(BigInteger, nullable=True)  # adjustments only
    new_limit_cents = Column(BigInteger, nullable=True)
    description = Column(Text, nullable=False, default="")
    created_at = Column(DateTime(timezone=True), nullable=False)

    card = relationship("Card", back_populates="movements")


class Bill(Base):
    """Obligations for one card billing cycle"""

    __tablename__ = "card_bills"
    __table_args__ = (
        UniqueConstraint("card_id", "bill_month", "bill_year", name="uq_bill_card_cycle"),
        CheckConstraint("remaining_cents = total_cents - paid_cents", name="ck_bill_remaining"),
        CheckConstraint("paid_cents >= 0 AND remaining_cents >= 0", name="ck_bill_non_negative"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    card_id = Column(Uuid, ForeignKey("cards.id", ondelete="RESTRICT"), nullable=False, index=True)
    bill_month = Column(Integer, nullable=False)
    bill_year = Column(Integer, nullable=False)
    closing_date = Column(Date, nullable=False)
    due_date = Column(Date, nullable=False)
    total_cents = Column(BigInteger, nullable=False)
    paid_cents = Column(BigInteger, nullable=False, default=0)
    remaining_cents = Column(BigInteger, nullable=False)
    status = Column(Text, nullable=False, default="open")  # open | partial | paid | overdue
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=True)

    card = relationship("Card", back_populates="bills")


class InstallmentPlan(Base):
    """Purchase split over monthly installments"""

    __tablename__ = "installment_plans"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Text, nullable=False, index=True)
    card_id = Column(Uuid, ForeignKey("cards.id", ondelete="RESTRICT"), nullable=False, index=True)
    category_id = Column(Uuid, ForeignKey("categories.id"), nullable=False)
    charge_movement_id = Column(Uuid, ForeignKey("card_limit_movements.id"), nullable=False)
    description = Column(Text, nullable=False)
    notes = Column(Text, nullable=True)
    total_cents = Column(BigInteger, nullable=False)
    installments_count = Column(Integer, nullable=False)
    first_installment_date = Column(Date, nullable=False)
    status = Column(Text, nullable=False, default="active")  # active | cancelled; completed is derived
    created_at = Column(DateTime(timezone=True), nullable=False)

    card = relationship("Card")
    items = relationship(
        "InstallmentItem",
        back_populates="plan",
        cascade="all, delete-orphan",
        order_by="InstallmentItem.installment_number",
    )


class InstallmentItem(Base):
    """One scheduled slice of an installment plan"""

    __tablename__ = "installment_items"
    __table_args__ = (UniqueConstraint("plan_id", "installment_number", name="uq_item_plan_number"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    plan_id = Column(Uuid, ForeignKey("installment_plans.id", ondelete="CASCADE"), nullable=False, index=True)
    installment_number = Column(Integer, nullable=False)
    amount_cents = Column(BigInteger, nullable=False)
    due_date = Column(Date, nullable=False)
    status = Column(Text, nullable=False, default="pending")  # pending | paid
    paid_date = Column(Date, nullable=True)
    account_id = Column(Uuid, ForeignKey("accounts.id"), nullable=True)

    plan = relationship("InstallmentPlan", back_populates="items")


class PaymentIdempotencyKey(Base):
    """Outcome of a keyed payment request, replayed on retries"""

    __tablename__ = "payment_idempotency_keys"
    __table_args__ = (UniqueConstraint("user_id", "key", name="uq_idempotency_user_key"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Text, nullable=False)
    key = Column(Text, nullable=False)
    operation = Column(Text, nullable=False)  # bill_payment | card_payment
    card_id = Column(Uuid, ForeignKey("cards.id"), nullable=False)
    bill_id = Column(Uuid, ForeignKey("card_bills.id"), nullable=True)
    movement_id = Column(Uuid, ForeignKey("card_limit_movements.id"), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False)
