"""Domain models - pure Python dataclasses representing ledger entities"""

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Optional


class MovementType(str, Enum):
    CHARGE = "charge"
    PAYMENT = "payment"
    ADJUSTMENT = "adjustment"


class BillStatus(str, Enum):
    OPEN = "open"
    PARTIAL = "partial"
    PAID = "paid"
    OVERDUE = "overdue"


class PlanStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class ItemStatus(str, Enum):
    """Stored item status; overdue is derived on read (ItemDisplayStatus)"""

    PENDING = "pending"
    PAID = "paid"


class ItemDisplayStatus(str, Enum):
    PAID = "paid"
    OVERDUE = "overdue"
    DUE_SOON = "due_soon"
    ON_TIME = "on_time"


class UsageLevel(str, Enum):
    NORMAL = "normal"
    NOTICE = "notice"
    WARNING = "warning"
    CRITICAL = "critical"


@dataclass
class BalanceChange:
    """Effect of one movement on a card's used amount"""

    previous_used_cents: int
    new_used_cents: int


@dataclass
class BillingCycle:
    """Dates bounding one monthly cycle; charges in (period_start, closing_date] belong to it"""

    month: int
    year: int
    period_start: date  # previous cycle's closing date, exclusive
    closing_date: date
    due_date: date


@dataclass
class BillPaymentOutcome:
    paid_cents: int
    remaining_cents: int
    status: BillStatus


@dataclass
class Installment:
    """Single scheduled slice of an installment plan"""

    installment_number: int
    due_date: date
    amount_cents: int


@dataclass
class CardSummary:
    """Read-side view of a card's limit usage"""

    card_id: str
    credit_limit_cents: int
    used_cents: int
    available_cents: int
    usage_percent: float
    usage_level: UsageLevel


@dataclass
class PlanSummary:
    """Read-side view of an installment plan"""

    status: PlanStatus
    paid_count: int
    pending_count: int
    paid_cents: int
    remaining_cents: int
    next_due_date: Optional[date] = None


@dataclass
class ReconciliationReport:
    card_id: str
    stored_used_cents: int
    replayed_used_cents: int
    movement_count: int

    @property
    def consistent(self) -> bool:
        return self.stored_used_cents == self.replayed_used_cents


@dataclass
class ExpenseRecord:
    """Expense entry sent to the general transaction ledger for user-facing history"""

    user_id: str
    description: str
    amount_cents: int
    date: date
    card_id: str
    account_id: Optional[str] = None
    notes: Optional[str] = None
    type: str = "expense"

    def to_payload(self) -> dict:
        return {
            "user_id": self.user_id,
            "type": self.type,
            "description": self.description,
            "amount_cents": self.amount_cents,
            "date": self.date.isoformat(),
            "card_id": self.card_id,
            "account_id": self.account_id,
            "notes": self.notes,
        }
