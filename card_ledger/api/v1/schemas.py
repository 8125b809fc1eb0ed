"""Pydantic schemas for API request/response validation"""

from pydantic import BaseModel, Field
from datetime import date, datetime
from typing import List, Optional


class CardCreateRequest(BaseModel):
    """Request body for POST /v1/cards"""

    name: str = Field(..., max_length=100)
    last_four_digits: str = Field(..., description="Last 4 digits of the card number")
    credit_limit_cents: int = Field(..., description="Credit limit in cents")
    closing_day: int = Field(..., description="Day of month the cycle closes (1-31)")
    due_day: int = Field(..., description="Day of month the bill is due (1-31)")


class ChargeRequest(BaseModel):
    """Request body for POST /v1/cards/{card_id}/charges"""

    amount_cents: int = Field(..., description="Charge amount in cents")
    description: str = Field("", max_length=500)


class CardPaymentRequest(BaseModel):
    """Request body for POST /v1/cards/{card_id}/payments"""

    amount_cents: int = Field(..., description="Payment amount in cents")
    account_id: Optional[str] = Field(None, description="Funding account")
    description: str = Field("Card payment", max_length=500)


class LimitAdjustmentRequest(BaseModel):
    """Request body for POST /v1/cards/{card_id}/limit"""

    new_limit_cents: int = Field(..., description="New credit limit in cents")
    reason: str = Field("Limit adjustment", max_length=500)


class GenerateBillRequest(BaseModel):
    """Request body for POST /v1/cards/{card_id}/bills"""

    month: int = Field(..., ge=1, le=12)
    year: int = Field(..., ge=2000, le=9999)


class BillPaymentRequest(BaseModel):
    """Request body for POST /v1/bills/{bill_id}/payments"""

    amount_cents: int = Field(..., description="Payment amount in cents")
    account_id: Optional[str] = None
    description: str = Field("Bill payment", max_length=500)


class PlanRequest(BaseModel):
    """Request body for POST /v1/installment-plans"""

    card_id: str
    category_id: str
    description: str = Field(..., min_length=1, max_length=500)
    total_cents: int
    installments_count: int
    first_installment_date: date
    notes: Optional[str] = None


class SettlementRequest(BaseModel):
    """Request body for POST /v1/installment-items/{item_id}/settlement"""

    account_id: str
    amount_cents: int


class CardResponse(BaseModel):
    card_id: str
    name: str
    last_four_digits: str
    credit_limit_cents: int
    used_cents: int
    available_cents: int
    usage_percent: float
    usage_level: str
    closing_day: int
    due_day: int


class CardListResponse(BaseModel):
    cards: List[CardResponse]


class MovementSchema(BaseModel):
    movement_id: str
    sequence: int
    movement_type: str
    amount_cents: int
    previous_used_cents: int
    new_used_cents: int
    previous_limit_cents: Optional[int] = None
    new_limit_cents: Optional[int] = None
    description: str
    created_at: datetime


class MovementResponse(BaseModel):
    """Response for charges and card payments"""

    card: CardResponse
    movement: MovementSchema
    replayed: bool = False


class AdjustmentResponse(BaseModel):
    card: CardResponse
    movement: MovementSchema
    over_limit: bool


class HistoryResponse(BaseModel):
    card_id: str
    movements: List[MovementSchema]


class ReconciliationResponse(BaseModel):
    card_id: str
    consistent: bool
    stored_used_cents: int
    replayed_used_cents: int
    movement_count: int


class BillSchema(BaseModel):
    bill_id: str
    card_id: str
    bill_month: int
    bill_year: int
    closing_date: date
    due_date: date
    total_cents: int
    paid_cents: int
    remaining_cents: int
    status: str


class BillListResponse(BaseModel):
    card_id: str
    bills: List[BillSchema]


class BillPaymentResponse(BaseModel):
    bill: BillSchema
    card: CardResponse
    movement: MovementSchema
    replayed: bool = False


class OverdueRefreshResponse(BaseModel):
    updated: List[BillSchema]


class InstallmentItemSchema(BaseModel):
    item_id: str
    plan_id: str
    installment_number: int
    amount_cents: int
    due_date: date
    status: str
    display_status: str
    paid_date: Optional[date] = None
    account_id: Optional[str] = None


class PlanResponse(BaseModel):
    plan_id: str
    card_id: str
    category_id: str
    description: str
    total_cents: int
    installments_count: int
    first_installment_date: date
    status: str
    paid_count: int
    pending_count: int
    paid_cents: int
    remaining_cents: int
    next_due_date: Optional[date] = None
    items: List[InstallmentItemSchema]
    created_at: datetime


class UpcomingItemsResponse(BaseModel):
    items: List[InstallmentItemSchema]
