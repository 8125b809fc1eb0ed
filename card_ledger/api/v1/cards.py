"""Card endpoints - registration, charges, payments, limit adjustments, ledger history"""

from fastapi import APIRouter, BackgroundTasks, Depends, Header, Query
from typing import Optional

from card_ledger.api.dependencies import get_current_user_id, get_history_client, get_ledger, parse_uuid
from card_ledger.api.v1.presenters import card_response, movement_schema
from card_ledger.api.v1.schemas import (
    AdjustmentResponse,
    CardCreateRequest,
    CardListResponse,
    CardPaymentRequest,
    CardResponse,
    ChargeRequest,
    HistoryResponse,
    LimitAdjustmentRequest,
    MovementResponse,
    ReconciliationResponse,
)
from card_ledger.infrastructure.clients.transaction_history import TransactionHistoryClient
from card_ledger.services.limit_ledger import LimitLedger

router = APIRouter()


@router.post("/cards", response_model=CardResponse, status_code=201)
def register_card(
    request_body: CardCreateRequest,
    user_id: str = Depends(get_current_user_id),
    ledger: LimitLedger = Depends(get_ledger),
):
    """Register a card; 409 DUPLICATE_CARD for a repeated name and last four digits"""
    card = ledger.create_card(
        user_id,
        request_body.name,
        request_body.last_four_digits,
        request_body.credit_limit_cents,
        request_body.closing_day,
        request_body.due_day,
    )
    return card_response(card)


@router.get("/cards", response_model=CardListResponse)
def list_cards(
    user_id: str = Depends(get_current_user_id),
    ledger: LimitLedger = Depends(get_ledger),
):
    """Caller's cards in registration order"""
    return CardListResponse(cards=[card_response(card) for card in ledger.list_cards(user_id)])


@router.get("/cards/{card_id}", response_model=CardResponse)
def get_card(
    card_id: str,
    user_id: str = Depends(get_current_user_id),
    ledger: LimitLedger = Depends(get_ledger),
):
    """Card snapshot with available limit and usage level"""
    card = ledger.get_card(user_id, parse_uuid(card_id, "card"))
    return card_response(card)


@router.post("/cards/{card_id}/charges", response_model=MovementResponse, status_code=201)
def create_charge(
    card_id: str,
    request_body: ChargeRequest,
    user_id: str = Depends(get_current_user_id),
    ledger: LimitLedger = Depends(get_ledger),
):
    """Charge the card; 409 LIMIT_EXCEEDED if it would pass the credit limit"""
    result = ledger.record_charge(user_id, parse_uuid(card_id, "card"), request_body.amount_cents, request_body.description)
    return MovementResponse(card=card_response(result.card), movement=movement_schema(result.movement))


@router.post("/cards/{card_id}/payments", response_model=MovementResponse, status_code=201)
def create_card_payment(
    card_id: str,
    request_body: CardPaymentRequest,
    background_tasks: BackgroundTasks,
    user_id: str = Depends(get_current_user_id),
    idempotency_key: Optional[str] = Header(None),
    ledger: LimitLedger = Depends(get_ledger),
    history_client: TransactionHistoryClient = Depends(get_history_client),
):
    """
    Pay down the card outside any bill.

    The expense entry for the user's transaction history is sent after the
    response, best-effort.
    """
    result = ledger.pay_card(
        user_id,
        parse_uuid(card_id, "card"),
        request_body.amount_cents,
        account_id=parse_uuid(request_body.account_id, "account") if request_body.account_id else None,
        description=request_body.description,
        idempotency_key=idempotency_key,
    )
    if result.expense is not None:
        background_tasks.add_task(history_client.record_expense, result.expense)

    return MovementResponse(
        card=card_response(result.card),
        movement=movement_schema(result.movement),
        replayed=result.replayed,
    )


@router.post("/cards/{card_id}/limit", response_model=AdjustmentResponse)
def adjust_limit(
    card_id: str,
    request_body: LimitAdjustmentRequest,
    user_id: str = Depends(get_current_user_id),
    ledger: LimitLedger = Depends(get_ledger),
):
    """Change the credit limit; over_limit flags a limit now below the used amount"""
    result = ledger.record_adjustment(
        user_id, parse_uuid(card_id, "card"), request_body.new_limit_cents, request_body.reason
    )
    return AdjustmentResponse(
        card=card_response(result.card),
        movement=movement_schema(result.movement),
        over_limit=result.over_limit,
    )


@router.get("/cards/{card_id}/movements", response_model=HistoryResponse)
def get_movements(
    card_id: str,
    limit: Optional[int] = Query(None, ge=1, le=500),
    user_id: str = Depends(get_current_user_id),
    ledger: LimitLedger = Depends(get_ledger),
):
    """Most recent limit movements, newest first"""
    movements = ledger.history(user_id, parse_uuid(card_id, "card"), limit)
    return HistoryResponse(card_id=card_id, movements=[movement_schema(m) for m in movements])


@router.get("/cards/{card_id}/reconciliation", response_model=ReconciliationResponse)
def reconcile_card(
    card_id: str,
    user_id: str = Depends(get_current_user_id),
    ledger: LimitLedger = Depends(get_ledger),
):
    """Replay the movement log and compare with the stored used amount"""
    report = ledger.reconcile(user_id, parse_uuid(card_id, "card"))
    return ReconciliationResponse(
        card_id=report.card_id,
        consistent=report.consistent,
        stored_used_cents=report.stored_used_cents,
        replayed_used_cents=report.replayed_used_cents,
        movement_count=report.movement_count,
    )
