"""Bill endpoints - generation, listing, payment, overdue refresh"""

from fastapi import APIRouter, BackgroundTasks, Depends, Header
from typing import Optional

from card_ledger.api.dependencies import get_bill_manager, get_current_user_id, get_history_client, parse_uuid
from card_ledger.api.v1.presenters import bill_schema, card_response, movement_schema
from card_ledger.api.v1.schemas import (
    BillListResponse,
    BillPaymentRequest,
    BillPaymentResponse,
    BillSchema,
    GenerateBillRequest,
    OverdueRefreshResponse,
)
from card_ledger.infrastructure.clients.transaction_history import TransactionHistoryClient
from card_ledger.services.bills import BillManager

router = APIRouter()


@router.post("/cards/{card_id}/bills", response_model=BillSchema, status_code=201)
def generate_bill(
    card_id: str,
    request_body: GenerateBillRequest,
    user_id: str = Depends(get_current_user_id),
    manager: BillManager = Depends(get_bill_manager),
):
    """Generate the bill for one cycle; 409 DUPLICATE_BILL if it already exists"""
    bill = manager.generate_bill(user_id, parse_uuid(card_id, "card"), request_body.month, request_body.year)
    return bill_schema(bill, manager)


@router.get("/cards/{card_id}/bills", response_model=BillListResponse)
def list_bills(
    card_id: str,
    user_id: str = Depends(get_current_user_id),
    manager: BillManager = Depends(get_bill_manager),
):
    """Card bills, newest cycle first, with overdue derived from today's date"""
    bills = manager.list_bills(user_id, parse_uuid(card_id, "card"))
    return BillListResponse(card_id=card_id, bills=[bill_schema(b, manager) for b in bills])


@router.post("/bills/{bill_id}/payments", response_model=BillPaymentResponse, status_code=201)
def pay_bill(
    bill_id: str,
    request_body: BillPaymentRequest,
    background_tasks: BackgroundTasks,
    user_id: str = Depends(get_current_user_id),
    idempotency_key: Optional[str] = Header(None),
    manager: BillManager = Depends(get_bill_manager),
    history_client: TransactionHistoryClient = Depends(get_history_client),
):
    """
    Apply a payment to a bill.

    Flow:
    1. Ledger payment + bill update commit together
    2. Expense entry queued for the transaction history (best-effort)
    """
    result = manager.apply_payment(
        user_id,
        parse_uuid(bill_id, "bill"),
        request_body.amount_cents,
        account_id=parse_uuid(request_body.account_id, "account") if request_body.account_id else None,
        description=request_body.description,
        idempotency_key=idempotency_key,
    )
    if result.expense is not None:
        background_tasks.add_task(history_client.record_expense, result.expense)

    return BillPaymentResponse(
        bill=bill_schema(result.bill, manager),
        card=card_response(result.card),
        movement=movement_schema(result.movement),
        replayed=result.replayed,
    )


@router.post("/bills/overdue-refresh", response_model=OverdueRefreshResponse)
def refresh_overdue(
    user_id: str = Depends(get_current_user_id),
    manager: BillManager = Depends(get_bill_manager),
):
    """Persist overdue status on the caller's unpaid past-due bills"""
    updated = manager.refresh_overdue(user_id)
    return OverdueRefreshResponse(updated=[bill_schema(b, manager) for b in updated])
