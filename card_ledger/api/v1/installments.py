"""Installment plan endpoints - creation, lookup, item settlement"""

from fastapi import APIRouter, Depends, Query
from typing import Optional

from card_ledger.api.dependencies import get_current_user_id, get_scheduler, parse_uuid
from card_ledger.api.v1.presenters import item_schema, plan_response
from card_ledger.api.v1.schemas import (
    InstallmentItemSchema,
    PlanRequest,
    PlanResponse,
    SettlementRequest,
    UpcomingItemsResponse,
)
from card_ledger.services.installments import InstallmentScheduler

router = APIRouter()


@router.post("/installment-plans", response_model=PlanResponse, status_code=201)
def create_plan(
    request_body: PlanRequest,
    user_id: str = Depends(get_current_user_id),
    scheduler: InstallmentScheduler = Depends(get_scheduler),
):
    """
    Create an installment purchase.

    The full total is charged to the card immediately; items are due monthly
    from first_installment_date.
    """
    result = scheduler.create_plan(
        user_id,
        parse_uuid(request_body.card_id, "card"),
        parse_uuid(request_body.category_id, "category"),
        request_body.description,
        request_body.total_cents,
        request_body.installments_count,
        request_body.first_installment_date,
        notes=request_body.notes,
    )
    return plan_response(result.plan, scheduler)


@router.get("/installment-plans/{plan_id}", response_model=PlanResponse)
def get_plan(
    plan_id: str,
    user_id: str = Depends(get_current_user_id),
    scheduler: InstallmentScheduler = Depends(get_scheduler),
):
    """Plan with items; status is recomputed from the items on every read"""
    plan = scheduler.get_plan(user_id, parse_uuid(plan_id, "plan"))
    return plan_response(plan, scheduler)


@router.post("/installment-items/{item_id}/settlement", response_model=InstallmentItemSchema)
def settle_item(
    item_id: str,
    request_body: SettlementRequest,
    user_id: str = Depends(get_current_user_id),
    scheduler: InstallmentScheduler = Depends(get_scheduler),
):
    """Mark an item paid from an account. Does not change the card's used amount."""
    item = scheduler.settle_item(
        user_id,
        parse_uuid(item_id, "item"),
        parse_uuid(request_body.account_id, "account"),
        request_body.amount_cents,
    )
    return item_schema(item, scheduler)


@router.get("/installment-items/upcoming", response_model=UpcomingItemsResponse)
def upcoming_items(
    within_days: Optional[int] = Query(None, ge=0, le=366),
    user_id: str = Depends(get_current_user_id),
    scheduler: InstallmentScheduler = Depends(get_scheduler),
):
    """Unpaid items due soon, overdue ones first"""
    items = scheduler.upcoming_items(user_id, within_days)
    return UpcomingItemsResponse(items=[item_schema(item, scheduler) for item in items])
