"""Dependency injection for FastAPI endpoints"""

import uuid
from fastapi import Depends, Header, HTTPException, Request
from sqlalchemy.orm import Session

from card_ledger.infrastructure.clients.transaction_history import TransactionHistoryClient
from card_ledger.infrastructure.database.session import get_db
from card_ledger.services.bills import BillManager
from card_ledger.services.installments import InstallmentScheduler
from card_ledger.services.limit_ledger import LimitLedger
from card_ledger.utils.clock import SystemClock


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_current_user_id(x_user_id: str = Header(..., min_length=1)) -> str:
    """Caller identity, established upstream by the authentication layer"""
    return x_user_id


def get_clock() -> SystemClock:
    return SystemClock()


def get_history_client() -> TransactionHistoryClient:
    """Provide transaction history client instance"""
    return TransactionHistoryClient()


def get_ledger(db: Session = Depends(get_db), clock=Depends(get_clock)) -> LimitLedger:
    return LimitLedger(db, clock=clock)


def get_bill_manager(db: Session = Depends(get_db), clock=Depends(get_clock)) -> BillManager:
    return BillManager(db, clock=clock)


def get_scheduler(db: Session = Depends(get_db), clock=Depends(get_clock)) -> InstallmentScheduler:
    return InstallmentScheduler(db, clock=clock)


def parse_uuid(value: str, label: str) -> uuid.UUID:
    try:
        return uuid.UUID(value)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid {label} ID format")
