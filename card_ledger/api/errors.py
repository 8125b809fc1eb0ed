"""Domain exception -> HTTP response translation"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from card_ledger.api.dependencies import get_request_id
from card_ledger.domain.exceptions import DomainException, InconsistentLedgerError

logger = logging.getLogger(__name__)


async def handle_domain_exception(request: Request, exc: DomainException) -> JSONResponse:
    """Typed rejections become 4xx bodies carrying the error code"""
    return JSONResponse(
        status_code=exc.http_status,
        content={"error_code": exc.error_code, "message": exc.message},
    )


async def handle_inconsistency(request: Request, exc: InconsistentLedgerError) -> JSONResponse:
    """Invariant violations are internal faults, reported apart from user errors"""
    logger.error(
        f"Ledger inconsistency surfaced to caller: {exc.message}",
        extra={
            "error_code": exc.error_code,
            "path": request.url.path,
            "method": request.method,
            "request_id": get_request_id(request),
        },
    )
    return JSONResponse(
        status_code=exc.http_status,
        content={"error_code": exc.error_code, "message": "Internal ledger error"},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(InconsistentLedgerError, handle_inconsistency)
    app.add_exception_handler(DomainException, handle_domain_exception)
