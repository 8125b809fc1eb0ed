"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict
from pythonjsonlogger import jsonlogger

from card_ledger.config import settings

logger = logging.getLogger("card_ledger")


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = settings.service_name


def setup_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging"""
    root = logging.getLogger()
    root.setLevel(level)

    # Remove existing handlers
    root.handlers.clear()

    # JSON handler for stdout
    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s"
    )
    handler.setFormatter(formatter)
    root.addHandler(handler)


def log_movement(
    card_id: str,
    movement_type: str,
    amount_cents: int,
    previous_used_cents: int,
    new_used_cents: int,
    sequence: int,
) -> None:
    """Log one appended ledger movement"""
    logger.info(
        "Movement recorded",
        extra={
            "step": "movement_recorded",
            "card_id": card_id,
            "movement_type": movement_type,
            "amount_cents": amount_cents,
            "previous_used_cents": previous_used_cents,
            "new_used_cents": new_used_cents,
            "sequence": sequence,
        },
    )


def log_rejection(operation: str, error_code: str, message: str, **context: Any) -> None:
    """Log a validation rejection (user-correctable, nothing was written)"""
    logger.warning(
        f"{operation} rejected: {message}",
        extra={"step": "rejected", "operation": operation, "error_code": error_code, **context},
    )


def log_inconsistency(card_id: str, message: str, **context: Any) -> None:
    """Log a ledger invariant violation; these page someone"""
    logger.error(
        f"Ledger inconsistency: {message}",
        extra={"step": "ledger_inconsistent", "card_id": card_id, "alert": True, **context},
    )


def log_card_registered(card_id: str, user_id: str, credit_limit_cents: int) -> None:
    logger.info(
        "Card registered",
        extra={"step": "card_registered", "card_id": card_id, "user_id": user_id, "credit_limit_cents": credit_limit_cents},
    )
