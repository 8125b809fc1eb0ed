"""Prometheus metrics for ledger movements, bill payments and history delivery"""

from prometheus_client import Counter, Histogram

# Ledger metrics
movement_counter = Counter(
    "card_ledger_movements_total",
    "Limit movements appended",
    ["movement_type"],  # charge | payment | adjustment
)

rejection_counter = Counter(
    "card_ledger_rejections_total",
    "Operations rejected by validation",
    ["operation", "error_code"],
)

inconsistency_counter = Counter(
    "card_ledger_inconsistencies_total",
    "Ledger invariant violations detected",
)

cards_registered_counter = Counter(
    "card_ledger_cards_registered_total",
    "Cards registered",
)

# Bill and installment metrics
bill_payment_counter = Counter(
    "card_ledger_bill_payments_total",
    "Bill payments applied",
    ["resulting_status"],  # partial | paid
)

bills_generated_counter = Counter(
    "card_ledger_bills_generated_total",
    "Bills generated",
)

installment_settlement_counter = Counter(
    "card_ledger_installment_settlements_total",
    "Installment items settled",
)

# Transaction history delivery
history_latency_histogram = Histogram(
    "transaction_history_latency_seconds",
    "Transaction history write response time",
    buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

history_failure_counter = Counter(
    "transaction_history_failures_total",
    "Failed transaction history writes",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_movement(movement_type: str) -> None:
    movement_counter.labels(movement_type=movement_type).inc()


def record_rejection(operation: str, error_code: str) -> None:
    rejection_counter.labels(operation=operation, error_code=error_code).inc()
