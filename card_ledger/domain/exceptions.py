"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    error_code = "DOMAIN_ERROR"
    http_status = 400

    def __init__(self, message: str, **details):
        self.message = message
        self.details = details
        super().__init__(message)


class InvalidAmountError(DomainException):
    """Monetary input is non-positive, not an integer amount, or otherwise malformed"""

    error_code = "INVALID_AMOUNT"
    http_status = 422


class LimitExceededError(DomainException):
    """Charge or plan would push used amount past the credit limit"""

    error_code = "LIMIT_EXCEEDED"
    http_status = 409


class OverPaymentError(DomainException):
    """Payment is larger than the outstanding amount it targets"""

    error_code = "OVER_PAYMENT"
    http_status = 409


class DuplicateBillError(DomainException):
    """A bill already exists for the requested card cycle"""

    error_code = "DUPLICATE_BILL"
    http_status = 409


class AlreadySettledError(DomainException):
    """Installment item or bill was already fully paid"""

    error_code = "ALREADY_SETTLED"
    http_status = 409


class NotFoundError(DomainException):
    """Referenced entity does not exist or belongs to another user"""

    error_code = "NOT_FOUND"
    http_status = 404


class InconsistentLedgerError(DomainException):
    """
    Internal invariant violation (e.g. replayed movements disagree with the
    stored used amount).

    Never a user error: handlers log it at ERROR and alert on it.
    """

    error_code = "LEDGER_INCONSISTENT"
    http_status = 500


class IdempotencyKeyReusedError(DomainException):
    """Idempotency key was already used for a different payment target"""

    error_code = "IDEMPOTENCY_KEY_REUSED"
    http_status = 409


class InvalidInputError(DomainException):
    """Non-monetary input out of range (card fields, bill month)"""

    error_code = "INVALID_INPUT"
    http_status = 422


class CycleNotClosedError(DomainException):
    """Bill requested for a cycle whose closing date has not passed yet"""

    error_code = "CYCLE_NOT_CLOSED"
    http_status = 409


class DuplicateCardError(DomainException):
    """User already has a card with the same name and last four digits"""

    error_code = "DUPLICATE_CARD"
    http_status = 409
