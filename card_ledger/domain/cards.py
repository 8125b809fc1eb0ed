"""Card registration rules"""

from card_ledger.domain.exceptions import InvalidInputError
from card_ledger.domain.ledger import validate_amount


def normalize_card_name(name: str) -> str:
    """Names compare case-insensitively and without surrounding spaces"""
    return " ".join(name.split()).casefold()


def validate_card_terms(name: str, last_four_digits: str, credit_limit_cents: int, closing_day: int, due_day: int) -> str:
    """
    Check the fields of a new card and return its cleaned name.

    - name is required
    - last_four_digits is exactly four digits
    - credit limit is a positive amount
    - closing and due days are days of month, 1..31 (clamped per month later)
    """
    cleaned = " ".join((name or "").split())
    if not cleaned:
        raise InvalidInputError("Card name is required", field="name")
    if len(last_four_digits) != 4 or not last_four_digits.isdigit():
        raise InvalidInputError("last_four_digits must be the card's last 4 digits", field="last_four_digits")
    validate_amount(credit_limit_cents, field="credit_limit_cents")
    for field, day in (("closing_day", closing_day), ("due_day", due_day)):
        if isinstance(day, bool) or not isinstance(day, int) or not 1 <= day <= 31:
            raise InvalidInputError(f"{field} must be between 1 and 31", field=field, value=day)
    return cleaned
