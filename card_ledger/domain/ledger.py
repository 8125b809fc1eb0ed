"""Limit ledger arithmetic - balance transitions and movement-log replay"""

from typing import Iterable, Protocol

from card_ledger.domain.exceptions import (
    InconsistentLedgerError,
    InvalidAmountError,
    LimitExceededError,
)
from card_ledger.domain.models import BalanceChange, MovementType


class MovementLike(Protocol):
    sequence: int
    movement_type: str
    amount_cents: int
    previous_used_cents: int
    new_used_cents: int


# Largest value a BIGINT column holds
MAX_AMOUNT_CENTS = 2**63 - 1


def validate_amount(amount_cents: int, field: str = "amount_cents") -> int:
    """Reject anything that is not a strictly positive integer number of cents that fits a BIGINT"""
    if isinstance(amount_cents, bool) or not isinstance(amount_cents, int):
        raise InvalidAmountError(f"{field} must be an integer amount of cents", field=field)
    if amount_cents <= 0:
        raise InvalidAmountError(f"{field} must be greater than zero", field=field, value=amount_cents)
    if amount_cents > MAX_AMOUNT_CENTS:
        raise InvalidAmountError(f"{field} is too large", field=field, max_cents=MAX_AMOUNT_CENTS)
    return amount_cents


def compute_charge(
    used_cents: int,
    credit_limit_cents: int,
    amount_cents: int,
    allow_over_limit: bool = False,
) -> BalanceChange:
    """
    Balance after a charge.

    allow_over_limit is only for callers that already ran their own limit
    check before opening the transaction (installment plan creation).
    """
    validate_amount(amount_cents)
    new_used = used_cents + amount_cents
    if new_used > credit_limit_cents and not allow_over_limit:
        raise LimitExceededError(
            "Charge would exceed the card's credit limit",
            credit_limit_cents=credit_limit_cents,
            used_cents=used_cents,
            available_cents=max(credit_limit_cents - used_cents, 0),
            amount_cents=amount_cents,
        )
    return BalanceChange(previous_used_cents=used_cents, new_used_cents=new_used)


def compute_payment(used_cents: int, amount_cents: int) -> BalanceChange:
    """Balance after a payment; a payment can never drive used amount below zero"""
    validate_amount(amount_cents)
    if amount_cents > used_cents:
        raise InvalidAmountError(
            "Payment exceeds the card's used amount",
            used_cents=used_cents,
            amount_cents=amount_cents,
        )
    return BalanceChange(previous_used_cents=used_cents, new_used_cents=used_cents - amount_cents)


def apply_movement(used_cents: int, movement_type: str, amount_cents: int) -> int:
    """Effect of a single movement on a running used amount"""
    movement_type = MovementType(movement_type)
    if movement_type is MovementType.CHARGE:
        return used_cents + amount_cents
    if movement_type is MovementType.PAYMENT:
        return used_cents - amount_cents
    return used_cents


def replay_movements(movements: Iterable[MovementLike]) -> int:
    """
    Rebuild a card's used amount from zero by folding its movements in creation order.

    Raises:
        InconsistentLedgerError: a movement does not follow from the previous one,
            or its own before/after values disagree with its type and amount
    """
    used = 0
    expected_sequence = 1
    for movement in movements:
        if movement.sequence != expected_sequence:
            raise InconsistentLedgerError(
                "Movement sequence has a gap",
                expected_sequence=expected_sequence,
                sequence=movement.sequence,
            )
        if movement.previous_used_cents != used:
            raise InconsistentLedgerError(
                "Movement does not continue the previous balance",
                sequence=movement.sequence,
                expected_previous=used,
                previous_used_cents=movement.previous_used_cents,
            )
        used = apply_movement(used, movement.movement_type, movement.amount_cents)
        if movement.new_used_cents != used:
            raise InconsistentLedgerError(
                "Movement balance does not match its amount",
                sequence=movement.sequence,
                expected_new=used,
                new_used_cents=movement.new_used_cents,
            )
        expected_sequence += 1
    return used
