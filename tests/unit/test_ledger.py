"""Unit tests for limit ledger arithmetic"""

import pytest
from dataclasses import dataclass
from card_ledger.domain.exceptions import InconsistentLedgerError, InvalidAmountError, LimitExceededError
from card_ledger.domain.ledger import MAX_AMOUNT_CENTS, compute_charge, compute_payment, replay_movements, validate_amount


@dataclass
class Movement:
    sequence: int
    movement_type: str
    amount_cents: int
    previous_used_cents: int
    new_used_cents: int


@pytest.mark.parametrize("amount", [0, -100, 10.5, "100", True, None])
def test_validate_amount_rejects_malformed(amount):
    with pytest.raises(InvalidAmountError):
        validate_amount(amount)


def test_validate_amount_bigint_bound():
    assert validate_amount(MAX_AMOUNT_CENTS) == MAX_AMOUNT_CENTS
    with pytest.raises(InvalidAmountError):
        validate_amount(MAX_AMOUNT_CENTS + 1)
    with pytest.raises(InvalidAmountError):
        validate_amount(10**20, field="new_limit_cents")


def test_charge_within_limit():
    """Limit 1000, used 200: charge 700 -> 900"""
    change = compute_charge(used_cents=20000, credit_limit_cents=100000, amount_cents=70000)
    assert change.previous_used_cents == 20000
    assert change.new_used_cents == 90000


def test_charge_exceeding_limit_rejected():
    """Limit 1000, used 200: charge 900 -> LimitExceeded"""
    with pytest.raises(LimitExceededError) as exc_info:
        compute_charge(used_cents=20000, credit_limit_cents=100000, amount_cents=90000)
    assert exc_info.value.details["available_cents"] == 80000


def test_charge_exactly_to_limit_allowed():
    change = compute_charge(used_cents=20000, credit_limit_cents=100000, amount_cents=80000)
    assert change.new_used_cents == 100000


def test_charge_over_limit_when_precheck_done_by_caller():
    change = compute_charge(used_cents=95000, credit_limit_cents=100000, amount_cents=10000, allow_over_limit=True)
    assert change.new_used_cents == 105000


def test_payment_reduces_used():
    change = compute_payment(used_cents=50000, amount_cents=20000)
    assert change.new_used_cents == 30000


def test_payment_larger_than_used_rejected():
    """A payment can never drive used amount negative"""
    with pytest.raises(InvalidAmountError):
        compute_payment(used_cents=10000, amount_cents=10001)


def test_replay_rebuilds_used_amount():
    movements = [
        Movement(1, "charge", 50000, 0, 50000),
        Movement(2, "payment", 20000, 50000, 30000),
        Movement(3, "adjustment", 50000, 30000, 30000),
        Movement(4, "charge", 1000, 30000, 31000),
    ]
    assert replay_movements(movements) == 31000


def test_replay_empty_log_is_zero():
    assert replay_movements([]) == 0


def test_replay_detects_broken_chain():
    movements = [
        Movement(1, "charge", 50000, 0, 50000),
        Movement(2, "charge", 1000, 40000, 41000),
    ]
    with pytest.raises(InconsistentLedgerError):
        replay_movements(movements)


def test_replay_detects_wrong_arithmetic():
    movements = [Movement(1, "charge", 50000, 0, 60000)]
    with pytest.raises(InconsistentLedgerError):
        replay_movements(movements)


def test_replay_detects_sequence_gap():
    movements = [
        Movement(1, "charge", 50000, 0, 50000),
        Movement(3, "charge", 1000, 50000, 51000),
    ]
    with pytest.raises(InconsistentLedgerError):
        replay_movements(movements)
