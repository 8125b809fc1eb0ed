"""Limit ledger - causally consistent history of each card's used amount"""

import uuid
from dataclasses import dataclass
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from card_ledger.config import settings
from card_ledger.domain.cards import normalize_card_name, validate_card_terms
from card_ledger.domain.exceptions import (
    DuplicateCardError,
    IdempotencyKeyReusedError,
    InconsistentLedgerError,
    InvalidAmountError,
    NotFoundError,
)
from card_ledger.domain.ledger import compute_charge, compute_payment, replay_movements, validate_amount
from card_ledger.domain.models import (
    BalanceChange,
    ExpenseRecord,
    MovementType,
    ReconciliationReport,
)
from card_ledger.infrastructure.database.models import Bill, Card, LimitMovement
from card_ledger.infrastructure.database.repositories import (
    CardRepository,
    IdempotencyRepository,
    MovementRepository,
    ReferenceRepository,
)
from card_ledger.infrastructure.observability.logging import log_card_registered, log_inconsistency, log_movement
from card_ledger.infrastructure.observability.metrics import cards_registered_counter, inconsistency_counter, record_movement
from card_ledger.services.unit_of_work import CardLockRegistry, card_locks, card_transaction, ledger_transaction
from card_ledger.utils.clock import SystemClock


@dataclass
class LedgerResult:
    card: Card
    movement: LimitMovement


@dataclass
class AdjustmentResult:
    card: Card
    movement: LimitMovement
    over_limit: bool  # used amount now sits above the lowered limit


@dataclass
class PaymentResult:
    card: Card
    movement: LimitMovement
    bill: Optional[Bill] = None
    expense: Optional[ExpenseRecord] = None  # None when replayed from an idempotency key
    replayed: bool = False


class LimitLedger:
    """
    Card balance bookkeeping.

    Public record_* methods are complete atomic operations. The post_* methods
    append a movement on a card the caller already locked inside its own
    card_transaction, so other components can join the ledger write to theirs.
    """

    def __init__(self, db: Session, clock=None, locks: CardLockRegistry = card_locks):
        self.db = db
        self.clock = clock or SystemClock()
        self.locks = locks
        self.cards = CardRepository(db)
        self.movements = MovementRepository(db)
        self.references = ReferenceRepository(db)
        self.idempotency = IdempotencyRepository(db)

    # Card registration

    def create_card(
        self,
        user_id: str,
        name: str,
        last_four_digits: str,
        credit_limit_cents: int,
        closing_day: int,
        due_day: int,
    ) -> Card:
        """
        Register a card with nothing used.

        Rejects a second card of the user with the same name (ignoring case and
        spacing) and the same last four digits.
        """
        with ledger_transaction(self.db, "create_card", user_id=user_id):
            cleaned = validate_card_terms(name, last_four_digits, credit_limit_cents, closing_day, due_day)
            key = normalize_card_name(cleaned)
            for existing in self.cards.list_for_user(user_id):
                if existing.last_four_digits == last_four_digits and normalize_card_name(existing.name) == key:
                    raise DuplicateCardError(
                        "A card with this name and last four digits already exists",
                        existing_card_id=str(existing.id),
                    )
            card = self.cards.create(
                user_id, cleaned, last_four_digits, credit_limit_cents, closing_day, due_day, created_at=self.clock.now()
            )

        cards_registered_counter.inc()
        log_card_registered(str(card.id), user_id, card.credit_limit_cents)
        return card

    def list_cards(self, user_id: str) -> List[Card]:
        return self.cards.list_for_user(user_id)

    # Locked-card primitives

    def lock_card(self, card_id: uuid.UUID, user_id: str) -> Card:
        card = self.cards.lock_for_user(card_id, user_id)
        if card is None:
            raise NotFoundError("Card not found", card_id=str(card_id))
        return card

    def post_charge(
        self,
        card: Card,
        amount_cents: int,
        description: str,
        allow_over_limit: bool = False,
    ) -> LimitMovement:
        change = compute_charge(card.used_cents, card.credit_limit_cents, amount_cents, allow_over_limit)
        return self._append(card, MovementType.CHARGE, amount_cents, change, description)

    def post_payment(self, card: Card, amount_cents: int, description: str) -> LimitMovement:
        change = compute_payment(card.used_cents, amount_cents)
        return self._append(card, MovementType.PAYMENT, amount_cents, change, description)

    def _append(
        self,
        card: Card,
        movement_type: MovementType,
        amount_cents: int,
        change: BalanceChange,
        description: str,
        previous_limit_cents: int | None = None,
        new_limit_cents: int | None = None,
    ) -> LimitMovement:
        now = self.clock.now()
        movement = self.movements.append(
            card,
            movement_type,
            amount_cents,
            change,
            description,
            created_at=now,
            previous_limit_cents=previous_limit_cents,
            new_limit_cents=new_limit_cents,
        )
        card.used_cents = change.new_used_cents
        card.updated_at = now
        self.db.flush()

        record_movement(movement_type.value)
        log_movement(
            str(card.id),
            movement_type.value,
            amount_cents,
            change.previous_used_cents,
            change.new_used_cents,
            movement.sequence,
        )
        return movement

    # Atomic operations

    def record_charge(self, user_id: str, card_id: uuid.UUID, amount_cents: int, description: str = "") -> LedgerResult:
        """Charge a card; rejected with LimitExceededError before any write if it would pass the limit"""
        with card_transaction(self.db, card_id, "record_charge", self.locks):
            card = self.lock_card(card_id, user_id)
            movement = self.post_charge(card, amount_cents, description)
        return LedgerResult(card=card, movement=movement)

    def record_payment(self, user_id: str, card_id: uuid.UUID, amount_cents: int, description: str = "") -> LedgerResult:
        """Pay down a card; amount must not exceed the used amount"""
        with card_transaction(self.db, card_id, "record_payment", self.locks):
            card = self.lock_card(card_id, user_id)
            movement = self.post_payment(card, amount_cents, description)
        return LedgerResult(card=card, movement=movement)

    def pay_card(
        self,
        user_id: str,
        card_id: uuid.UUID,
        amount_cents: int,
        account_id: uuid.UUID | None = None,
        description: str = "Card payment",
        idempotency_key: str | None = None,
    ) -> PaymentResult:
        """
        Pay a card directly, outside any bill.

        Produces the expense record for the general transaction history; the
        caller delivers it best-effort once this method has returned.
        """
        with card_transaction(self.db, card_id, "pay_card", self.locks):
            card = self.lock_card(card_id, user_id)

            if idempotency_key:
                replay = self.find_replay(user_id, idempotency_key, "card_payment", card_id)
                if replay is not None:
                    return PaymentResult(card=card, movement=replay, replayed=True)

            if account_id is not None:
                self.require_account(account_id, user_id)

            movement = self.post_payment(card, amount_cents, description)

            if idempotency_key:
                self.idempotency.save(
                    user_id, idempotency_key, "card_payment", card.id, movement.id, created_at=self.clock.now()
                )

            expense = ExpenseRecord(
                user_id=user_id,
                description=f"{description} - {card.name}",
                amount_cents=amount_cents,
                date=self.clock.today(),
                card_id=str(card.id),
                account_id=str(account_id) if account_id else None,
                notes=description,
            )
        return PaymentResult(card=card, movement=movement, expense=expense)

    def record_adjustment(
        self,
        user_id: str,
        card_id: uuid.UUID,
        new_limit_cents: int,
        reason: str = "Limit adjustment",
    ) -> AdjustmentResult:
        """
        Change a card's credit limit.

        The used amount is untouched; the movement records it unchanged for a
        uniform audit trail. A limit below the used amount is accepted and
        flagged with over_limit=True.
        """
        with card_transaction(self.db, card_id, "record_adjustment", self.locks):
            validate_amount(new_limit_cents, field="new_limit_cents")
            card = self.lock_card(card_id, user_id)
            previous_limit = card.credit_limit_cents
            change = BalanceChange(previous_used_cents=card.used_cents, new_used_cents=card.used_cents)
            movement = self._append(
                card,
                MovementType.ADJUSTMENT,
                abs(new_limit_cents - previous_limit),
                change,
                reason,
                previous_limit_cents=previous_limit,
                new_limit_cents=new_limit_cents,
            )
            card.credit_limit_cents = new_limit_cents
            over_limit = card.used_cents > new_limit_cents
        return AdjustmentResult(card=card, movement=movement, over_limit=over_limit)

    # Shared validation

    def require_account(self, account_id: uuid.UUID, user_id: str) -> None:
        if self.references.get_account(account_id, user_id) is None:
            raise NotFoundError("Account not found", account_id=str(account_id))

    def find_replay(
        self,
        user_id: str,
        key: str,
        operation: str,
        card_id: uuid.UUID,
        bill_id: uuid.UUID | None = None,
    ) -> Optional[LimitMovement]:
        """Movement stored for an already-processed idempotency key, if any"""
        record = self.idempotency.get(user_id, key)
        if record is None:
            return None
        if record.operation != operation or record.card_id != card_id or record.bill_id != bill_id:
            raise IdempotencyKeyReusedError("Idempotency key already used for another payment", key=key)
        return self.movements.get_by_id(record.movement_id)

    # Reads

    def get_card(self, user_id: str, card_id: uuid.UUID) -> Card:
        card = self.cards.get_for_user(card_id, user_id)
        if card is None:
            raise NotFoundError("Card not found", card_id=str(card_id))
        return card

    def history(self, user_id: str, card_id: uuid.UUID, limit_n: int | None = None) -> List[LimitMovement]:
        """Most recent movements, newest first"""
        limit_n = settings.default_history_limit if limit_n is None else limit_n
        if limit_n <= 0:
            raise InvalidAmountError("limit_n must be positive", limit_n=limit_n)
        card = self.get_card(user_id, card_id)
        return self.movements.get_recent(card.id, limit=limit_n)

    def reconcile(self, user_id: str, card_id: uuid.UUID) -> ReconciliationReport:
        """
        Replay the card's movement log from zero and compare with the stored used amount.

        Raises:
            InconsistentLedgerError: chain is broken or the replay disagrees
        """
        card = self.get_card(user_id, card_id)
        return self._reconcile_card(card)

    def reconcile_all(self) -> Tuple[List[ReconciliationReport], List[str]]:
        """
        Periodic drift check across every card.

        Returns reports for consistent cards and the ids of inconsistent ones;
        each inconsistency is logged and counted as it is found.
        """
        reports = []
        inconsistent = []
        for card_id in self.cards.list_ids():
            card = self.cards.get_by_id(card_id)
            try:
                reports.append(self._reconcile_card(card))
            except InconsistentLedgerError:
                inconsistent.append(str(card_id))
        return reports, inconsistent

    def _reconcile_card(self, card: Card) -> ReconciliationReport:
        movements = self.movements.get_all(card.id)
        try:
            replayed = replay_movements(movements)
            if replayed != card.used_cents:
                raise InconsistentLedgerError(
                    "Replayed used amount does not match stored used amount",
                    stored_used_cents=card.used_cents,
                    replayed_used_cents=replayed,
                )
        except InconsistentLedgerError as e:
            inconsistency_counter.inc()
            log_inconsistency(str(card.id), e.message, operation="reconcile", **e.details)
            raise

        return ReconciliationReport(
            card_id=str(card.id),
            stored_used_cents=card.used_cents,
            replayed_used_cents=replayed,
            movement_count=len(movements),
        )
