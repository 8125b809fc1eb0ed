"""Per-card serialization and transaction boundaries for ledger mutations"""

import threading
import uuid
import weakref
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.orm import Session

from card_ledger.domain.exceptions import DomainException, InconsistentLedgerError
from card_ledger.infrastructure.observability.logging import log_inconsistency, log_rejection
from card_ledger.infrastructure.observability.metrics import inconsistency_counter, record_rejection


class CardLockRegistry:
    """
    One in-process mutex per card id.

    Mutations on the same card queue behind each other while different cards
    proceed in parallel. Across processes the card row lock taken with
    SELECT ... FOR UPDATE gives the same guarantee.
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: "weakref.WeakValueDictionary[uuid.UUID, threading.Lock]" = weakref.WeakValueDictionary()

    def lock_for(self, card_id: uuid.UUID) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(card_id)
            if lock is None:
                lock = threading.Lock()
                self._locks[card_id] = lock
            return lock

    @contextmanager
    def hold(self, card_id: uuid.UUID) -> Iterator[None]:
        lock = self.lock_for(card_id)
        with lock:
            yield


card_locks = CardLockRegistry()


@contextmanager
def ledger_transaction(db: Session, operation: str, **context) -> Iterator[None]:
    """
    Commit when the block finishes; roll back on any exception so a rejected
    or failed mutation leaves no partial state behind.

    Rejections are logged and counted per operation; invariant violations
    are reported separately.
    """
    try:
        yield
        db.commit()
    except InconsistentLedgerError as e:
        db.rollback()
        inconsistency_counter.inc()
        details = {**context, **e.details}
        log_inconsistency(str(details.pop("card_id", "")), e.message, operation=operation, **details)
        raise
    except DomainException as e:
        db.rollback()
        record_rejection(operation, e.error_code)
        log_rejection(operation, e.error_code, e.message, **{**context, **e.details})
        raise
    except Exception:
        db.rollback()
        raise


@contextmanager
def card_transaction(
    db: Session,
    card_id: uuid.UUID,
    operation: str,
    locks: CardLockRegistry = card_locks,
) -> Iterator[None]:
    """Run one ledger mutation as a single atomic unit while holding the card's lock"""
    with locks.hold(card_id):
        with ledger_transaction(db, operation, card_id=str(card_id)):
            yield
