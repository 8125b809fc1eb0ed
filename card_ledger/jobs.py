"""
Scheduled ledger jobs.

Run from cron or a scheduler:

    card-ledger-jobs reconcile
    card-ledger-jobs refresh-overdue --user user_1
"""

import argparse
import logging
import sys
from typing import List, Optional

from sqlalchemy.orm import sessionmaker

from card_ledger.config import settings
from card_ledger.infrastructure.database.session import SessionLocal, session_scope
from card_ledger.infrastructure.observability.logging import setup_logging
from card_ledger.services.bills import BillManager
from card_ledger.services.limit_ledger import LimitLedger

logger = logging.getLogger(__name__)


def run_reconciliation(factory: sessionmaker = SessionLocal) -> List[str]:
    """Replay every card's movement log; returns the ids of cards that drifted"""
    with session_scope(factory) as db:
        reports, inconsistent = LimitLedger(db).reconcile_all()

    logger.info(
        "Reconciliation finished",
        extra={"cards_checked": len(reports) + len(inconsistent), "inconsistent_cards": len(inconsistent)},
    )
    return inconsistent


def run_overdue_refresh(user_ids: List[str], factory: sessionmaker = SessionLocal) -> int:
    """Persist overdue status for the given users' past-due bills; returns how many changed"""
    updated = 0
    with session_scope(factory) as db:
        manager = BillManager(db)
        for user_id in user_ids:
            updated += len(manager.refresh_overdue(user_id))

    logger.info("Overdue refresh finished", extra={"users": len(user_ids), "bills_updated": updated})
    return updated


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Card ledger maintenance jobs")
    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("reconcile", help="Check every card's used amount against its movement log")
    refresh = subparsers.add_parser("refresh-overdue", help="Mark past-due unpaid bills overdue")
    refresh.add_argument("--user", dest="users", action="append", required=True, help="User id (repeatable)")

    args = parser.parse_args(argv)
    setup_logging(settings.log_level)

    if args.command == "reconcile":
        inconsistent = run_reconciliation()
        return 1 if inconsistent else 0

    run_overdue_refresh(args.users)
    return 0


if __name__ == "__main__":
    sys.exit(main())
