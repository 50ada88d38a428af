# src/idea_board/scripts/reconcile.py
"""Rebuild idea and comment vote counters from the vote ledger."""

from __future__ import annotations

import argparse
import logging
import sys

from idea_board.core.errors import StorageUnavailable
from idea_board.core.logging_config import configure_logging
from idea_board.db.session import SessionLocal
from idea_board.models import TargetKind
from idea_board.services.counters import rebuild_counters

# Configure logger for this module
logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Run a counter rebuild and return a process exit status.

    Exit status is 0 when counters matched the ledger or were repaired, 1
    when ``--dry-run`` found drift, and 2 when the database is unreachable.
    """
    parser = argparse.ArgumentParser(description="Reconcile vote counters with the ledger.")
    parser.add_argument(
        "--kind",
        choices=[kind.value for kind in TargetKind],
        default=None,
        help="Only rebuild counters of this target kind",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Report drift without repairing it",
    )
    args = parser.parse_args(argv)

    configure_logging()
    kind = TargetKind(args.kind) if args.kind else None

    db = SessionLocal()
    try:
        drifts = rebuild_counters(db, kind, dry_run=args.dry_run)
    except StorageUnavailable as exc:
        logger.error("Counter rebuild aborted: %s", exc)
        return 2
    finally:
        db.close()

    action = "found" if args.dry_run else "repaired"
    print(f"{len(drifts)} counter(s) {action}")
    for drift in drifts:
        print(
            f"  {drift.target_kind.value} {drift.target_id}: "
            f"{drift.cached} -> {drift.expected}"
        )
    return 1 if args.dry_run and drifts else 0


if __name__ == "__main__":
    sys.exit(main())
