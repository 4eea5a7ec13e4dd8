from __future__ import annotations

import argparse
import logging

from schoolportal.core.logging import configure_logging
from schoolportal.core.settings import settings
from schoolportal.db.session import SessionLocal
from schoolportal.services import device_sessions

logger = logging.getLogger("schoolportal.purge")


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Delete device sessions older than the retention window")
    parser.add_argument("--dry-run", action="store_true", help="Report how many rows would be deleted, then roll back")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    configure_logging(level=settings.log_level)

    db = SessionLocal()
    try:
        deleted = device_sessions.purge_expired(db)
        if args.dry_run:
            db.rollback()
        else:
            db.commit()
    finally:
        db.close()

    logger.info(
        "device_sessions_purged",
        extra={"event": "purge_dry_run" if args.dry_run else "purge"},
    )
    print(f"{'would delete' if args.dry_run else 'deleted'} {deleted} device sessions")


if __name__ == "__main__":
    main()
