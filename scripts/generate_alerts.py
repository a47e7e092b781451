#!/usr/bin/env python3
"""
Run the alert lifecycle once and exit.

Meant for an OS scheduler, e.g. cron at 00:00, 08:00, 12:00 and 18:00:

    0 0,8,12,18 * * *  cd /srv/wastenot && python scripts/generate_alerts.py
"""

import sys
import argparse
import json
import logging
from datetime import date
from pathlib import Path

# Add parent directory to path to import app modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from app.config import settings
from adapters.email_adapter import build_notifier
from domain.models import SessionLocal, init_database
from services.alert_service import AlertService

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()), format=settings.log_format
)
logger = logging.getLogger("wastenot.scripts.generate_alerts")


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Generate expiry alerts and send notices")
    parser.add_argument(
        "--today",
        type=date.fromisoformat,
        default=None,
        help="Reference date (YYYY-MM-DD), defaults to the current date",
    )
    parser.add_argument(
        "--init-db",
        action="store_true",
        help="Create missing tables before the run",
    )
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    if args.init_db:
        init_database()

    db = SessionLocal()
    try:
        summary = AlertService.run_alert_lifecycle(
            db, build_notifier(settings), today=args.today
        )
    except Exception:
        logger.exception("Alert run failed")
        return 1
    finally:
        db.close()

    print(json.dumps(summary.model_dump(), indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
