"""
Daily jobs: generate due recurring invoices, then flag sent invoices past their due date as overdue.

Schedule once a day (cron, systemd timer, ...).

Usage:
  python -m app.scripts.run_daily_jobs
  python -m app.scripts.run_daily_jobs --date 2025-03-01
  python -m app.scripts.run_daily_jobs --skip-overdue
"""

import argparse
import asyncio
from datetime import date
from typing import Optional

from app.api.v1.invoices.service import mark_overdue_invoices
from app.api.v1.recurring_invoices.service import generate_recurring_invoices
from app.core.config import settings
from app.core.logging import configure_logging, get_logger
from app.db.session import AsyncSessionLocal

logger = get_logger(__name__)


async def run(run_date: date, skip_overdue: bool = False) -> None:
    profile = settings.billing_profile()
    async with AsyncSessionLocal() as db:
        outcome = await generate_recurring_invoices(db, run_date, profile)
        overdue = 0
        if not skip_overdue:
            overdue = await mark_overdue_invoices(db, run_date)
    logger.info(
        "daily_jobs_finished",
        run_date=run_date.isoformat(),
        invoices_generated=len(outcome.invoice_numbers),
        templates_completed=outcome.completed,
        templates_failed=outcome.failed,
        invoices_marked_overdue=overdue,
    )


def _parse_args(argv: Optional[list] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the daily billing jobs")
    parser.add_argument("--date", type=date.fromisoformat, default=None, help="Run as of this date (YYYY-MM-DD)")
    parser.add_argument("--skip-overdue", action="store_true", help="Only generate recurring invoices")
    return parser.parse_args(argv)


def main(argv: Optional[list] = None) -> None:
    args = _parse_args(argv)
    configure_logging(settings.log_level, settings.log_json)
    asyncio.run(run(args.date or date.today(), skip_overdue=args.skip_overdue))


if __name__ == "__main__":
    main()
