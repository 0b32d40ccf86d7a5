#!/usr/bin/env python3
"""
Internship Sweep Script

Runs one pass of the internship date sweep against DATABASE_URL: activates
upcoming internships whose start date has arrived and completes active ones
whose end date has passed. Useful as a cron job when the API process runs
with SWEEP_ENABLED=false, or to catch up after downtime.

Usage:
    python -m scripts.run_sweep                    # Sweep as of today
    python -m scripts.run_sweep --date 2026-09-01  # Sweep as of a given date
"""

import asyncio
import argparse
import logging
from datetime import date

# Add parent directory to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))

from app.infrastructure.db.database import close_db, init_db
from app.infrastructure.services.internship_sweep import InternshipSweep

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


async def main():
    parser = argparse.ArgumentParser(description="Run the internship date sweep once")
    parser.add_argument(
        "--date",
        type=date.fromisoformat,
        default=None,
        help="Run date as YYYY-MM-DD (default: today)"
    )
    args = parser.parse_args()

    await init_db()
    try:
        report = await InternshipSweep().run_once(args.date)
    finally:
        await close_db()

    print("\n=== Sweep Complete ===")
    print(f"Run date: {report.run_date.isoformat()}")
    print(f"Activated: {len(report.activated)}")
    print(f"Completed: {len(report.completed)}")
    print(f"Failed: {len(report.failed)}")
    for internship_id in report.failed:
        print(f"  FAILED: {internship_id}")


if __name__ == "__main__":
    asyncio.run(main())
