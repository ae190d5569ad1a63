#!/usr/bin/env python3
"""Grant a year's leave totals to every user.

Missing balance rows are created; existing rows get the new total while
keeping what was already used.

Usage:
    python scripts/init_leave_year.py 2027
    python scripts/init_leave_year.py 2027 --annual 16 --comp 1
"""

import argparse
import asyncio
import json
import logging
import sys
from decimal import Decimal
from pathlib import Path

# ── Path setup ────────────────────────────────────────────────────────
SCRIPT_DIR = Path(__file__).resolve().parent
PROJECT_ROOT = SCRIPT_DIR.parent
sys.path.insert(0, str(PROJECT_ROOT))

from dotenv import load_dotenv

load_dotenv(PROJECT_ROOT / ".env")

import leavedesk.attendance.models  # noqa: F401  (registers every mapped class)
from leavedesk.common.log import configure_logging
from leavedesk.database import async_session_factory, engine
from leavedesk.leave.schemas import BulkInitializeOut
from leavedesk.leave.service import LeaveLedger

logger = logging.getLogger("init_leave_year")


async def run(year: int, annual: Decimal, comp: Decimal) -> BulkInitializeOut:
    async with async_session_factory() as session:
        try:
            result = await LeaveLedger.bulk_initialize(session, year, annual, comp)
            await session.commit()
        except Exception:
            await session.rollback()
            raise
    await engine.dispose()
    return result


def main():
    parser = argparse.ArgumentParser(description="Initialize leave balances for a year")
    parser.add_argument("year", type=int)
    parser.add_argument("--annual", type=Decimal, default=Decimal("15"),
                        help="Annual leave total (default: 15)")
    parser.add_argument("--comp", type=Decimal, default=Decimal("0"),
                        help="Compensatory leave total (default: 0)")
    args = parser.parse_args()

    configure_logging()
    result = asyncio.run(run(args.year, args.annual, args.comp))
    print(json.dumps(result.model_dump(mode="json"), indent=2))
    sys.exit(1 if result.failed_users else 0)


if __name__ == "__main__":
    main()
