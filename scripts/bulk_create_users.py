#!/usr/bin/env python3
"""Import users from a CSV export straight into the database.

CSV columns: department,username,name,role (first line is a header).
A role of "중간관리자" becomes manager, anything else user. New accounts get
the default temporary password and this year's leave balances; usernames
that already exist are skipped.

Usage:
    python scripts/bulk_create_users.py users.csv
    python scripts/bulk_create_users.py users.csv --dry-run   # parse and list only
"""

import argparse
import asyncio
import logging
import sys
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
from leavedesk.users.schemas import BulkCreateUsersOut, UserCsvRow
from leavedesk.users.service import UserService, parse_user_csv

logger = logging.getLogger("bulk_create_users")


async def run_import(rows: list[UserCsvRow]) -> BulkCreateUsersOut:
    async with async_session_factory() as session:
        try:
            result = await UserService.bulk_create_users(session, rows)
            await session.commit()
        except Exception:
            await session.rollback()
            raise
    await engine.dispose()
    return result


def main():
    parser = argparse.ArgumentParser(
        description="Bulk-create LeaveDesk users from CSV",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("csv_path", type=Path, help="CSV file (UTF-8)")
    parser.add_argument("--dry-run", action="store_true",
                        help="Parse the file and list the rows without writing")
    args = parser.parse_args()

    configure_logging()

    rows = parse_user_csv(args.csv_path.read_text(encoding="utf-8"))
    logger.info("Found %d user rows in %s", len(rows), args.csv_path)

    if args.dry_run:
        for row in rows:
            print(f"{row.username:<12} {row.name:<10} {row.department or '-':<16} {row.role.value}")
        sys.exit(0)

    result = asyncio.run(run_import(rows))
    print(f"\n{'=' * 40}")
    print(f"  total   : {result.total}")
    print(f"  success : {result.success}")
    print(f"  skipped : {result.skipped}")
    print(f"  failed  : {result.failed}")
    print(f"{'=' * 40}")
    for line in result.errors:
        print(f"  ❌ {line}")

    sys.exit(1 if result.failed else 0)


if __name__ == "__main__":
    main()
