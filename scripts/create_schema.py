#!/usr/bin/env python
"""Create the finalization engine tables in a database.

Usage:
    python scripts/create_schema.py
    python scripts/create_schema.py --database-url postgresql+asyncpg://...
    python scripts/create_schema.py --dry-run
"""

import argparse
import asyncio
import sys

from finalization_engine.config import get_settings
from finalization_engine.database import create_schema, get_engine
from finalization_engine.models import Base


async def run(database_url: str) -> None:
    engine = get_engine(database_url)
    try:
        await create_schema(engine)
    finally:
        await engine.dispose()


def main() -> int:
    parser = argparse.ArgumentParser(description="Create finalization engine tables")
    parser.add_argument(
        "--database-url",
        default=None,
        help="Async database URL (default: DATABASE_URL from environment)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="List the tables without creating them",
    )
    args = parser.parse_args()

    database_url = args.database_url or get_settings().database_url
    tables = sorted(Base.metadata.tables)

    print("=" * 60)
    print("Finalization Engine Schema")
    print("=" * 60)
    print(f"Database: {database_url.split('@')[-1]}")
    print(f"Tables: {len(tables)}")
    for name in tables:
        print(f"  - {name}")

    if args.dry_run:
        print("\n[DRY RUN] Nothing created")
        return 0

    try:
        asyncio.run(run(database_url))
    except Exception as e:
        print(f"\nERROR: {e}")
        return 1

    print("\nSchema created.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
