#!/usr/bin/env python
"""Check that the venue schema is migrated and usable.

Reports the applied migration against the newest one on disk, the venue
indexes and check constraints the model expects, and the current venue
totals.

Usage:
    python scripts/check_db.py
"""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path
from typing import Any

from alembic.script import ScriptDirectory
from sqlalchemy import inspect, text
from sqlalchemy.exc import SQLAlchemyError

from barcompass.core.config import get_settings
from barcompass.core.database import dispose_engine, get_engine, get_session_maker
from barcompass.core.exceptions import DatabaseError
from barcompass.features.venues.models import expected_check_names, expected_index_names
from barcompass.features.venues.repository import VenueRepository

MIGRATIONS_DIR = Path(__file__).resolve().parents[1] / "alembic"


def _inspect_venue(sync_conn: Any) -> tuple[set[str], set[str]]:
    inspector = inspect(sync_conn)
    indexes = {ix["name"] for ix in inspector.get_indexes("venue") if ix.get("name")}
    checks = {ck["name"] for ck in inspector.get_check_constraints("venue") if ck.get("name")}
    return indexes, checks


async def check_database() -> int:
    """Inspect the venue schema; returns the process exit code."""
    settings = get_settings()
    head = ScriptDirectory(str(MIGRATIONS_DIR)).get_current_head()

    print("BarCompass - Venue Schema Check")
    print("=" * 45)
    print(f"Database: {settings.database_url.split('@')[-1]}")
    print(f"Latest migration: {head}")
    print()

    problems = 0
    try:
        async with get_engine().connect() as conn:
            has_versions = (
                await conn.execute(text("SELECT to_regclass('public.alembic_version') IS NOT NULL"))
            ).scalar()
            applied = None
            if has_versions:
                result = await conn.execute(text("SELECT version_num FROM alembic_version"))
                applied = result.scalar()
            if applied == head:
                print(f"[OK] Migration {applied} applied")
            else:
                problems += 1
                print(f"[WARN] Applied migration is {applied or 'none'}; run: alembic upgrade head")

            has_venue = (
                await conn.execute(text("SELECT to_regclass('public.venue') IS NOT NULL"))
            ).scalar()
            if not has_venue:
                print("[FAIL] venue table missing")
                return 1

            indexes, checks = await conn.run_sync(_inspect_venue)

        missing_indexes = sorted(expected_index_names() - indexes)
        if missing_indexes:
            problems += 1
            print(f"[WARN] Missing indexes: {', '.join(missing_indexes)}")
        else:
            print(f"[OK] {len(indexes)} venue indexes present")

        missing_checks = sorted(expected_check_names() - checks)
        if missing_checks:
            problems += 1
            print(f"[WARN] Missing check constraints: {', '.join(missing_checks)}")
        else:
            print(f"[OK] {len(checks)} venue check constraints present")

        async with get_session_maker()() as session:
            stats = await VenueRepository(session).get_stats()
        print(
            f"[OK] {stats.total} venues ({stats.verified} verified), "
            f"average rating {stats.average_rating if stats.average_rating is not None else 'n/a'}"
        )
        for source, count in sorted(stats.by_data_source.items()):
            print(f"       {source}: {count}")

    except (SQLAlchemyError, DatabaseError, OSError) as e:
        print(f"[FAIL] {type(e).__name__}: {e}")
        print()
        print("Troubleshooting:")
        print("  1. Ensure PostgreSQL is running: docker-compose up -d")
        print("  2. Check DATABASE_URL in .env")
        return 1
    finally:
        await dispose_engine()

    print()
    if problems:
        print(f"Schema check finished with {problems} warning(s)")
        return 2
    print("Schema check passed")
    return 0


def main() -> None:
    sys.exit(asyncio.run(check_database()))


if __name__ == "__main__":
    main()
