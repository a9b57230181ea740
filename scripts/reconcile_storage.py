#!/usr/bin/env python3
"""
Find (and optionally delete) clip files that no database row points at.

An upload writes the file first and the row second. If the process dies
in between, or the cleanup delete fails, the file is orphaned. Run this
periodically to list or remove such files.

Usage:
    python scripts/reconcile_storage.py           # list orphans only
    python scripts/reconcile_storage.py --delete  # list and delete

Objects younger than --min-age seconds (default one hour) are skipped,
since their upload may not have written its database row yet.

Requires:
    - .env file (or environment) with DATABASE_URL and the R2_* settings
"""

import asyncio
import logging
import sys
from pathlib import Path

# Make the dictation package importable when run from a checkout
sys.path.insert(0, str(Path(__file__).parent.parent))

from dictation.api.dependencies import get_storage_client
from dictation.config.settings import get_settings
from dictation.core.clips.reconciliation import DEFAULT_MIN_AGE_SECONDS, reconcile_storage
from dictation.infrastructure.database import ClipRepository, Database


async def run(delete: bool, min_age_seconds: float) -> int:
    settings = get_settings()

    missing_fields = settings.validate_required_fields()
    if missing_fields:
        print(f"ERROR: Missing required configuration: {', '.join(missing_fields)}")
        return 1

    database = Database(settings.database_url, echo=settings.database_echo)
    try:
        with database.session() as session:
            clip_urls = ClipRepository(session).list_urls()
    finally:
        database.dispose()
    print(f"Clips in database: {len(clip_urls)}")

    storage = get_storage_client(settings)
    orphans = await reconcile_storage(
        storage, clip_urls, delete=delete, min_age_seconds=min_age_seconds
    )

    if not orphans:
        print("No orphaned objects found")
        return 0

    print(f"\nOrphaned objects ({len(orphans)}):")
    for key in orphans:
        print(f"  {key}")

    if delete:
        remaining = [key for key in orphans if await storage.object_exists(key)]
        print(f"\nDeleted {len(orphans) - len(remaining)} of {len(orphans)}")
        return 0 if not remaining else 1

    print("\nRe-run with --delete to remove them")
    return 0


def main():
    import argparse

    parser = argparse.ArgumentParser(description='Find clip files with no database row')
    parser.add_argument('--delete', action='store_true', help='Delete the orphaned objects')
    parser.add_argument(
        '--min-age',
        type=float,
        default=DEFAULT_MIN_AGE_SECONDS,
        help='Ignore objects uploaded less than this many seconds ago (default: %(default)s)',
    )
    args = parser.parse_args()

    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=logging.INFO,
    )

    sys.exit(asyncio.run(run(delete=args.delete, min_age_seconds=args.min_age)))


if __name__ == '__main__':
    main()
