from __future__ import annotations

import argparse
import asyncio
import sys

from agrihero.core.config import get_settings
from agrihero.core.logging import configure_logging
from agrihero.persistence.sql import SqlRepository
from agrihero.services.seed import DEMO_ADMIN_USERNAME, seed_demo_data


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Load the AgriHero demo dataset into the relational store")
    parser.add_argument(
        "--database-url",
        default=None,
        help="SQLAlchemy async URL; defaults to DATABASE_URL from settings",
    )
    parser.add_argument(
        "--reset",
        action="store_true",
        help="Drop and recreate all tables before seeding",
    )
    return parser


async def seed_demo(args: argparse.Namespace) -> int:
    # Reuse the API settings so env config matches the running service.
    settings = get_settings()
    configure_logging(settings.log_level)
    repository = SqlRepository.from_url(args.database_url or settings.database_url, create_schema=True)
    try:
        await repository.startup()
        if args.reset:
            await repository.reset()
        if not await seed_demo_data(repository, settings):
            print("Demo data already present; skipping.")
            return 0
        print(f"Seeded demo data; log in as '{DEMO_ADMIN_USERNAME}'.")
        return 0
    finally:
        await repository.shutdown()


def main() -> int:
    # Surface clear failures and exit non-zero so CI/dev scripts can detect issues.
    args = _build_parser().parse_args()
    try:
        return asyncio.run(seed_demo(args))
    except Exception as exc:  # noqa: BLE001 - surface any setup or DB errors
        print(f"seed_demo failed: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
