"""Seed the database with the demo catalog and demo accounts.

Creates missing tables first, then inserts rows that are not there yet, so the
script can be run repeatedly.

Usage:
    python scripts/db_seed.py

The script reads DATABASE_URL from the environment; default matches docker-compose.
"""
import asyncio
import logging
import sys
from pathlib import Path

# Ensure project root is on sys.path so the package imports without installing
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from gamestore.config import DATABASE_URL  # noqa: E402
from gamestore.database import async_session_maker, engine, init_db  # noqa: E402
from gamestore.seed import seed_catalog, seed_users  # noqa: E402

logger = logging.getLogger("db_seed")


async def main():
    logger.info("DB seed starting, DATABASE_URL=%s", DATABASE_URL)
    await init_db()
    async with async_session_maker() as session:
        await seed_catalog(session)
        await seed_users(session)
    await engine.dispose()
    logger.info("DB seed complete")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s [%(name)s] %(message)s")
    asyncio.run(main())
