"""Script to initialize the database."""

import asyncio

from sqlalchemy import text

from operabase.database import engine
from operabase.models import metadata


async def init_db() -> None:
    """Initialize the database by creating all tables.

    Intended for local development; deployments run ``scripts/migrate.py``
    so the overlap exclusion constraint is installed too.
    """
    async with engine.begin() as conn:
        # Needed by the overlap constraint migration
        await conn.execute(text("CREATE EXTENSION IF NOT EXISTS btree_gist"))

        # Create all tables
        await conn.run_sync(metadata.create_all)

        print("✓ Database initialized successfully!")

    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(init_db())
