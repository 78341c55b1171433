"""
Create any missing tables from the ORM metadata.

Usage:
  python -m app.db.schema_check
"""
import asyncio

from sqlalchemy import inspect
from sqlalchemy.ext.asyncio import AsyncEngine

# Register every mapped table on Base.metadata
from app.auth.models import User  # noqa: F401
from app.core import models  # noqa: F401
from app.db.session import Base, engine


async def ensure_tables(db_engine: AsyncEngine) -> list:
    """Create missing tables (existing ones are left untouched). Returns the names created."""
    async with db_engine.begin() as conn:
        existing = await conn.run_sync(lambda sync_conn: set(inspect(sync_conn).get_table_names()))
        missing = [t.name for t in Base.metadata.sorted_tables if t.name not in existing]
        await conn.run_sync(Base.metadata.create_all)
    return missing


async def main() -> None:
    missing = await ensure_tables(engine)
    if missing:
        print("Created missing tables: " + ", ".join(missing))
    else:
        print("All required tables already exist in the database.")


if __name__ == "__main__":
    asyncio.run(main())
