"""
Create every table known to the ORM (idempotent).

Usage:
  python -m edusphere.db.schema
"""
import asyncio

from sqlalchemy.ext.asyncio import AsyncEngine

import edusphere.auth.models  # noqa: F401
import edusphere.core.models  # noqa: F401
from edusphere.db.session import Base, engine


async def create_tables(db_engine: AsyncEngine) -> None:
    async with db_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def main() -> None:
    await create_tables(engine)
    print("Tables: " + ", ".join(sorted(Base.metadata.tables)))


if __name__ == "__main__":
    asyncio.run(main())
