from typing import AsyncGenerator

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import StaticPool

from edusphere.core.config import settings


def build_engine(database_url: str) -> AsyncEngine:
    """
    Engine for the configured store. PostgreSQL (asyncpg) gets liveness checks
    and connection recycling; an in-memory SQLite database is pinned to a
    single connection so every session sees the same tables.
    """
    url = make_url(database_url)
    if url.get_backend_name() == "sqlite":
        kwargs = {"connect_args": {"check_same_thread": False}}
        if url.database in (None, "", ":memory:"):
            kwargs["poolclass"] = StaticPool
        return create_async_engine(url, echo=False, **kwargs)
    return create_async_engine(
        url,
        echo=False,
        pool_pre_ping=True,
        pool_recycle=300,
    )


def session_factory(bind: AsyncEngine) -> async_sessionmaker:
    # Objects stay readable after commit; responses are built from them
    return async_sessionmaker(bind=bind, class_=AsyncSession, expire_on_commit=False)


engine = build_engine(settings.database_url)
AsyncSessionLocal = session_factory(engine)

Base = declarative_base()


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with AsyncSessionLocal() as session:
        yield session


def get_session_factory() -> async_sessionmaker:
    """For long-lived handlers (websockets) that must not pin a connection for their whole lifetime."""
    return AsyncSessionLocal
