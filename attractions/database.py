from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import StaticPool

from attractions.config import settings

Base = declarative_base()


def build_engine(url: str = None, echo: bool = None) -> AsyncEngine:
    """Create the async engine for the document database"""
    url = url or settings.DATABASE_URL
    kwargs = {"echo": settings.DATABASE_ECHO if echo is None else echo}

    # In-memory sqlite must share one connection across sessions
    if url.startswith("sqlite") and (":memory:" in url or url.endswith("://")):
        kwargs["poolclass"] = StaticPool
        kwargs["connect_args"] = {"check_same_thread": False}

    return create_async_engine(url, **kwargs)


def build_sessionmaker(engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


async def create_tables(engine: AsyncEngine) -> None:
    """Create tables if they don't exist"""
    # Register models on Base.metadata
    from attractions import models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


engine = build_engine()
SessionLocal = build_sessionmaker(engine)

