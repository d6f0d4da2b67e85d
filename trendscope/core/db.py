"""Database module with async SQLAlchemy engine and session management."""

from functools import lru_cache
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from .settings import get_settings

# SQLAlchemy base for models
Base = declarative_base()


def build_engine(db_url: Optional[str] = None, echo: bool = False) -> AsyncEngine:
    """Create an async engine; pool sizing only applies to server databases."""
    db_url = db_url or get_settings().db_url
    kwargs = {"echo": echo}
    if not db_url.startswith("sqlite"):
        kwargs.update(pool_size=10, max_overflow=20)
    return create_async_engine(db_url, **kwargs)


def build_sessionmaker(engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@lru_cache()
def get_engine() -> AsyncEngine:
    """Application engine, created on first use."""
    return build_engine(echo=get_settings().debug)


@lru_cache()
def get_sessionmaker() -> async_sessionmaker:
    """Application session factory."""
    return build_sessionmaker(get_engine())


async def create_all(engine: Optional[AsyncEngine] = None) -> None:
    """Create all tables in the database."""
    from . import models  # noqa: F401  registers tables on Base.metadata

    engine = engine or get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)



async def dispose_engine() -> None:
    """Close the application engine's pool if it was ever created."""
    if get_engine.cache_info().currsize:
        await get_engine().dispose()
        get_sessionmaker.cache_clear()
        get_engine.cache_clear()
