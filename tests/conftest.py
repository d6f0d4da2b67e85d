"""Shared fixtures: a throwaway SQLite database per test."""

import pytest_asyncio

from trendscope.core.db import build_engine, build_sessionmaker, create_all
from trendscope.core.repositories import TrendHistoryStore


@pytest_asyncio.fixture
async def session_factory(tmp_path):
    """Session factory bound to a fresh sqlite+aiosqlite database."""
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'trends.db'}")
    await create_all(engine)
    yield build_sessionmaker(engine)
    await engine.dispose()


@pytest_asyncio.fixture
async def store(session_factory):
    return TrendHistoryStore(session_factory)
