from __future__ import annotations

import os

# Settings() is built at import time and needs these.
os.environ.setdefault("BOT_TOKEN", "123456:test-token")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from trip_ledger_bot.db.models import Base, Chat, Member


@pytest.fixture
async def session():
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    maker = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)
    async with maker() as s:
        yield s
    await engine.dispose()


@pytest.fixture
async def chat(session):
    c = Chat(tg_chat_id=-100123, title="Lisbon crew")
    session.add(c)
    await session.flush()
    return c


@pytest.fixture
def add_member(session):
    async def _add(tg_user_id: int, first_name: str, username: str | None = None) -> Member:
        m = Member(tg_user_id=tg_user_id, first_name=first_name, username=username)
        session.add(m)
        await session.flush()
        return m

    return _add
