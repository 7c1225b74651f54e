from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from trip_ledger_bot.config import settings


def create_engine(*, echo: bool | None = None) -> AsyncEngine:
    return create_async_engine(
        settings.database_url,
        echo=settings.sql_echo if echo is None else echo,
        pool_pre_ping=True,
    )


engine = create_engine()
SessionMaker = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)
