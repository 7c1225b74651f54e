from __future__ import annotations

from typing import Optional

import sqlalchemy as sa
from aiogram.types import Chat as TgChat
from aiogram.types import User as TgUser
from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from trip_ledger_bot.db.models import Chat, Member


async def ensure_chat(session: AsyncSession, *, tg_chat: TgChat) -> Chat:
    insert_stmt = insert(Chat).values(
        tg_chat_id=tg_chat.id,
        title=tg_chat.title,
    )
    stmt = (
        insert_stmt.on_conflict_do_update(
            index_elements=[Chat.tg_chat_id],
            set_={"title": sa.func.coalesce(insert_stmt.excluded.title, Chat.title)},
        )
        .returning(Chat)
    )
    res = await session.execute(stmt)
    return res.scalar_one()


async def upsert_member(session: AsyncSession, *, user: TgUser) -> Member:
    username = user.username.lower() if user.username else None
    first_name = user.first_name if user.first_name else None

    insert_stmt = insert(Member).values(
        tg_user_id=user.id,
        username=username,
        first_name=first_name,
    )
    stmt = (
        insert_stmt.on_conflict_do_update(
            index_elements=[Member.tg_user_id],
            set_={
                "username": insert_stmt.excluded.username,
                "first_name": insert_stmt.excluded.first_name,
            },
        )
        .returning(Member)
    )
    res = await session.execute(stmt)
    return res.scalar_one()


async def get_member_by_id(session: AsyncSession, *, member_id: int) -> Optional[Member]:
    return await session.get(Member, member_id)


async def get_member_by_tg_user_id(session: AsyncSession, *, tg_user_id: int) -> Optional[Member]:
    return await session.scalar(select(Member).where(Member.tg_user_id == tg_user_id))


async def get_member_by_username(session: AsyncSession, *, username: str) -> Optional[Member]:
    name = username.strip().lstrip("@").lower()
    if not name:
        return None
    return await session.scalar(select(Member).where(func.lower(Member.username) == name))


def display_name(m: Member) -> str:
    if m.first_name:
        return m.first_name
    if m.username:
        return f"@{m.username}"
    return str(m.tg_user_id)
