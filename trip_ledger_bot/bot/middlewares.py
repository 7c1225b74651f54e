from __future__ import annotations

from typing import Any, Awaitable, Callable

from aiogram import BaseMiddleware
from aiogram.types import CallbackQuery, Message, TelegramObject
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from trip_ledger_bot.services.members import ensure_chat, upsert_member
from trip_ledger_bot.services.trips import get_active_trip


class DbSessionMiddleware(BaseMiddleware):
    def __init__(self, sessionmaker: async_sessionmaker[AsyncSession]) -> None:
        super().__init__()
        self._sessionmaker = sessionmaker

    async def __call__(
        self,
        handler: Callable[[TelegramObject, dict[str, Any]], Awaitable[Any]],
        event: TelegramObject,
        data: dict[str, Any],
    ) -> Any:
        async with self._sessionmaker() as session:
            try:
                data["session"] = session
                result = await handler(event, data)
                await session.commit()
                return result
            except Exception:
                await session.rollback()
                raise


class UpsertChatMemberMiddleware(BaseMiddleware):
    """Registers the chat and sender, and exposes the chat's active trip as `trip_db`."""

    async def __call__(
        self,
        handler: Callable[[TelegramObject, dict[str, Any]], Awaitable[Any]],
        event: TelegramObject,
        data: dict[str, Any],
    ) -> Any:
        session: AsyncSession = data["session"]
        data.setdefault("chat_db", None)
        data.setdefault("member_db", None)
        data.setdefault("trip_db", None)

        tg_chat = None
        tg_user = None
        sender_chat = None

        if isinstance(event, Message):
            tg_chat = event.chat
            tg_user = event.from_user
            sender_chat = event.sender_chat
        elif isinstance(event, CallbackQuery) and event.message:
            tg_chat = event.message.chat
            tg_user = event.from_user
            sender_chat = event.message.sender_chat

        # Anonymous admins, channels and bots never become trip members.
        if tg_chat is None or tg_user is None or sender_chat is not None:
            return await handler(event, data)
        if tg_user.is_bot:
            return await handler(event, data)

        chat_db = await ensure_chat(session, tg_chat=tg_chat)
        data["chat_db"] = chat_db
        data["member_db"] = await upsert_member(session, user=tg_user)
        data["trip_db"] = await get_active_trip(session, chat_id=chat_db.id)
        return await handler(event, data)
