from __future__ import annotations

import asyncio

from aiogram import Bot
from aiogram.enums import ChatType, ParseMode
from aiogram.exceptions import TelegramBadRequest, TelegramForbiddenError
from aiogram.types import InlineKeyboardMarkup, Message

from trip_ledger_bot.config import settings


def require_group(message: Message) -> bool:
    return message.chat.type in (ChatType.GROUP, ChatType.SUPERGROUP)


async def safe_delete_message(bot: Bot, *, chat_id: int, message_id: int) -> bool:
    try:
        await bot.delete_message(chat_id=chat_id, message_id=message_id)
        return True
    except (TelegramBadRequest, TelegramForbiddenError):
        return False


def delete_later(bot: Bot, *, chat_id: int, message_id: int, delay_seconds: float) -> None:
    async def _job() -> None:
        await asyncio.sleep(delay_seconds)
        await safe_delete_message(bot, chat_id=chat_id, message_id=message_id)

    asyncio.create_task(_job())


async def answer_temporary(
    message: Message,
    bot: Bot,
    text: str,
    *,
    delay_seconds: float | None = None,
    reply_markup: InlineKeyboardMarkup | None = None,
) -> Message:
    msg = await message.answer(text, parse_mode=ParseMode.HTML, reply_markup=reply_markup)
    delay = settings.message_ttl_seconds if delay_seconds is None else delay_seconds
    delete_later(bot, chat_id=msg.chat.id, message_id=msg.message_id, delay_seconds=delay)
    return msg
