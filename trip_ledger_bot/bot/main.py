from __future__ import annotations

import asyncio
import logging

from aiogram import Bot, Dispatcher
from aiogram.client.default import DefaultBotProperties
from aiogram.enums import ParseMode
from aiogram.exceptions import TelegramUnauthorizedError
from aiogram.fsm.storage.memory import MemoryStorage

from trip_ledger_bot.bot.dashboard import DashboardManager
from trip_ledger_bot.bot.middlewares import DbSessionMiddleware, UpsertChatMemberMiddleware
from trip_ledger_bot.bot.routers import all_routers
from trip_ledger_bot.config import settings
from trip_ledger_bot.db.session import SessionMaker, engine
from trip_ledger_bot.log_setup import configure_logging
from trip_ledger_bot.services.categories import ensure_default_categories

logger = logging.getLogger(__name__)


async def main() -> None:
    configure_logging(settings.log_level, sql_echo=settings.sql_echo)

    bot = Bot(
        token=settings.bot_token,
        default=DefaultBotProperties(parse_mode=ParseMode.HTML),
    )
    try:
        try:
            me = await bot.get_me()
        except TelegramUnauthorizedError as e:
            logger.error("Telegram Unauthorized. Check BOT_TOKEN in .env (BotFather token). %s", e)
            raise

        async with SessionMaker() as session:
            await ensure_default_categories(session)
            await session.commit()

        dp = Dispatcher(storage=MemoryStorage())

        dp.update.middleware(DbSessionMiddleware(SessionMaker))
        dp.message.middleware(UpsertChatMemberMiddleware())
        dp.callback_query.middleware(UpsertChatMemberMiddleware())

        dashboard = DashboardManager(
            bot=bot,
            sessionmaker=SessionMaker,
            debounce_seconds=settings.dashboard_debounce_seconds,
        )

        dp.workflow_data.update({"dashboard": dashboard})

        for r in all_routers():
            dp.include_router(r)

        logger.info("Starting bot as @%s", me.username)
        await dp.start_polling(bot, allowed_updates=dp.resolve_used_update_types())
    finally:
        await bot.session.close()
        await engine.dispose()


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
