from __future__ import annotations

from aiogram import Router

from trip_ledger_bot.bot.routers.common_callbacks import router as common_callbacks_router
from trip_ledger_bot.bot.routers.public import router as public_router
from trip_ledger_bot.bot.routers.split import router as split_router
from trip_ledger_bot.bot.routers.trip import router as trip_router


def all_routers() -> list[Router]:
    return [
        common_callbacks_router,
        trip_router,
        split_router,
        public_router,
    ]
