from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Optional

from aiogram import Bot
from aiogram.enums import ParseMode
from aiogram.exceptions import TelegramAPIError, TelegramBadRequest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from trip_ledger_bot.bot.dashboard_render import render_dashboard
from trip_ledger_bot.db.models import Chat, Trip
from trip_ledger_bot.services.expenses import load_trip_snapshot
from trip_ledger_bot.services.ledger import compute_balances, compute_settlement, compute_trip_totals
from trip_ledger_bot.services.trips import get_active_trip

logger = logging.getLogger(__name__)


@dataclass
class _ChatDashState:
    lock: asyncio.Lock
    pending: Optional[asyncio.Task]
    dirty: bool
    last_edit_monotonic: float


class DashboardManager:
    """Keeps one pinned, debounced summary message per trip chat."""

    def __init__(
        self,
        *,
        bot: Bot,
        sessionmaker: async_sessionmaker[AsyncSession],
        debounce_seconds: float,
    ) -> None:
        self._bot = bot
        self._sessionmaker = sessionmaker
        self._debounce = debounce_seconds
        self._states: dict[int, _ChatDashState] = {}

    def schedule(self, tg_chat_id: int) -> None:
        state = self._states.get(tg_chat_id)
        if state is None:
            state = _ChatDashState(lock=asyncio.Lock(), pending=None, dirty=False, last_edit_monotonic=0.0)
            self._states[tg_chat_id] = state

        state.dirty = True
        if state.pending is None or state.pending.done():
            state.pending = asyncio.create_task(self._worker(tg_chat_id))

    async def _worker(self, tg_chat_id: int) -> None:
        try:
            while True:
                state = self._states.get(tg_chat_id)
                if state is None:
                    return

                wait_s = max(0.0, self._debounce - (time.monotonic() - state.last_edit_monotonic))
                await asyncio.sleep(wait_s)

                async with state.lock:
                    if not state.dirty:
                        return
                    state.dirty = False

                await self._update(tg_chat_id)

                async with state.lock:
                    state.last_edit_monotonic = time.monotonic()
        except Exception:
            logger.exception("Dashboard worker crashed for tg_chat_id=%s", tg_chat_id)

    async def _update(self, tg_chat_id: int) -> None:
        async with self._sessionmaker() as session:
            chat = await session.scalar(select(Chat).where(Chat.tg_chat_id == tg_chat_id))
            if chat is None:
                return
            trip = await get_active_trip(session, chat_id=chat.id)
            if trip is None:
                return

            roster, expenses = await load_trip_snapshot(session, trip_id=trip.id)
            balances = compute_balances(trip.id, roster, expenses)
            text = render_dashboard(
                trip=trip,
                totals=compute_trip_totals(expenses),
                balances=balances,
                transfers=compute_settlement(balances),
            )

            if trip.dashboard_message_id is None:
                await self._post_new(session, trip, tg_chat_id=tg_chat_id, text=text)
                return

            try:
                await self._bot.edit_message_text(
                    chat_id=tg_chat_id,
                    message_id=trip.dashboard_message_id,
                    text=text,
                    parse_mode=ParseMode.HTML,
                    disable_web_page_preview=True,
                )
            except TelegramBadRequest as e:
                if "message is not modified" in str(e).lower():
                    return
                # Deleted or no longer editable: post a fresh one.
                await self._post_new(session, trip, tg_chat_id=tg_chat_id, text=text)

    async def _post_new(self, session: AsyncSession, trip: Trip, *, tg_chat_id: int, text: str) -> None:
        old_id = trip.dashboard_message_id
        msg = await self._bot.send_message(
            chat_id=tg_chat_id,
            text=text,
            parse_mode=ParseMode.HTML,
            disable_web_page_preview=True,
        )
        trip.dashboard_message_id = msg.message_id
        await session.commit()
        try:
            if old_id and old_id != msg.message_id:
                await self._bot.unpin_chat_message(chat_id=tg_chat_id, message_id=old_id)
            await self._bot.pin_chat_message(chat_id=tg_chat_id, message_id=msg.message_id, disable_notification=True)
        except TelegramAPIError as e:
            # Pinning needs admin rights; the dashboard works without it.
            logger.info("Could not pin dashboard in tg_chat_id=%s: %s", tg_chat_id, e)
