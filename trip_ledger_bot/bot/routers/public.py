from __future__ import annotations

import logging
from typing import Optional

from aiogram import Bot, Router
from aiogram.filters import Command, CommandStart
from aiogram.types import Message
from sqlalchemy.ext.asyncio import AsyncSession

from trip_ledger_bot.bot.keyboards import close_keyboard
from trip_ledger_bot.bot.text import HELP_TEXT, esc, format_balance, format_money, member_label
from trip_ledger_bot.bot.utils import answer_temporary, require_group, safe_delete_message
from trip_ledger_bot.db.models import Trip
from trip_ledger_bot.services.categories import category_label, list_categories
from trip_ledger_bot.services.errors import InvariantViolation
from trip_ledger_bot.services.expenses import get_last_expenses, trip_balances
from trip_ledger_bot.services.ledger import Balance, compute_settlement

logger = logging.getLogger(__name__)

router = Router(name=__name__)

NO_TRIP = "No trip in this chat yet. Start one with /newtrip."
LEDGER_BROKEN = "This trip's ledger is inconsistent and balances cannot be shown. The bot admin has been notified."


async def _balances_or_report(message: Message, bot: Bot, session: AsyncSession, trip: Trip) -> Optional[list[Balance]]:
    try:
        return await trip_balances(session, trip_id=trip.id)
    except InvariantViolation:
        logger.exception("Refusing to show balances for trip_id=%s", trip.id)
        await answer_temporary(message, bot, LEDGER_BROKEN, delay_seconds=30)
        return None


@router.message(CommandStart())
@router.message(Command("help"))
async def help_cmd(message: Message, bot: Bot) -> None:
    await answer_temporary(
        message,
        bot,
        HELP_TEXT,
        delay_seconds=300,
        reply_markup=close_keyboard(initiator_user_id=message.from_user.id),
    )


@router.message(Command("balance"))
async def balance_cmd(message: Message, bot: Bot, session: AsyncSession, trip_db: Optional[Trip]) -> None:
    if not require_group(message):
        return
    await safe_delete_message(bot, chat_id=message.chat.id, message_id=message.message_id)
    if trip_db is None:
        await answer_temporary(message, bot, NO_TRIP, delay_seconds=10)
        return

    balances = await _balances_or_report(message, bot, session, trip_db)
    if balances is None:
        return
    lines = [f"{b.name}: {format_balance(b.net_cents, trip_db.currency)}" for b in balances[:30]]
    if not lines:
        lines = ["No members yet."]

    await answer_temporary(
        message,
        bot,
        "<b>Balances</b>\n<pre>" + esc("\n".join(lines)) + "</pre>",
        reply_markup=close_keyboard(initiator_user_id=message.from_user.id),
    )


@router.message(Command("settle"))
async def settle_cmd(message: Message, bot: Bot, session: AsyncSession, trip_db: Optional[Trip]) -> None:
    if not require_group(message):
        return
    await safe_delete_message(bot, chat_id=message.chat.id, message_id=message.message_id)
    if trip_db is None:
        await answer_temporary(message, bot, NO_TRIP, delay_seconds=10)
        return

    balances = await _balances_or_report(message, bot, session, trip_db)
    if balances is None:
        return
    names = {b.member_id: b.name for b in balances}
    lines = [
        f"{names[t.from_member_id]} → {names[t.to_member_id]}: {format_money(t.amount_cents, trip_db.currency)}"
        for t in compute_settlement(balances)[:30]
    ]
    if not lines:
        lines = ["Everyone is settled up."]

    await answer_temporary(
        message,
        bot,
        "<b>Suggested payments</b>\n<pre>" + esc("\n".join(lines)) + "</pre>",
        reply_markup=close_keyboard(initiator_user_id=message.from_user.id),
    )


@router.message(Command("expenses"))
async def expenses_cmd(message: Message, bot: Bot, session: AsyncSession, trip_db: Optional[Trip]) -> None:
    if not require_group(message):
        return
    await safe_delete_message(bot, chat_id=message.chat.id, message_id=message.message_id)
    if trip_db is None:
        await answer_temporary(message, bot, NO_TRIP, delay_seconds=10)
        return

    lines = []
    for e in await get_last_expenses(session, trip_id=trip_db.id, limit=10):
        tag = " (personal)" if e.is_personal else ""
        cat = f" [{category_label(e.category)}]" if e.category is not None else ""
        note = f" {e.description}" if e.description else ""
        lines.append(f"#{e.id} {member_label(e.payer)}: {format_money(e.amount_cents, trip_db.currency)}{tag}{cat}{note}")
    if not lines:
        lines = ["No expenses yet."]

    await answer_temporary(
        message,
        bot,
        "<b>Last expenses</b>\n<pre>" + esc("\n".join(lines)) + "</pre>",
        reply_markup=close_keyboard(initiator_user_id=message.from_user.id),
    )


@router.message(Command("categories"))
async def categories_cmd(message: Message, bot: Bot, session: AsyncSession, trip_db: Optional[Trip]) -> None:
    if not require_group(message):
        return
    await safe_delete_message(bot, chat_id=message.chat.id, message_id=message.message_id)

    categories = await list_categories(session, trip_id=trip_db.id if trip_db else None)
    lines = [f"{c.icon} #{c.name}" for c in categories] or ["No categories yet."]
    await answer_temporary(
        message,
        bot,
        "<b>Categories</b>\n" + esc("\n".join(lines)) + "\n\nTag an expense: <code>/spent 12.50 #food lunch</code>",
        reply_markup=close_keyboard(initiator_user_id=message.from_user.id),
    )
