from __future__ import annotations

from typing import Optional

from aiogram import Bot, Router
from aiogram.filters import Command, CommandObject
from aiogram.types import Message
from sqlalchemy.ext.asyncio import AsyncSession

from trip_ledger_bot.bot.dashboard import DashboardManager
from trip_ledger_bot.bot.keyboards import close_keyboard
from trip_ledger_bot.bot.parsing import parse_newtrip_args
from trip_ledger_bot.bot.text import esc, member_label
from trip_ledger_bot.bot.utils import answer_temporary, require_group, safe_delete_message
from trip_ledger_bot.config import settings
from trip_ledger_bot.db.models import Chat, Member, Trip
from trip_ledger_bot.services.categories import add_trip_category
from trip_ledger_bot.services.trips import create_trip, get_trip_by_code, join_trip, list_roster

router = Router(name=__name__)


@router.message(Command("newtrip"))
async def newtrip_cmd(
    message: Message,
    command: CommandObject,
    bot: Bot,
    session: AsyncSession,
    chat_db: Optional[Chat],
    member_db: Optional[Member],
    dashboard: DashboardManager,
) -> None:
    if not require_group(message) or chat_db is None or member_db is None:
        return
    await safe_delete_message(bot, chat_id=message.chat.id, message_id=message.message_id)
    try:
        name, currency = parse_newtrip_args(command.args, default_currency=settings.default_currency)
        trip = await create_trip(
            session,
            chat_id=chat_db.id,
            owner_member_id=member_db.id,
            name=name,
            currency=currency,
        )
    except ValueError as e:
        await answer_temporary(message, bot, esc(str(e)), delay_seconds=10)
        return

    await answer_temporary(
        message,
        bot,
        f"🧳 Trip <b>{esc(trip.name)}</b> started ({trip.currency}).\n"
        f"Join with /join or, from another chat, <code>/join {trip.code}</code>.",
    )
    dashboard.schedule(message.chat.id)


@router.message(Command("join"))
async def join_cmd(
    message: Message,
    command: CommandObject,
    bot: Bot,
    session: AsyncSession,
    member_db: Optional[Member],
    trip_db: Optional[Trip],
    dashboard: DashboardManager,
) -> None:
    if not require_group(message) or member_db is None:
        return
    await safe_delete_message(bot, chat_id=message.chat.id, message_id=message.message_id)

    code = (command.args or "").strip()
    trip = await get_trip_by_code(session, code=code) if code else trip_db
    if trip is None:
        text = "No trip with that code." if code else "No trip in this chat yet. Start one with /newtrip."
        await answer_temporary(message, bot, text, delay_seconds=10)
        return

    try:
        await join_trip(session, trip_id=trip.id, member_id=member_db.id)
    except ValueError as e:
        await answer_temporary(message, bot, esc(str(e)), delay_seconds=10)
        return

    await answer_temporary(message, bot, f"{esc(member_label(member_db))} joined <b>{esc(trip.name)}</b>.", delay_seconds=30)
    if trip_db is not None and trip.id == trip_db.id:
        dashboard.schedule(message.chat.id)


@router.message(Command("trip"))
async def trip_cmd(
    message: Message,
    bot: Bot,
    session: AsyncSession,
    trip_db: Optional[Trip],
) -> None:
    if not require_group(message):
        return
    await safe_delete_message(bot, chat_id=message.chat.id, message_id=message.message_id)
    if trip_db is None:
        await answer_temporary(message, bot, "No trip in this chat yet. Start one with /newtrip.", delay_seconds=10)
        return

    roster = await list_roster(session, trip_id=trip_db.id)
    members_txt = "\n".join(esc(member_label(m)) for m in roster) or "No members yet."
    await answer_temporary(
        message,
        bot,
        f"🧳 <b>{esc(trip_db.name)}</b>\n"
        f"Code: <code>{esc(trip_db.code)}</code>\n"
        f"Currency: {esc(trip_db.currency)}\n\n"
        f"<b>Members ({len(roster)}):</b>\n{members_txt}",
        reply_markup=close_keyboard(initiator_user_id=message.from_user.id),
    )


@router.message(Command("addcategory"))
async def addcategory_cmd(
    message: Message,
    command: CommandObject,
    bot: Bot,
    session: AsyncSession,
    member_db: Optional[Member],
    trip_db: Optional[Trip],
) -> None:
    if not require_group(message) or member_db is None:
        return
    await safe_delete_message(bot, chat_id=message.chat.id, message_id=message.message_id)
    if trip_db is None:
        await answer_temporary(message, bot, "No trip in this chat yet. Start one with /newtrip.", delay_seconds=10)
        return

    # "/addcategory snacks 🍿"
    parts = (command.args or "").split()
    if not parts or len(parts) > 2:
        await answer_temporary(message, bot, "Usage: /addcategory &lt;name&gt; [icon]", delay_seconds=10)
        return
    try:
        category = await add_trip_category(
            session,
            trip_id=trip_db.id,
            name=parts[0],
            icon=parts[1] if len(parts) > 1 else None,
        )
    except ValueError as e:
        await answer_temporary(message, bot, esc(str(e)), delay_seconds=10)
        return
    await answer_temporary(message, bot, f"{esc(category.icon)} Category <b>#{esc(category.name)}</b> added.", delay_seconds=30)
