from __future__ import annotations

from typing import Optional

from aiogram import Bot, F, Router
from aiogram.enums import ParseMode
from aiogram.filters import Command, CommandObject
from aiogram.fsm.context import FSMContext
from aiogram.types import CallbackQuery, Message
from sqlalchemy.ext.asyncio import AsyncSession

from trip_ledger_bot.bot.callbacks import ConfirmCb, DigitCb, NumActionCb, PageCb, PickPayerCb, SplitParticipantsActionCb, ToggleParticipantCb
from trip_ledger_bot.bot.dashboard import DashboardManager
from trip_ledger_bot.bot.keyboards import confirm_keyboard, numeric_keyboard, participants_keyboard, payer_keyboard
from trip_ledger_bot.bot.parsing import SELF_TOKEN, append_amount_digit, parse_custom_expense, parse_quick_expense
from trip_ledger_bot.bot.text import esc, format_money, member_label
from trip_ledger_bot.bot.utils import answer_temporary, require_group, safe_delete_message
from trip_ledger_bot.db.models import Member, Trip
from trip_ledger_bot.services.categories import find_category
from trip_ledger_bot.services.expenses import create_expense
from trip_ledger_bot.services.members import get_member_by_username
from trip_ledger_bot.services.money import parse_amount
from trip_ledger_bot.services.splits import CustomSplit, EqualSplit
from trip_ledger_bot.services.trips import list_roster

router = Router(name=__name__)

NOT_FOR_YOU = "This button is not for you."
EXPIRED = "This form has expired. Run /split again."


def _amount_screen(amount_s: str, currency: str) -> str:
    return (
        "<b>New expense</b>\n"
        f"Amount: <b>{esc(amount_s or '0')} {esc(currency)}</b>\n\n"
        "Type the amount with the keypad."
    )


async def _require_trip_member(message: Message, bot: Bot, session: AsyncSession, trip_db: Optional[Trip], member_db: Optional[Member]) -> bool:
    if trip_db is None or member_db is None:
        await answer_temporary(message, bot, "No trip in this chat yet. Start one with /newtrip.", delay_seconds=10)
        return False
    roster_ids = {m.id for m in await list_roster(session, trip_id=trip_db.id)}
    if member_db.id not in roster_ids:
        await answer_temporary(message, bot, "Join the trip first with /join.", delay_seconds=10)
        return False
    return True


# --- /split wizard: amount -> payer -> participants -> confirm -------------


@router.message(Command("split"))
async def split_cmd(
    message: Message,
    bot: Bot,
    session: AsyncSession,
    trip_db: Optional[Trip],
    member_db: Optional[Member],
    state: FSMContext,
) -> None:
    if not require_group(message):
        return
    await safe_delete_message(bot, chat_id=message.chat.id, message_id=message.message_id)
    if not await _require_trip_member(message, bot, session, trip_db, member_db):
        return
    await state.clear()
    await state.update_data(
        trip_id=trip_db.id,
        amount_str="",
        payer_member_id=None,
        participant_ids=[],
    )
    wizard = await message.answer(
        _amount_screen("", trip_db.currency),
        parse_mode=ParseMode.HTML,
        reply_markup=numeric_keyboard(initiator_user_id=message.from_user.id),
    )
    await state.update_data(wizard_message_id=wizard.message_id)


@router.callback_query(DigitCb.filter())
async def split_digit_cb(callback: CallbackQuery, callback_data: DigitCb, trip_db: Optional[Trip], state: FSMContext) -> None:
    if callback.from_user.id != callback_data.initiator:
        await callback.answer(NOT_FOR_YOU, show_alert=True)
        return
    data = await state.get_data()
    if trip_db is None or data.get("trip_id") != trip_db.id:
        await callback.answer(EXPIRED, show_alert=True)
        return
    amount_s = append_amount_digit(str(data.get("amount_str") or ""), str(callback_data.digit))
    if amount_s is None:
        await callback.answer()
        return
    await state.update_data(amount_str=amount_s)
    await callback.message.edit_text(
        _amount_screen(amount_s, trip_db.currency),
        parse_mode=ParseMode.HTML,
        reply_markup=numeric_keyboard(initiator_user_id=callback.from_user.id),
    )
    await callback.answer()


@router.callback_query(NumActionCb.filter(F.action != "cancel"))
async def split_num_action_cb(
    callback: CallbackQuery,
    callback_data: NumActionCb,
    session: AsyncSession,
    trip_db: Optional[Trip],
    state: FSMContext,
) -> None:
    if callback.from_user.id != callback_data.initiator:
        await callback.answer(NOT_FOR_YOU, show_alert=True)
        return
    data = await state.get_data()
    if trip_db is None or data.get("trip_id") != trip_db.id:
        await callback.answer(EXPIRED, show_alert=True)
        return
    amount_s = str(data.get("amount_str") or "")

    if callback_data.action == "back":
        amount_s = amount_s[:-1]
    elif callback_data.action == "clear":
        amount_s = ""
    elif callback_data.action == "dot":
        new_s = append_amount_digit(amount_s, ".")
        if new_s is None:
            await callback.answer()
            return
        amount_s = new_s
    elif callback_data.action == "ok":
        try:
            amount_cents = parse_amount(amount_s)
        except ValueError as e:
            await callback.answer(str(e), show_alert=True)
            return
        roster = await list_roster(session, trip_id=trip_db.id)
        await state.update_data(amount_cents=amount_cents, payer_page=0)
        await callback.message.edit_text(
            "<b>New expense</b>\n"
            f"Amount: <b>{format_money(amount_cents, trip_db.currency)}</b>\n\n"
            "Who paid?",
            parse_mode=ParseMode.HTML,
            reply_markup=payer_keyboard(initiator_user_id=callback.from_user.id, members=roster, page=0),
        )
        await callback.answer()
        return
    else:
        return

    await state.update_data(amount_str=amount_s)
    await callback.message.edit_text(
        _amount_screen(amount_s, trip_db.currency),
        parse_mode=ParseMode.HTML,
        reply_markup=numeric_keyboard(initiator_user_id=callback.from_user.id),
    )
    await callback.answer()


@router.callback_query(PageCb.filter())
async def split_pages_cb(callback: CallbackQuery, callback_data: PageCb, session: AsyncSession, trip_db: Optional[Trip], state: FSMContext) -> None:
    if callback.from_user.id != callback_data.initiator or trip_db is None:
        await callback.answer()
        return
    roster = await list_roster(session, trip_id=trip_db.id)
    if callback_data.flow == "payer":
        markup = payer_keyboard(initiator_user_id=callback.from_user.id, members=roster, page=callback_data.page)
    else:
        data = await state.get_data()
        await state.update_data(participants_page=callback_data.page)
        markup = participants_keyboard(
            initiator_user_id=callback.from_user.id,
            members=roster,
            selected_ids=set(int(x) for x in data.get("participant_ids", [])),
            page=callback_data.page,
        )
    await callback.message.edit_reply_markup(reply_markup=markup)
    await callback.answer()


@router.callback_query(PickPayerCb.filter())
async def split_pick_payer_cb(
    callback: CallbackQuery,
    callback_data: PickPayerCb,
    session: AsyncSession,
    trip_db: Optional[Trip],
    state: FSMContext,
) -> None:
    if callback.from_user.id != callback_data.initiator:
        await callback.answer(NOT_FOR_YOU, show_alert=True)
        return
    data = await state.get_data()
    amount_cents = int(data.get("amount_cents") or 0)
    if trip_db is None or data.get("trip_id") != trip_db.id or amount_cents <= 0:
        await callback.answer(EXPIRED, show_alert=True)
        return

    roster = await list_roster(session, trip_id=trip_db.id)
    payer = next((m for m in roster if m.id == callback_data.member_id), None)
    selected = {m.id for m in roster}
    await state.update_data(payer_member_id=callback_data.member_id, participant_ids=list(selected), participants_page=0)

    await callback.message.edit_text(
        "<b>New expense</b>\n"
        f"Amount: <b>{format_money(amount_cents, trip_db.currency)}</b>\n"
        f"Paid by: <b>{esc(member_label(payer)) if payer else callback_data.member_id}</b>\n\n"
        "Split between:",
        parse_mode=ParseMode.HTML,
        reply_markup=participants_keyboard(
            initiator_user_id=callback.from_user.id,
            members=roster,
            selected_ids=selected,
            page=0,
        ),
    )
    await callback.answer()


@router.callback_query(ToggleParticipantCb.filter())
async def split_toggle_participant_cb(
    callback: CallbackQuery,
    callback_data: ToggleParticipantCb,
    session: AsyncSession,
    trip_db: Optional[Trip],
    state: FSMContext,
) -> None:
    if callback.from_user.id != callback_data.initiator:
        await callback.answer(NOT_FOR_YOU, show_alert=True)
        return
    if trip_db is None:
        await callback.answer(EXPIRED, show_alert=True)
        return
    data = await state.get_data()
    selected = set(int(x) for x in data.get("participant_ids", []))
    selected ^= {callback_data.member_id}
    await state.update_data(participant_ids=list(selected))
    roster = await list_roster(session, trip_id=trip_db.id)
    await callback.message.edit_reply_markup(
        reply_markup=participants_keyboard(
            initiator_user_id=callback.from_user.id,
            members=roster,
            selected_ids=selected,
            page=int(data.get("participants_page") or 0),
        )
    )
    await callback.answer()


@router.callback_query(SplitParticipantsActionCb.filter())
async def split_participants_action_cb(
    callback: CallbackQuery,
    callback_data: SplitParticipantsActionCb,
    session: AsyncSession,
    trip_db: Optional[Trip],
    state: FSMContext,
) -> None:
    if callback.from_user.id != callback_data.initiator:
        await callback.answer(NOT_FOR_YOU, show_alert=True)
        return
    data = await state.get_data()
    amount_cents = int(data.get("amount_cents") or 0)
    payer_member_id = data.get("payer_member_id")
    if trip_db is None or data.get("trip_id") != trip_db.id or amount_cents <= 0 or not payer_member_id:
        await callback.answer(EXPIRED, show_alert=True)
        return

    roster = await list_roster(session, trip_id=trip_db.id)
    page = int(data.get("participants_page") or 0)
    if callback_data.action in ("all", "clear"):
        selected = {m.id for m in roster} if callback_data.action == "all" else set()
        await state.update_data(participant_ids=list(selected))
        await callback.message.edit_reply_markup(
            reply_markup=participants_keyboard(
                initiator_user_id=callback.from_user.id,
                members=roster,
                selected_ids=selected,
                page=page,
            )
        )
        await callback.answer()
        return
    if callback_data.action == "done":
        selected = set(int(x) for x in data.get("participant_ids", []))
        if not selected:
            await callback.answer("Select at least one participant.", show_alert=True)
            return
        payer = next((m for m in roster if m.id == int(payer_member_id)), None)
        await callback.message.edit_text(
            "<b>New expense</b>\n"
            f"Amount: <b>{format_money(amount_cents, trip_db.currency)}</b>\n"
            f"Paid by: <b>{esc(member_label(payer)) if payer else payer_member_id}</b>\n"
            f"Split equally between: <b>{len(selected)}</b>\n\n"
            "Save it?",
            parse_mode=ParseMode.HTML,
            reply_markup=confirm_keyboard(initiator_user_id=callback.from_user.id),
        )
        await callback.answer()


@router.callback_query(ConfirmCb.filter())
async def split_confirm_cb(
    callback: CallbackQuery,
    callback_data: ConfirmCb,
    bot: Bot,
    session: AsyncSession,
    trip_db: Optional[Trip],
    state: FSMContext,
    dashboard: DashboardManager,
) -> None:
    if callback.from_user.id != callback_data.initiator:
        await callback.answer(NOT_FOR_YOU, show_alert=True)
        return
    data = await state.get_data()
    amount_cents = int(data.get("amount_cents") or 0)
    payer_member_id = data.get("payer_member_id")
    participant_ids = [int(x) for x in data.get("participant_ids", [])]
    if trip_db is None or data.get("trip_id") != trip_db.id or amount_cents <= 0 or not payer_member_id:
        await callback.answer(EXPIRED, show_alert=True)
        return
    try:
        await create_expense(
            session,
            trip_id=trip_db.id,
            payer_member_id=int(payer_member_id),
            amount_cents=amount_cents,
            participant_member_ids=participant_ids,
            policy=EqualSplit(),
        )
    except ValueError as e:
        await callback.answer(str(e), show_alert=True)
        return

    if callback.message:
        await safe_delete_message(bot, chat_id=callback.message.chat.id, message_id=callback.message.message_id)
    await state.clear()
    dashboard.schedule(callback.message.chat.id)
    await callback.answer("Saved.")


# --- one-line commands -----------------------------------------------------


async def _category_id(session: AsyncSession, trip: Trip, name: Optional[str]) -> Optional[int]:
    if name is None:
        return None
    category = await find_category(session, trip_id=trip.id, name=name)
    if category is None:
        raise ValueError(f"Unknown category #{name}. See /categories.")
    return category.id


async def _save_and_report(
    message: Message,
    bot: Bot,
    session: AsyncSession,
    trip: Trip,
    dashboard: DashboardManager,
    **expense_kwargs,
) -> None:
    try:
        expense = await create_expense(session, trip_id=trip.id, **expense_kwargs)
    except ValueError as e:
        await answer_temporary(message, bot, esc(str(e)), delay_seconds=15)
        return

    label = "Personal expense" if expense.is_personal else "Expense"
    note = f" — {esc(expense.description)}" if expense.description else ""
    await answer_temporary(message, bot, f"✅ {label} saved: <b>{format_money(expense.amount_cents, trip.currency)}</b>{note}", delay_seconds=15)
    dashboard.schedule(message.chat.id)


@router.message(Command("spent"))
async def spent_cmd(
    message: Message,
    command: CommandObject,
    bot: Bot,
    session: AsyncSession,
    trip_db: Optional[Trip],
    member_db: Optional[Member],
    dashboard: DashboardManager,
) -> None:
    if not require_group(message):
        return
    await safe_delete_message(bot, chat_id=message.chat.id, message_id=message.message_id)
    if not await _require_trip_member(message, bot, session, trip_db, member_db):
        return
    try:
        parsed = parse_quick_expense(command.args)
        category_id = await _category_id(session, trip_db, parsed.category)
    except ValueError as e:
        await answer_temporary(message, bot, esc(str(e)), delay_seconds=10)
        return
    roster = await list_roster(session, trip_id=trip_db.id)
    await _save_and_report(
        message,
        bot,
        session,
        trip_db,
        dashboard,
        payer_member_id=member_db.id,
        amount_cents=parsed.amount_cents,
        participant_member_ids=[m.id for m in roster],
        policy=EqualSplit(),
        description=parsed.note,
        category_id=category_id,
    )


@router.message(Command("personal"))
async def personal_cmd(
    message: Message,
    command: CommandObject,
    bot: Bot,
    session: AsyncSession,
    trip_db: Optional[Trip],
    member_db: Optional[Member],
    dashboard: DashboardManager,
) -> None:
    if not require_group(message):
        return
    await safe_delete_message(bot, chat_id=message.chat.id, message_id=message.message_id)
    if not await _require_trip_member(message, bot, session, trip_db, member_db):
        return
    try:
        parsed = parse_quick_expense(command.args)
        category_id = await _category_id(session, trip_db, parsed.category)
    except ValueError as e:
        await answer_temporary(message, bot, esc(str(e)), delay_seconds=10)
        return
    await _save_and_report(
        message,
        bot,
        session,
        trip_db,
        dashboard,
        payer_member_id=member_db.id,
        amount_cents=parsed.amount_cents,
        participant_member_ids=[member_db.id],
        is_personal=True,
        description=parsed.note,
        category_id=category_id,
    )


@router.message(Command("custom"))
async def custom_cmd(
    message: Message,
    command: CommandObject,
    bot: Bot,
    session: AsyncSession,
    trip_db: Optional[Trip],
    member_db: Optional[Member],
    dashboard: DashboardManager,
) -> None:
    if not require_group(message):
        return
    await safe_delete_message(bot, chat_id=message.chat.id, message_id=message.message_id)
    if not await _require_trip_member(message, bot, session, trip_db, member_db):
        return
    try:
        parsed = parse_custom_expense(command.args)
        category_id = await _category_id(session, trip_db, parsed.category)
    except ValueError as e:
        await answer_temporary(message, bot, esc(str(e)), delay_seconds=15)
        return

    amounts: dict[int, int] = {}
    for who, cents in parsed.shares:
        member = member_db if who == SELF_TOKEN else await get_member_by_username(session, username=who)
        if member is None:
            await answer_temporary(message, bot, f"Unknown user @{esc(who)}. They need to write in this chat first.", delay_seconds=15)
            return
        amounts[member.id] = amounts.get(member.id, 0) + cents

    await _save_and_report(
        message,
        bot,
        session,
        trip_db,
        dashboard,
        payer_member_id=member_db.id,
        amount_cents=parsed.amount_cents,
        participant_member_ids=list(amounts),
        policy=CustomSplit(amounts),
        category_id=category_id,
    )
