from __future__ import annotations

from aiogram.types import InlineKeyboardButton, InlineKeyboardMarkup
from aiogram.utils.keyboard import InlineKeyboardBuilder

from trip_ledger_bot.bot.callbacks import (
    CloseCb,
    ConfirmCb,
    DigitCb,
    NumActionCb,
    PageCb,
    PickPayerCb,
    SplitParticipantsActionCb,
    ToggleParticipantCb,
)
from trip_ledger_bot.bot.text import member_label
from trip_ledger_bot.db.models import Member

PER_PAGE = 8


def _cancel_button(initiator_user_id: int) -> InlineKeyboardButton:
    return InlineKeyboardButton(text="Cancel", callback_data=NumActionCb(initiator=initiator_user_id, action="cancel").pack())


def _nav_row(kb: InlineKeyboardBuilder, *, initiator_user_id: int, flow: str, page: int, total: int) -> None:
    nav: list[InlineKeyboardButton] = []
    if page > 0:
        nav.append(InlineKeyboardButton(text="⬅️", callback_data=PageCb(initiator=initiator_user_id, flow=flow, page=page - 1).pack()))
    if (page + 1) * PER_PAGE < total:
        nav.append(InlineKeyboardButton(text="➡️", callback_data=PageCb(initiator=initiator_user_id, flow=flow, page=page + 1).pack()))
    if nav:
        kb.row(*nav, width=len(nav))


def close_keyboard(*, initiator_user_id: int, text: str = "Close") -> InlineKeyboardMarkup:
    kb = InlineKeyboardBuilder()
    kb.row(
        InlineKeyboardButton(text=text, callback_data=CloseCb(initiator=initiator_user_id).pack()),
        width=1,
    )
    return kb.as_markup()


def numeric_keyboard(*, initiator_user_id: int) -> InlineKeyboardMarkup:
    kb = InlineKeyboardBuilder()
    for row in ([1, 2, 3], [4, 5, 6], [7, 8, 9]):
        kb.row(
            *[
                InlineKeyboardButton(
                    text=str(d),
                    callback_data=DigitCb(initiator=initiator_user_id, digit=d).pack(),
                )
                for d in row
            ],
            width=3,
        )
    kb.row(
        InlineKeyboardButton(text=".", callback_data=NumActionCb(initiator=initiator_user_id, action="dot").pack()),
        InlineKeyboardButton(text="0", callback_data=DigitCb(initiator=initiator_user_id, digit=0).pack()),
        InlineKeyboardButton(text="⬅️", callback_data=NumActionCb(initiator=initiator_user_id, action="back").pack()),
        InlineKeyboardButton(text="C", callback_data=NumActionCb(initiator=initiator_user_id, action="clear").pack()),
        width=4,
    )
    kb.row(
        _cancel_button(initiator_user_id),
        InlineKeyboardButton(text="OK", callback_data=NumActionCb(initiator=initiator_user_id, action="ok").pack()),
        width=2,
    )
    return kb.as_markup()


def payer_keyboard(*, initiator_user_id: int, members: list[Member], page: int) -> InlineKeyboardMarkup:
    kb = InlineKeyboardBuilder()
    start = page * PER_PAGE
    for m in members[start : start + PER_PAGE]:
        kb.row(
            InlineKeyboardButton(
                text=member_label(m),
                callback_data=PickPayerCb(initiator=initiator_user_id, member_id=m.id).pack(),
            )
        )
    _nav_row(kb, initiator_user_id=initiator_user_id, flow="payer", page=page, total=len(members))
    kb.row(_cancel_button(initiator_user_id), width=1)
    return kb.as_markup()


def participants_keyboard(
    *,
    initiator_user_id: int,
    members: list[Member],
    selected_ids: set[int],
    page: int,
) -> InlineKeyboardMarkup:
    kb = InlineKeyboardBuilder()
    start = page * PER_PAGE
    for m in members[start : start + PER_PAGE]:
        checked = "✅" if m.id in selected_ids else "☑️"
        kb.row(
            InlineKeyboardButton(
                text=f"{checked} {member_label(m)}",
                callback_data=ToggleParticipantCb(initiator=initiator_user_id, member_id=m.id).pack(),
            )
        )
    _nav_row(kb, initiator_user_id=initiator_user_id, flow="participants", page=page, total=len(members))
    kb.row(
        InlineKeyboardButton(text="All", callback_data=SplitParticipantsActionCb(initiator=initiator_user_id, action="all").pack()),
        InlineKeyboardButton(text="None", callback_data=SplitParticipantsActionCb(initiator=initiator_user_id, action="clear").pack()),
        InlineKeyboardButton(text="Done", callback_data=SplitParticipantsActionCb(initiator=initiator_user_id, action="done").pack()),
        width=3,
    )
    kb.row(_cancel_button(initiator_user_id), width=1)
    return kb.as_markup()


def confirm_keyboard(*, initiator_user_id: int) -> InlineKeyboardMarkup:
    kb = InlineKeyboardBuilder()
    kb.row(
        InlineKeyboardButton(text="Save", callback_data=ConfirmCb(initiator=initiator_user_id).pack()),
        _cancel_button(initiator_user_id),
        width=2,
    )
    return kb.as_markup()
