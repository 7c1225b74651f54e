from __future__ import annotations

import html

from trip_ledger_bot.db.models import Member
from trip_ledger_bot.services.money import format_cents


def esc(s: str) -> str:
    return html.escape(s, quote=False)


def member_label(m: Member) -> str:
    if m.username:
        return f"@{m.username}"
    if m.first_name:
        return m.first_name
    return str(m.tg_user_id)


def format_money(cents: int, currency: str | None = None) -> str:
    return format_cents(cents, currency)


def format_balance(cents: int, currency: str | None = None) -> str:
    # "+12.00 USD (is owed)" / "-12.00 USD (owes)"
    if cents > 0:
        return f"{format_cents(cents, currency, signed=True)} (is owed)"
    if cents < 0:
        return f"{format_cents(cents, currency)} (owes)"
    return format_cents(0, currency)


HELP_TEXT = (
    "<b>Trip ledger</b>\n"
    "/newtrip &lt;name&gt; [CUR] — start a trip in this chat\n"
    "/join [CODE] — join this chat's trip or a trip by code\n"
    "/trip — trip code, currency and members\n"
    "/split — add an expense step by step\n"
    "/spent &lt;amount&gt; [#category] [note] — you paid, split equally among everyone\n"
    "/personal &lt;amount&gt; [#category] [note] — your own expense, not shared\n"
    "/custom &lt;amount&gt; @user &lt;amt&gt; ... [#category] — you paid, custom shares\n"
    "/categories — expense categories; /addcategory &lt;name&gt; [icon] adds one to the trip\n"
    "/balance — who owes and who is owed\n"
    "/settle — suggested payments\n"
    "/expenses — last expenses"
)
