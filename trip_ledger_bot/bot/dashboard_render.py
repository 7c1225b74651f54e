from __future__ import annotations

from datetime import datetime, timezone

from trip_ledger_bot.bot.text import esc, format_balance, format_money
from trip_ledger_bot.db.models import Trip
from trip_ledger_bot.services.ledger import Balance, Transfer, TripTotals

MAX_MESSAGE_LENGTH = 4096


def render_dashboard(
    *,
    trip: Trip,
    totals: TripTotals,
    balances: list[Balance],
    transfers: list[Transfer],
    now: datetime | None = None,
) -> str:
    cur = trip.currency
    names = {b.member_id: b.name for b in balances}

    lines_bal: list[str] = []
    for b in balances[:20]:
        lines_bal.append(f"{b.name[:14]:<14}  {format_balance(b.net_cents, cur)}")
    if not lines_bal:
        lines_bal = ["No members yet."]

    lines_settle: list[str] = []
    for t in transfers[:10]:
        frm = names.get(t.from_member_id, str(t.from_member_id))
        to = names.get(t.to_member_id, str(t.to_member_id))
        lines_settle.append(f"{frm} → {to}: {format_money(t.amount_cents, cur)}")
    if not lines_settle:
        lines_settle = ["Everyone is settled up."]

    updated = (now or datetime.now(timezone.utc)).strftime("%Y-%m-%d %H:%M UTC")

    text = (
        f"🧳 <b>{esc(trip.name)}</b>  (code <code>{esc(trip.code)}</code>)\n\n"
        f"<b>Shared spending:</b> {format_money(totals.shared_cents, cur)}\n"
        f"<b>Personal spending:</b> {format_money(totals.personal_cents, cur)}\n"
        f"<b>Expenses:</b> {totals.expense_count}\n\n"
        f"<b>Balances:</b>\n"
        f"<pre>{esc(chr(10).join(lines_bal))}</pre>\n"
        f"<b>Suggested payments:</b>\n"
        f"<pre>{esc(chr(10).join(lines_settle))}</pre>\n"
        f"<i>Updated: {updated}</i>"
    )
    return text[:MAX_MESSAGE_LENGTH]
