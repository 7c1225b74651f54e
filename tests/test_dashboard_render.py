from __future__ import annotations

from datetime import datetime, timezone

from trip_ledger_bot.bot.dashboard_render import MAX_MESSAGE_LENGTH, render_dashboard
from trip_ledger_bot.db.models import Trip
from trip_ledger_bot.services.ledger import Balance, Transfer, TripTotals

NOW = datetime(2026, 5, 1, 18, 30, tzinfo=timezone.utc)


def _trip(name: str = "Lisbon") -> Trip:
    return Trip(name=name, code="K7QX2M", currency="EUR")


def test_render_dashboard_lists_balances_and_payments():
    balances = [Balance(1, "Alice", 6667), Balance(2, "Bob", -3333), Balance(3, "Carol", -3334)]
    transfers = [Transfer(3, 1, 3334), Transfer(2, 1, 3333)]
    text = render_dashboard(
        trip=_trip(),
        totals=TripTotals(shared_cents=10000, personal_cents=1500, expense_count=2),
        balances=balances,
        transfers=transfers,
        now=NOW,
    )

    assert "<b>Lisbon</b>" in text
    assert "K7QX2M" in text
    assert "Shared spending:</b> 100.00 EUR" in text
    assert "Personal spending:</b> 15.00 EUR" in text
    assert "+66.67 EUR (is owed)" in text
    assert "-33.33 EUR (owes)" in text
    assert "Carol → Alice: 33.34 EUR" in text
    assert "2026-05-01 18:30 UTC" in text


def test_render_dashboard_empty_trip():
    text = render_dashboard(
        trip=_trip("Tom & Jerry <3"),
        totals=TripTotals(shared_cents=0, personal_cents=0, expense_count=0),
        balances=[],
        transfers=[],
        now=NOW,
    )
    assert "Tom &amp; Jerry &lt;3" in text
    assert "No members yet." in text
    assert "Everyone is settled up." in text


def test_render_dashboard_is_capped():
    balances = [Balance(i, "x" * 40, 0) for i in range(200)]
    text = render_dashboard(
        trip=_trip("y" * 5000),
        totals=TripTotals(shared_cents=0, personal_cents=0, expense_count=0),
        balances=balances,
        transfers=[],
        now=NOW,
    )
    assert len(text) <= MAX_MESSAGE_LENGTH
