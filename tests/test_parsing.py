from __future__ import annotations

import pytest

from trip_ledger_bot.bot.parsing import (
    append_amount_digit,
    parse_custom_expense,
    parse_newtrip_args,
    parse_quick_expense,
)
from trip_ledger_bot.services.errors import InvalidAmount


@pytest.mark.parametrize(
    "args, expected",
    [
        ("Lisbon", ("Lisbon", "USD")),
        ("Ski week EUR", ("Ski week", "EUR")),
        ("Ski week eur", ("Ski week eur", "USD")),
        ("GBP", ("GBP", "USD")),
    ],
)
def test_parse_newtrip_args(args, expected):
    assert parse_newtrip_args(args, default_currency="USD") == expected


def test_parse_newtrip_args_requires_name():
    with pytest.raises(ValueError):
        parse_newtrip_args("   ", default_currency="USD")


def test_parse_quick_expense():
    q = parse_quick_expense(" 12,50  taxi to the hotel ")
    assert q.amount_cents == 1250
    assert q.note == "taxi to the hotel"
    assert parse_quick_expense("7").note is None


@pytest.mark.parametrize("args", [None, "", "0", "-5", "12.345", "ten", "9" * 30 + " taxi", "9" * 20])
def test_parse_quick_expense_rejects(args):
    with pytest.raises(InvalidAmount):
        parse_quick_expense(args)


def test_parse_custom_expense():
    c = parse_custom_expense("30 @Alice 10 bob_1 12.50 Me 7.50")
    assert c.amount_cents == 3000
    assert c.shares == (("alice", 1000), ("bob_1", 1250), ("me", 750))


@pytest.mark.parametrize(
    "args",
    [
        "30",
        "30 @alice",
        "30 @alice 10 @bob",
        "30 @a 10 @bob 20",
        "30 @alice 10 @ALICE 20",
    ],
)
def test_parse_custom_expense_rejects(args):
    with pytest.raises(ValueError):
        parse_custom_expense(args)


@pytest.mark.parametrize(
    "current, key, expected",
    [
        ("", "1", "1"),
        ("", "0", "0"),
        ("0", "5", "5"),
        ("0", "0", "0"),
        ("", ".", "0."),
        ("12", ".", "12."),
        ("12.", ".", None),
        ("12.5", "0", "12.50"),
        ("12.50", "1", None),
        ("1234567", "8", None),
        ("1", "x", None),
    ],
)
def test_append_amount_digit(current, key, expected):
    assert append_amount_digit(current, key) == expected


def test_quick_expense_category_token():
    q = parse_quick_expense("18 #transport taxi to the hotel")
    assert (q.amount_cents, q.category, q.note) == (1800, "transport", "taxi to the hotel")
    assert parse_quick_expense("18 lunch #food").category == "food"
    assert parse_quick_expense("18 lunch").category is None


@pytest.mark.parametrize("args", ["18 #", "18 #food #drinks"])
def test_quick_expense_bad_category_token(args):
    with pytest.raises(ValueError):
        parse_quick_expense(args)


def test_custom_expense_category_token():
    c = parse_custom_expense("30 #food @alice 10 me 20")
    assert c.category == "food"
    assert c.shares == (("alice", 1000), ("me", 2000))
