from __future__ import annotations

from decimal import Decimal

import pytest

from trip_ledger_bot.services.errors import InvalidAmount
from trip_ledger_bot.services.money import MAX_AMOUNT_CENTS, cents_to_decimal, format_cents, parse_amount, to_cents


@pytest.mark.parametrize(
    "value, cents",
    [
        (12, 1200),
        (Decimal("33.335"), 3334),
        ("0.01", 1),
        (0.1 + 0.2, 30),
        (19.999, 2000),
        (-4.5, -450),
    ],
)
def test_to_cents_snaps_to_nearest_cent(value, cents):
    assert to_cents(value) == cents


@pytest.mark.parametrize("value", ["abc", float("nan"), float("inf"), None, True])
def test_to_cents_rejects_non_numbers(value):
    with pytest.raises(InvalidAmount):
        to_cents(value)


@pytest.mark.parametrize(
    "text, cents",
    [("12", 1200), ("12.5", 1250), ("12,50", 1250), ("1 200.00", 120000), (" 0.01 ", 1)],
)
def test_parse_amount(text, cents):
    assert parse_amount(text) == cents


@pytest.mark.parametrize("text", ["", "0", "0.00", "-5", "1.234", "12.", "ten", "1e3"])
def test_parse_amount_rejects(text):
    with pytest.raises(InvalidAmount):
        parse_amount(text)


@pytest.mark.parametrize("text", ["9" * 10, "9" * 20, "9" * 30 + ".99"])
def test_parse_amount_rejects_oversized_amounts(text):
    with pytest.raises(InvalidAmount):
        parse_amount(text)


def test_parse_amount_upper_bound():
    assert parse_amount("999999999.99") == MAX_AMOUNT_CENTS


def test_to_cents_beyond_decimal_precision():
    with pytest.raises(InvalidAmount):
        to_cents("9" * 30)


def test_invalid_amount_is_a_value_error():
    with pytest.raises(ValueError):
        parse_amount("nope")


def test_presentation_helpers():
    assert cents_to_decimal(-3333) == Decimal("-33.33")
    assert format_cents(123456, "EUR") == "1,234.56 EUR"
    assert format_cents(6666, signed=True) == "+66.66"
    assert format_cents(-6666, "USD", signed=True) == "-66.66 USD"
    assert format_cents(0, signed=True) == "0.00"
