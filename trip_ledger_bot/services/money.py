from __future__ import annotations

import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Union

from trip_ledger_bot.services.errors import InvalidAmount

CENT = Decimal("0.01")

# Largest amount a single expense may carry: 999,999,999.99.
MAX_AMOUNT_CENTS = 99_999_999_999

# "12", "12.5", "12,50", "1 200.00"
_AMOUNT_RE = re.compile(r"^\d{1,9}(?:[.,]\d{1,2})?$")

AmountLike = Union[int, float, str, Decimal]


def to_cents(value: AmountLike) -> int:
    """
    Convert an amount in currency units to integer cents.

    Floats are routed through ``str`` so binary noise (``0.1 + 0.2``) is
    dropped before snapping to the nearest cent with ROUND_HALF_UP.
    """
    if isinstance(value, bool):
        raise InvalidAmount("Amount must be a number.")
    if isinstance(value, int):
        return value * 100
    try:
        d = Decimal(str(value)) if isinstance(value, float) else Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidAmount(f"Not a valid amount: {value!r}.") from None
    if not d.is_finite():
        raise InvalidAmount(f"Not a valid amount: {value!r}.")
    try:
        return int((d * 100).quantize(Decimal(1), rounding=ROUND_HALF_UP))
    except InvalidOperation:
        raise InvalidAmount(f"Amount is too large: {value!r}.") from None


def parse_amount(text: str) -> int:
    s = (text or "").strip().replace(" ", "").replace("\u00a0", "")
    if not _AMOUNT_RE.match(s):
        raise InvalidAmount("Enter the amount as a number, e.g. 12.50.")
    cents = to_cents(s.replace(",", "."))
    if cents <= 0:
        raise InvalidAmount("Amount must be greater than zero.")
    if cents > MAX_AMOUNT_CENTS:
        raise InvalidAmount("Amount is too large.")
    return cents


def cents_to_decimal(cents: int) -> Decimal:
    return (Decimal(int(cents)) / 100).quantize(CENT)


def format_cents(cents: int, currency: str | None = None, *, signed: bool = False) -> str:
    sign = "+" if signed and cents > 0 else ""
    txt = f"{sign}{cents_to_decimal(cents):,.2f}"
    return f"{txt} {currency}" if currency else txt
