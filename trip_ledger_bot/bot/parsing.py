from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

from trip_ledger_bot.services.errors import InvalidAmount
from trip_ledger_bot.services.money import parse_amount

_CURRENCY_TOKEN_RE = re.compile(r"^[A-Z]{3}$")
_USERNAME_RE = re.compile(r"^@?[A-Za-z0-9_]{3,32}$")

# Token that stands for the message sender in /custom.
SELF_TOKEN = "me"
CATEGORY_PREFIX = "#"


@dataclass(frozen=True)
class QuickExpense:
    amount_cents: int
    note: Optional[str]
    category: Optional[str] = None


@dataclass(frozen=True)
class CustomExpense:
    amount_cents: int
    shares: tuple[tuple[str, int], ...]  # (username or "me", cents)
    category: Optional[str] = None


def parse_newtrip_args(args: Optional[str], *, default_currency: str) -> tuple[str, str]:
    # "/newtrip Ski week EUR" -> ("Ski week", "EUR"); the code must be upper-case.
    tokens = (args or "").split()
    if not tokens:
        raise ValueError("Usage: /newtrip <name> [CUR]")
    currency = default_currency
    if len(tokens) > 1 and _CURRENCY_TOKEN_RE.match(tokens[-1]):
        currency = tokens.pop()
    return " ".join(tokens), currency


def _pop_category(tokens: list[str]) -> Optional[str]:
    # Removes the one "#category" token, if any.
    tags = [t for t in tokens if t.startswith(CATEGORY_PREFIX)]
    if len(tags) > 1:
        raise ValueError("Give at most one #category.")
    if not tags:
        return None
    tokens.remove(tags[0])
    name = tags[0][len(CATEGORY_PREFIX):]
    if not name:
        raise ValueError("Write the category right after #, e.g. #food.")
    return name


def parse_quick_expense(args: Optional[str]) -> QuickExpense:
    # "/spent 12.50 #transport taxi to the hotel"
    tokens = (args or "").split()
    if not tokens:
        raise InvalidAmount("Usage: /spent <amount> [#category] [note]")
    amount_cents = parse_amount(tokens.pop(0))
    category = _pop_category(tokens)
    note = " ".join(tokens) or None
    return QuickExpense(amount_cents=amount_cents, note=note, category=category)


def parse_custom_expense(args: Optional[str]) -> CustomExpense:
    # "/custom 30 @alice 10 @bob 12.50 me 7.50 #food"
    tokens = (args or "").split()
    category = _pop_category(tokens)
    if len(tokens) < 3 or len(tokens) % 2 == 0:
        raise ValueError("Usage: /custom <amount> @user <amount> [@user <amount> ...] [#category]")
    total = parse_amount(tokens[0])

    shares: list[tuple[str, int]] = []
    seen: set[str] = set()
    for who, amount in zip(tokens[1::2], tokens[2::2]):
        key = who.lower()
        if key != SELF_TOKEN:
            if not _USERNAME_RE.match(who):
                raise ValueError(f"Not a username: {who}")
            key = key.lstrip("@")
        if key in seen:
            raise ValueError(f"{who} is listed twice.")
        seen.add(key)
        shares.append((key, parse_amount(amount)))
    return CustomExpense(amount_cents=total, shares=tuple(shares), category=category)


def append_amount_digit(current: str, digit: str) -> Optional[str]:
    """
    Keypad input for amounts such as "12.50".

    Returns the new text, or None when the keystroke would make it invalid
    (second dot, third decimal, too many digits).
    """
    if digit == ".":
        if "." in current:
            return None
        return (current or "0") + "."
    if not digit.isdigit():
        return None
    whole, _, frac = current.partition(".")
    if "." in current:
        if len(frac) >= 2:
            return None
        return current + digit
    if len(whole) >= 7:
        return None
    return (whole + digit).lstrip("0") or ("0" if digit == "0" else "")
