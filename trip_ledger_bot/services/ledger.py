from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Container, Iterable, NoReturn, Optional, Sequence

from trip_ledger_bot.services.errors import InvariantViolation
from trip_ledger_bot.services.money import AmountLike, cents_to_decimal, to_cents
from trip_ledger_bot.services.splits import SPLIT_TOLERANCE_CENTS

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RosterEntry:
    member_id: int
    name: str


@dataclass(frozen=True)
class ShareRecord:
    member_id: int
    amount_cents: int

    @classmethod
    def from_amount(cls, member_id: int, amount: AmountLike) -> ShareRecord:
        return cls(member_id=int(member_id), amount_cents=to_cents(amount))


@dataclass(frozen=True)
class ExpenseRecord:
    id: int
    payer_id: int
    amount_cents: int
    shares: tuple[ShareRecord, ...]
    is_personal: bool = False

    @classmethod
    def from_amount(
        cls,
        id: int,
        payer_id: int,
        amount: AmountLike,
        shares: Iterable[tuple[int, AmountLike]],
        *,
        is_personal: bool = False,
    ) -> ExpenseRecord:
        return cls(
            id=int(id),
            payer_id=int(payer_id),
            amount_cents=to_cents(amount),
            shares=tuple(ShareRecord.from_amount(mid, amt) for mid, amt in shares),
            is_personal=is_personal,
        )


@dataclass(frozen=True)
class Balance:
    member_id: int
    name: str
    net_cents: int  # positive is owed money, negative owes

    @property
    def net_amount(self) -> Decimal:
        return cents_to_decimal(self.net_cents)


@dataclass(frozen=True)
class Transfer:
    from_member_id: int  # debtor
    to_member_id: int  # creditor
    amount_cents: int


@dataclass(frozen=True)
class TripTotals:
    shared_cents: int
    personal_cents: int
    expense_count: int


def _check_expense(trip_id: Optional[int], e: ExpenseRecord, members: Container[int]) -> None:
    def fail(reason: str) -> NoReturn:
        logger.warning("Invariant violation in trip_id=%s expense_id=%s: %s", trip_id, e.id, reason)
        raise InvariantViolation(trip_id=trip_id, expense_id=e.id, reason=reason)

    if e.amount_cents <= 0:
        fail("amount must be positive")
    if e.payer_id not in members:
        fail(f"payer {e.payer_id} is not on the trip roster")
    for s in e.shares:
        if s.amount_cents < 0:
            fail(f"share of member {s.member_id} is negative")
        if s.member_id not in members:
            fail(f"share holder {s.member_id} is not on the trip roster")

    if e.is_personal:
        if len(e.shares) != 1 or e.shares[0].member_id != e.payer_id or e.shares[0].amount_cents != e.amount_cents:
            fail("personal expense must have exactly one payer share equal to the amount")
        return

    if not e.shares:
        fail("expense has no shares")
    total = sum(s.amount_cents for s in e.shares)
    if abs(total - e.amount_cents) > SPLIT_TOLERANCE_CENTS:
        fail(f"shares sum to {total} cents, expense is {e.amount_cents} cents")


def compute_balances(
    trip_id: Optional[int],
    members: Sequence[RosterEntry],
    expenses: Iterable[ExpenseRecord],
) -> list[Balance]:
    """
    Reduce a trip's expense history to one net balance per roster member.

    Two passes per expense: the payer is credited the full amount, then every
    share holder is debited their share. Personal expenses net to zero on the
    payer without special casing. Output follows roster order.

    Balances sum to exactly zero when every shared expense's shares add up to
    its amount, which equal and personal splits always do. A custom split
    accepted within SPLIT_TOLERANCE_CENTS leaves its drift with the payer, so
    the trip total can be off by up to one cent per such expense.
    """
    names: dict[int, str] = {}
    for m in members:
        names.setdefault(int(m.member_id), m.name)
    balances: dict[int, int] = {mid: 0 for mid in names}

    for e in expenses:
        _check_expense(trip_id, e, names.keys())
        balances[e.payer_id] += e.amount_cents
        for s in e.shares:
            balances[s.member_id] -= s.amount_cents

    return [Balance(member_id=mid, name=names[mid], net_cents=bal) for mid, bal in balances.items()]


def compute_settlement(balances: Sequence[Balance]) -> list[Transfer]:
    # Greedy: largest debtor pays largest creditor. Ties keep roster order.
    creditors: list[list[int]] = []  # [member_id, to_receive]
    debtors: list[list[int]] = []  # [member_id, to_pay]

    for b in balances:
        if b.net_cents > 0:
            creditors.append([b.member_id, b.net_cents])
        elif b.net_cents < 0:
            debtors.append([b.member_id, -b.net_cents])

    creditors.sort(key=lambda x: x[1], reverse=True)
    debtors.sort(key=lambda x: x[1], reverse=True)

    out: list[Transfer] = []
    i = 0
    j = 0
    while i < len(debtors) and j < len(creditors):
        d_id, owe = debtors[i]
        c_id, recv = creditors[j]
        amt = min(owe, recv)
        if amt:
            out.append(Transfer(from_member_id=d_id, to_member_id=c_id, amount_cents=amt))
        owe -= amt
        recv -= amt
        debtors[i][1] = owe
        creditors[j][1] = recv
        if owe == 0:
            i += 1
        if recv == 0:
            j += 1
    return out


def compute_trip_totals(expenses: Iterable[ExpenseRecord]) -> TripTotals:
    shared = 0
    personal = 0
    count = 0
    for e in expenses:
        count += 1
        if e.is_personal:
            personal += e.amount_cents
        else:
            shared += e.amount_cents
    return TripTotals(shared_cents=shared, personal_cents=personal, expense_count=count)
