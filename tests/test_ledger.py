from __future__ import annotations

import random
from decimal import Decimal

import pytest

from trip_ledger_bot.services.errors import InvariantViolation
from trip_ledger_bot.services.ledger import (
    Balance,
    ExpenseRecord,
    RosterEntry,
    ShareRecord,
    Transfer,
    compute_balances,
    compute_settlement,
    compute_trip_totals,
)
from trip_ledger_bot.services.splits import CustomSplit, EqualSplit, compute_split

A, B, C = 1, 2, 3
ROSTER = [RosterEntry(A, "Alice"), RosterEntry(B, "Bob"), RosterEntry(C, "Carol")]


def _expense(expense_id: int, payer: int, total: int, participants: list[int], *, personal: bool = False) -> ExpenseRecord:
    drafts = compute_split(
        total,
        participants,
        EqualSplit(),
        payer_id=payer,
        roster_ids=[m.member_id for m in ROSTER],
        is_personal=personal,
    )
    return ExpenseRecord(
        id=expense_id,
        payer_id=payer,
        amount_cents=total,
        shares=tuple(ShareRecord(d.member_id, d.amount_cents) for d in drafts),
        is_personal=personal,
    )


def _nets(balances: list[Balance]) -> dict[int, int]:
    return {b.member_id: b.net_cents for b in balances}


def test_three_way_dinner():
    balances = compute_balances(1, ROSTER, [_expense(1, A, 10000, [A, B, C])])
    assert balances == [
        Balance(member_id=A, name="Alice", net_cents=6666),
        Balance(member_id=B, name="Bob", net_cents=-3333),
        Balance(member_id=C, name="Carol", net_cents=-3333),
    ]
    assert balances[0].net_amount == Decimal("66.66")
    assert sum(b.net_cents for b in balances) == 0


def test_personal_expense_leaves_balances_unchanged():
    base = [_expense(1, A, 10000, [A, B, C])]
    with_personal = base + [_expense(2, A, 2000, [A, B], personal=True)]
    assert compute_balances(1, ROSTER, with_personal) == compute_balances(1, ROSTER, base)


def test_no_expenses_gives_zero_for_everyone_in_roster_order():
    roster = [RosterEntry(C, "Carol"), RosterEntry(A, "Alice")]
    assert compute_balances(1, roster, []) == [Balance(C, "Carol", 0), Balance(A, "Alice", 0)]


def test_duplicate_roster_entries_collapse():
    roster = ROSTER + [RosterEntry(A, "Alice again")]
    balances = compute_balances(1, roster, [])
    assert [b.member_id for b in balances] == [A, B, C]
    assert balances[0].name == "Alice"


def test_random_trips_sum_to_zero_and_are_idempotent():
    rng = random.Random(20261019)
    ids = [m.member_id for m in ROSTER]
    expenses = []
    for i in range(200):
        participants = rng.sample(ids, rng.randint(1, len(ids)))
        expenses.append(_expense(i, rng.choice(ids), rng.randint(1, 500000), participants, personal=rng.random() < 0.2))

    first = compute_balances(7, ROSTER, expenses)
    second = compute_balances(7, ROSTER, expenses)
    assert first == second
    assert sum(b.net_cents for b in first) == 0
    assert compute_balances(7, ROSTER, list(reversed(expenses))) == first


def test_float_inputs_are_snapped_to_cents():
    e = ExpenseRecord.from_amount(1, A, 0.1 + 0.2, [(A, 0.1), (B, 0.2)])
    assert e.amount_cents == 30
    assert e.shares == (ShareRecord(A, 10), ShareRecord(B, 20))
    assert _nets(compute_balances(1, ROSTER, [e])) == {A: 20, B: -20, C: 0}


@pytest.mark.parametrize(
    "expense, reason",
    [
        (ExpenseRecord(5, A, 1000, (ShareRecord(A, 500), ShareRecord(B, 400))), "shares sum"),
        (ExpenseRecord(5, A, 0, ()), "amount must be positive"),
        (ExpenseRecord(5, 99, 1000, (ShareRecord(A, 1000),)), "payer 99"),
        (ExpenseRecord(5, A, 1000, (ShareRecord(42, 1000),)), "share holder 42"),
        (ExpenseRecord(5, A, 1000, (ShareRecord(A, 1100), ShareRecord(B, -100))), "negative"),
        (ExpenseRecord(5, A, 1000, ()), "no shares"),
        (ExpenseRecord(5, A, 1000, (ShareRecord(B, 1000),), is_personal=True), "personal"),
        (ExpenseRecord(5, A, 1000, (ShareRecord(A, 500), ShareRecord(A, 500)), is_personal=True), "personal"),
    ],
)
def test_inconsistent_expense_raises_invariant_violation(expense, reason):
    with pytest.raises(InvariantViolation) as exc:
        compute_balances(3, ROSTER, [_expense(1, A, 900, [A, B, C]), expense])
    assert exc.value.trip_id == 3
    assert exc.value.expense_id == 5
    assert reason in exc.value.reason


def test_one_cent_custom_drift_is_tolerated():
    e = ExpenseRecord(1, A, 10000, (ShareRecord(A, 3333), ShareRecord(B, 3333), ShareRecord(C, 3333)))
    assert _nets(compute_balances(1, ROSTER, [e])) == {A: 6667, B: -3333, C: -3333}


def test_accepted_custom_drift_stays_with_the_payer():
    drafts = compute_split(1001, [A, B], CustomSplit({A: 500, B: 500}), payer_id=A, roster_ids=[A, B, C])
    e = ExpenseRecord(1, A, 1001, tuple(ShareRecord(d.member_id, d.amount_cents) for d in drafts))
    nets = _nets(compute_balances(1, ROSTER, [e]))
    assert nets == {A: 501, B: -500, C: 0}
    assert sum(nets.values()) == 1


def test_settlement_pays_creditors_from_debtors():
    balances = [Balance(A, "Alice", 7000), Balance(B, "Bob", -3000), Balance(C, "Carol", -4000)]
    assert compute_settlement(balances) == [
        Transfer(from_member_id=C, to_member_id=A, amount_cents=4000),
        Transfer(from_member_id=B, to_member_id=A, amount_cents=3000),
    ]


def test_settlement_clears_every_balance():
    balances = compute_balances(
        1,
        ROSTER,
        [_expense(1, A, 10000, [A, B, C]), _expense(2, B, 4500, [B, C]), _expense(3, C, 999, [A, B, C])],
    )
    remaining = _nets(balances)
    for t in compute_settlement(balances):
        remaining[t.from_member_id] += t.amount_cents
        remaining[t.to_member_id] -= t.amount_cents
    assert set(remaining.values()) == {0}


def test_settlement_of_settled_trip_is_empty():
    assert compute_settlement([Balance(A, "Alice", 0), Balance(B, "Bob", 0)]) == []


def test_trip_totals_split_shared_and_personal():
    totals = compute_trip_totals(
        [_expense(1, A, 10000, [A, B, C]), _expense(2, A, 2000, [A], personal=True), _expense(3, B, 150, [C])]
    )
    assert totals.shared_cents == 10150
    assert totals.personal_cents == 2000
    assert totals.expense_count == 3
