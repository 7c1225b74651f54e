from __future__ import annotations

import pytest

from trip_ledger_bot.services.errors import EmptyParticipants, InvalidAmount, NotATripMember, SplitError, SplitMismatch
from trip_ledger_bot.services.money import MAX_AMOUNT_CENTS
from trip_ledger_bot.services.splits import CustomSplit, EqualSplit, ShareDraft, compute_split

A, B, C, D = 1, 2, 3, 4
ROSTER = [A, B, C, D]


def _amounts(shares: list[ShareDraft]) -> dict[int, int]:
    return {s.member_id: s.amount_cents for s in shares}


def test_equal_split_gives_extra_cent_to_lowest_member_id():
    shares = compute_split(10000, [C, A, B], EqualSplit(), payer_id=A, roster_ids=ROSTER)
    assert shares == [
        ShareDraft(member_id=A, amount_cents=3334, is_paid=True),
        ShareDraft(member_id=B, amount_cents=3333, is_paid=False),
        ShareDraft(member_id=C, amount_cents=3333, is_paid=False),
    ]


@pytest.mark.parametrize("total", [1, 2, 99, 100, 101, 10000, 20000, 123457, 999999])
@pytest.mark.parametrize("n", [1, 2, 3, 4])
def test_equal_split_sums_exactly(total, n):
    participants = ROSTER[:n]
    shares = compute_split(total, participants, EqualSplit(), payer_id=A, roster_ids=ROSTER)
    amounts = [s.amount_cents for s in shares]
    assert sum(amounts) == total
    assert max(amounts) - min(amounts) <= 1
    # extra cents go to the front of the id-ordered list
    assert amounts == sorted(amounts, reverse=True)


def test_equal_split_is_order_independent():
    first = compute_split(20000, [D, B, C], EqualSplit(), payer_id=B, roster_ids=ROSTER)
    second = compute_split(20000, [C, D, B, B], EqualSplit(), payer_id=B, roster_ids=ROSTER)
    assert first == second
    assert _amounts(first) == {B: 6667, C: 6667, D: 6666}


def test_payer_need_not_participate():
    shares = compute_split(900, [B, C], EqualSplit(), payer_id=A, roster_ids=ROSTER)
    assert _amounts(shares) == {B: 450, C: 450}
    assert not any(s.is_paid for s in shares)


def test_personal_expense_ignores_participants():
    shares = compute_split(2000, [B, C], EqualSplit(), payer_id=A, roster_ids=ROSTER, is_personal=True)
    assert shares == [ShareDraft(member_id=A, amount_cents=2000, is_paid=True)]


def test_custom_split_passes_amounts_through():
    policy = CustomSplit({A: 1000, B: 2500, C: 500})
    shares = compute_split(4000, [A, B, C], policy, payer_id=B, roster_ids=ROSTER)
    assert _amounts(shares) == {A: 1000, B: 2500, C: 500}
    assert [s.is_paid for s in shares] == [False, True, False]


def test_custom_split_accepts_one_cent_drift_without_correcting():
    policy = CustomSplit({A: 3333, B: 3333, C: 3333})
    shares = compute_split(10000, [A, B, C], policy, payer_id=A, roster_ids=ROSTER)
    assert sum(s.amount_cents for s in shares) == 9999


@pytest.mark.parametrize("delta", [-2, 2, -500])
def test_custom_split_outside_tolerance_is_rejected(delta):
    policy = CustomSplit({A: 5000, B: 5000 + delta})
    with pytest.raises(SplitMismatch) as exc:
        compute_split(10000, [A, B], policy, payer_id=A, roster_ids=ROSTER)
    assert exc.value.computed_cents == 10000 + delta
    assert exc.value.expected_cents == 10000


def test_custom_split_missing_participant_counts_as_zero():
    shares = compute_split(1000, [A, B], CustomSplit({A: 1000}), payer_id=A, roster_ids=ROSTER)
    assert _amounts(shares) == {A: 1000, B: 0}


def test_custom_split_rejects_amount_for_non_participant():
    with pytest.raises(SplitError):
        compute_split(1000, [A], CustomSplit({A: 500, B: 500}), payer_id=A, roster_ids=ROSTER)


def test_custom_split_rejects_negative_share():
    with pytest.raises(InvalidAmount):
        compute_split(1000, [A, B], CustomSplit({A: 1500, B: -500}), payer_id=A, roster_ids=ROSTER)


@pytest.mark.parametrize("total", [0, -1])
def test_non_positive_total_is_rejected(total):
    with pytest.raises(InvalidAmount):
        compute_split(total, [A], EqualSplit(), payer_id=A, roster_ids=ROSTER)


def test_total_above_limit_is_rejected():
    with pytest.raises(InvalidAmount):
        compute_split(MAX_AMOUNT_CENTS + 1, [A], EqualSplit(), payer_id=A, roster_ids=ROSTER)


def test_empty_participants_rejected():
    with pytest.raises(EmptyParticipants):
        compute_split(1000, [], EqualSplit(), payer_id=A, roster_ids=ROSTER)


def test_non_member_participant_rejected():
    with pytest.raises(NotATripMember) as exc:
        compute_split(1000, [A, 42, 7], EqualSplit(), payer_id=A, roster_ids=ROSTER)
    assert exc.value.member_ids == (7, 42)


def test_non_member_payer_rejected():
    with pytest.raises(NotATripMember):
        compute_split(1000, [A], EqualSplit(), payer_id=99, roster_ids=ROSTER, is_personal=True)


def test_unknown_policy_is_a_programming_error():
    with pytest.raises(TypeError):
        compute_split(1000, [A], object(), payer_id=A, roster_ids=ROSTER)
