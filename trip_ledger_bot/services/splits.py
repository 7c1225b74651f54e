from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterable, Mapping, Union

from trip_ledger_bot.services.errors import EmptyParticipants, InvalidAmount, NotATripMember, SplitError, SplitMismatch
from trip_ledger_bot.services.money import MAX_AMOUNT_CENTS

# Custom shares may drift from the total by at most one cent.
SPLIT_TOLERANCE_CENTS = 1


@dataclass(frozen=True)
class EqualSplit:
    pass


@dataclass(frozen=True)
class CustomSplit:
    amounts: Mapping[int, int] = field(default_factory=dict)  # member_id -> cents

    def __post_init__(self) -> None:
        object.__setattr__(self, "amounts", MappingProxyType({int(k): int(v) for k, v in self.amounts.items()}))


SplitPolicy = Union[EqualSplit, CustomSplit]


@dataclass(frozen=True)
class ShareDraft:
    member_id: int
    amount_cents: int
    is_paid: bool  # only the payer's own share starts as paid


def compute_split(
    total_cents: int,
    participant_ids: Iterable[int],
    policy: SplitPolicy,
    *,
    payer_id: int,
    roster_ids: Iterable[int],
    is_personal: bool = False,
) -> list[ShareDraft]:
    """
    Turn a requested expense into concrete shares, or raise a SplitError.

    Equal split works in whole cents:
      share = total // n
      remainder = total % n
      +1 cent to the first `remainder` participants ordered by member id.

    Example: 10000 cents among members 1, 2, 3 -> [3334, 3333, 3333].
    """
    total_cents = int(total_cents)
    payer_id = int(payer_id)
    if total_cents <= 0:
        raise InvalidAmount("Amount must be greater than zero.")
    if total_cents > MAX_AMOUNT_CENTS:
        raise InvalidAmount("Amount is too large.")

    roster = set(int(x) for x in roster_ids)
    if payer_id not in roster:
        raise NotATripMember([payer_id])

    if is_personal:
        return [ShareDraft(member_id=payer_id, amount_cents=total_cents, is_paid=True)]

    participants = sorted(set(int(x) for x in participant_ids))
    if not participants:
        raise EmptyParticipants()
    outsiders = [mid for mid in participants if mid not in roster]
    if outsiders:
        raise NotATripMember(outsiders)

    if isinstance(policy, EqualSplit):
        amounts = _equal_amounts(total_cents, participants)
    elif isinstance(policy, CustomSplit):
        amounts = _custom_amounts(total_cents, participants, policy)
    else:
        raise TypeError(f"Unknown split policy: {policy!r}")

    return [
        ShareDraft(member_id=mid, amount_cents=amt, is_paid=(mid == payer_id))
        for mid, amt in zip(participants, amounts)
    ]


def _equal_amounts(total_cents: int, participants: list[int]) -> list[int]:
    n = len(participants)
    share = total_cents // n
    rem = total_cents % n
    return [share + (1 if i < rem else 0) for i in range(n)]


def _custom_amounts(total_cents: int, participants: list[int], policy: CustomSplit) -> list[int]:
    extra = sorted(set(policy.amounts) - set(participants))
    if extra:
        raise SplitError(f"Amounts given for members who are not participants: {', '.join(map(str, extra))}.")

    amounts = [policy.amounts.get(mid, 0) for mid in participants]
    if any(a < 0 for a in amounts):
        raise InvalidAmount("Share amounts cannot be negative.")

    computed = sum(amounts)
    if abs(computed - total_cents) > SPLIT_TOLERANCE_CENTS:
        raise SplitMismatch(computed_cents=computed, expected_cents=total_cents)
    return amounts
