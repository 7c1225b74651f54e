from __future__ import annotations

from typing import Iterable, Optional


class LedgerError(ValueError):
    """Base for every validation failure raised by the splitting/balance engine."""


class SplitError(LedgerError):
    pass


class InvalidAmount(SplitError):
    pass


class EmptyParticipants(SplitError):
    def __init__(self, message: str = "Select at least one participant.") -> None:
        super().__init__(message)


class NotATripMember(SplitError):
    def __init__(self, member_ids: Iterable[int]) -> None:
        self.member_ids = tuple(sorted(set(int(x) for x in member_ids)))
        ids = ", ".join(str(x) for x in self.member_ids)
        super().__init__(f"Not a member of this trip: {ids}.")


class SplitMismatch(SplitError):
    def __init__(self, computed_cents: int, expected_cents: int) -> None:
        self.computed_cents = computed_cents
        self.expected_cents = expected_cents
        super().__init__(
            f"Shares add up to {computed_cents / 100:.2f} but the expense is {expected_cents / 100:.2f}."
        )


class InvariantViolation(LedgerError):
    # Stored expenses that no longer satisfy the split rules. Points at a defect upstream.
    def __init__(self, *, trip_id: Optional[int], expense_id: Optional[int], reason: str) -> None:
        self.trip_id = trip_id
        self.expense_id = expense_id
        self.reason = reason
        super().__init__(f"Expense {expense_id} in trip {trip_id} is inconsistent: {reason}")
