from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Iterable, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from trip_ledger_bot.db.models import Expense, ExpenseShare, SplitType
from trip_ledger_bot.services.ledger import Balance, ExpenseRecord, RosterEntry, ShareRecord, compute_balances
from trip_ledger_bot.services.members import display_name
from trip_ledger_bot.services.splits import CustomSplit, EqualSplit, SplitPolicy, compute_split
from trip_ledger_bot.services.trips import list_roster

logger = logging.getLogger(__name__)


def _split_type(policy: SplitPolicy, is_personal: bool) -> SplitType:
    if is_personal:
        return SplitType.PERSONAL
    if isinstance(policy, CustomSplit):
        return SplitType.CUSTOM
    return SplitType.EQUAL


async def create_expense(
    session: AsyncSession,
    *,
    trip_id: int,
    payer_member_id: int,
    amount_cents: int,
    participant_member_ids: Iterable[int],
    policy: Optional[SplitPolicy] = None,
    is_personal: bool = False,
    description: Optional[str] = None,
    category_id: Optional[int] = None,
) -> Expense:
    """
    Split and store one expense with all of its shares.

    The split is computed before anything is added to the session, so a
    SplitError leaves the session untouched.
    """
    policy = policy or EqualSplit()
    roster = await list_roster(session, trip_id=trip_id)
    drafts = compute_split(
        amount_cents,
        participant_member_ids,
        policy,
        payer_id=payer_member_id,
        roster_ids=[m.id for m in roster],
        is_personal=is_personal,
    )

    now = datetime.now(timezone.utc)
    expense = Expense(
        trip_id=trip_id,
        payer_member_id=int(payer_member_id),
        amount_cents=int(amount_cents),
        description=(description.strip() if description and description.strip() else None),
        category_id=category_id,
        split_type=_split_type(policy, is_personal),
        is_personal=is_personal,
        shares=[
            ExpenseShare(
                member_id=d.member_id,
                amount_cents=d.amount_cents,
                is_paid=d.is_paid,
                paid_at=now if d.is_paid else None,
            )
            for d in drafts
        ],
    )
    session.add(expense)
    await session.flush()
    logger.info(
        "Created expense id=%s trip_id=%s amount_cents=%s policy=%s shares=%s",
        expense.id,
        trip_id,
        expense.amount_cents,
        expense.split_type.value,
        len(drafts),
    )
    return expense


async def get_last_expenses(session: AsyncSession, *, trip_id: int, limit: int = 5) -> list[Expense]:
    res = await session.scalars(
        select(Expense)
        .where(Expense.trip_id == trip_id)
        .options(selectinload(Expense.payer), selectinload(Expense.category))
        .order_by(Expense.created_at.desc(), Expense.id.desc())
        .limit(limit)
    )
    return list(res)


async def load_trip_snapshot(session: AsyncSession, *, trip_id: int) -> tuple[list[RosterEntry], list[ExpenseRecord]]:
    roster = [RosterEntry(member_id=m.id, name=display_name(m)) for m in await list_roster(session, trip_id=trip_id)]

    rows = await session.scalars(
        select(Expense)
        .where(Expense.trip_id == trip_id)
        .options(selectinload(Expense.shares))
        .order_by(Expense.id.asc())
    )
    expenses = [
        ExpenseRecord(
            id=e.id,
            payer_id=e.payer_member_id,
            amount_cents=e.amount_cents,
            shares=tuple(ShareRecord(member_id=s.member_id, amount_cents=s.amount_cents) for s in e.shares),
            is_personal=e.is_personal,
        )
        for e in rows
    ]
    return roster, expenses


async def trip_balances(session: AsyncSession, *, trip_id: int) -> list[Balance]:
    roster, expenses = await load_trip_snapshot(session, trip_id=trip_id)
    return compute_balances(trip_id, roster, expenses)
