from __future__ import annotations

import logging
import re
import secrets
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from trip_ledger_bot.db.models import Member, Trip, TripMember

logger = logging.getLogger(__name__)

TRIP_CODE_LENGTH = 6
# No 0/O or 1/I so codes survive being read aloud.
TRIP_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"

_CURRENCY_RE = re.compile(r"^[A-Z]{3}$")


def generate_trip_code(length: int = TRIP_CODE_LENGTH) -> str:
    return "".join(secrets.choice(TRIP_CODE_ALPHABET) for _ in range(length))


def normalize_currency(currency: str) -> str:
    cur = (currency or "").strip().upper()
    if not _CURRENCY_RE.match(cur):
        raise ValueError("Currency must be a 3-letter code, e.g. USD.")
    return cur


async def get_trip_by_code(session: AsyncSession, *, code: str) -> Optional[Trip]:
    return await session.scalar(select(Trip).where(Trip.code == code.strip().upper()))


async def create_trip(
    session: AsyncSession,
    *,
    chat_id: int,
    owner_member_id: int,
    name: str,
    currency: str = "USD",
    description: Optional[str] = None,
) -> Trip:
    name = (name or "").strip()
    if not name:
        raise ValueError("Trip name must not be empty.")
    if len(name) > 255:
        raise ValueError("Trip name is too long.")
    currency = normalize_currency(currency)

    code = generate_trip_code()
    while await get_trip_by_code(session, code=code) is not None:
        code = generate_trip_code()

    trip = Trip(
        chat_id=chat_id,
        name=name,
        description=(description.strip() if description and description.strip() else None),
        code=code,
        currency=currency,
        owner_member_id=int(owner_member_id),
    )
    session.add(trip)
    await session.flush()

    session.add(TripMember(trip_id=trip.id, member_id=int(owner_member_id), is_owner=True))
    await session.flush()
    logger.info("Created trip id=%s code=%s chat_id=%s", trip.id, trip.code, chat_id)
    return trip


async def get_active_trip(session: AsyncSession, *, chat_id: int) -> Optional[Trip]:
    return await session.scalar(
        select(Trip).where(Trip.chat_id == chat_id).order_by(Trip.created_at.desc(), Trip.id.desc()).limit(1)
    )


async def is_trip_member(session: AsyncSession, *, trip_id: int, member_id: int) -> bool:
    found = await session.scalar(
        select(TripMember.id).where(TripMember.trip_id == trip_id, TripMember.member_id == member_id)
    )
    return found is not None


async def join_trip(session: AsyncSession, *, trip_id: int, member_id: int) -> TripMember:
    if await is_trip_member(session, trip_id=trip_id, member_id=member_id):
        raise ValueError("You are already a member of this trip.")
    membership = TripMember(trip_id=trip_id, member_id=int(member_id), is_owner=False)
    session.add(membership)
    await session.flush()
    logger.info("Member id=%s joined trip id=%s", member_id, trip_id)
    return membership


async def list_roster(session: AsyncSession, *, trip_id: int) -> list[Member]:
    # Roster order is join order; it drives balance output order.
    res = await session.scalars(
        select(Member)
        .join(TripMember, TripMember.member_id == Member.id)
        .where(TripMember.trip_id == trip_id)
        .order_by(TripMember.joined_at.asc(), TripMember.id.asc())
    )
    return list(res)
