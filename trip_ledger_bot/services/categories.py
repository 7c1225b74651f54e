from __future__ import annotations

import logging
import re
from typing import Optional

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from trip_ledger_bot.db.models import ExpenseCategory

logger = logging.getLogger(__name__)

# Built-in categories, (name, icon). Stored with trip_id NULL.
DEFAULT_CATEGORIES: tuple[tuple[str, str], ...] = (
    ("Food", "🍽"),
    ("Transport", "🚕"),
    ("Lodging", "🏨"),
    ("Activities", "🎟"),
    ("Shopping", "🛍"),
    ("Other", "🧾"),
)

_NAME_RE = re.compile(r"^[^\W_][\w-]{0,31}$")


def normalize_category_name(name: str) -> str:
    # "#food" -> "food"; names are single words so they work as "#tokens".
    cleaned = (name or "").strip().lstrip("#")
    if not _NAME_RE.match(cleaned):
        raise ValueError("Category name must be one word of up to 32 letters, digits, '_' or '-'.")
    return cleaned


async def ensure_default_categories(session: AsyncSession) -> None:
    existing = set(
        await session.scalars(select(ExpenseCategory.name).where(ExpenseCategory.trip_id.is_(None)))
    )
    missing = [(n, i) for n, i in DEFAULT_CATEGORIES if n not in existing]
    for name, icon in missing:
        session.add(ExpenseCategory(name=name, icon=icon, trip_id=None))
    if missing:
        await session.flush()
        logger.info("Added %s default expense categories", len(missing))


async def list_categories(session: AsyncSession, *, trip_id: Optional[int] = None) -> list[ExpenseCategory]:
    """Built-in categories first, then the trip's own, each in creation order."""
    cond = ExpenseCategory.trip_id.is_(None)
    if trip_id is not None:
        cond = or_(cond, ExpenseCategory.trip_id == trip_id)
    res = await session.scalars(
        select(ExpenseCategory)
        .where(cond)
        .order_by(ExpenseCategory.trip_id.is_not(None), ExpenseCategory.id.asc())
    )
    return list(res)


async def find_category(session: AsyncSession, *, trip_id: int, name: str) -> Optional[ExpenseCategory]:
    key = (name or "").strip().lstrip("#").lower()
    if not key:
        return None
    return await session.scalar(
        select(ExpenseCategory)
        .where(
            func.lower(ExpenseCategory.name) == key,
            or_(ExpenseCategory.trip_id.is_(None), ExpenseCategory.trip_id == trip_id),
        )
        .order_by(ExpenseCategory.trip_id.is_(None), ExpenseCategory.id.asc())
        .limit(1)
    )


async def add_trip_category(session: AsyncSession, *, trip_id: int, name: str, icon: Optional[str] = None) -> ExpenseCategory:
    name = normalize_category_name(name)
    icon = (icon or "").strip() or "🧾"
    if len(icon) > 16:
        raise ValueError("Category icon is too long.")
    if await find_category(session, trip_id=trip_id, name=name) is not None:
        raise ValueError(f"Category #{name} already exists.")
    category = ExpenseCategory(name=name, icon=icon, trip_id=trip_id)
    session.add(category)
    await session.flush()
    logger.info("Created category id=%s name=%s trip_id=%s", category.id, name, trip_id)
    return category


def category_label(category: Optional[ExpenseCategory]) -> str:
    if category is None:
        return ""
    return f"{category.icon} {category.name}"
