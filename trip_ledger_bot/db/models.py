from __future__ import annotations

import enum
from datetime import datetime
from typing import Optional

import sqlalchemy as sa
from sqlalchemy import BigInteger, Boolean, CheckConstraint, DateTime, Enum, ForeignKey, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


# BIGINT keys are not rowid aliases on SQLite, so they would never autoincrement there.
BigIntPK = BigInteger().with_variant(Integer(), "sqlite")

UTC_NOW = sa.text("CURRENT_TIMESTAMP")


class Base(DeclarativeBase):
    pass


class Chat(Base):
    __tablename__ = "chats"
    __table_args__ = (UniqueConstraint("tg_chat_id", name="uq_chats_tg_chat_id"),)

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    # Telegram chat id (group id) is a signed 64-bit integer.
    tg_chat_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    title: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=UTC_NOW, nullable=False)

    trips: Mapped[list[Trip]] = relationship(back_populates="chat", cascade="all, delete-orphan")


class Member(Base):
    __tablename__ = "members"
    __table_args__ = (UniqueConstraint("tg_user_id", name="uq_members_tg_user_id"),)

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    tg_user_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    username: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    first_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=UTC_NOW, nullable=False)


class Trip(Base):
    __tablename__ = "trips"
    __table_args__ = (
        UniqueConstraint("code", name="uq_trips_code"),
        Index("ix_trips_chat_created_at", "chat_id", "created_at"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    chat_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("chats.id", ondelete="CASCADE"),
        nullable=False,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    # Shareable code for joining from another chat.
    code: Mapped[str] = mapped_column(String(16), nullable=False)
    # Informational only, amounts are never converted.
    currency: Mapped[str] = mapped_column(String(3), nullable=False, server_default="USD")
    owner_member_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("members.id", ondelete="RESTRICT"),
        nullable=False,
    )
    dashboard_message_id: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=UTC_NOW, nullable=False)

    chat: Mapped[Chat] = relationship(back_populates="trips")
    owner: Mapped[Member] = relationship(foreign_keys=[owner_member_id])

    memberships: Mapped[list[TripMember]] = relationship(
        back_populates="trip",
        cascade="all, delete-orphan",
    )
    expenses: Mapped[list[Expense]] = relationship(back_populates="trip", cascade="all, delete-orphan")


class TripMember(Base):
    __tablename__ = "trip_members"
    __table_args__ = (
        UniqueConstraint("trip_id", "member_id", name="uq_trip_members_trip_member"),
        Index("ix_trip_members_trip_id", "trip_id"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    trip_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("trips.id", ondelete="CASCADE"),
        nullable=False,
    )
    member_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("members.id", ondelete="RESTRICT"),
        nullable=False,
    )
    is_owner: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=sa.false())
    joined_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=UTC_NOW, nullable=False)

    trip: Mapped[Trip] = relationship(back_populates="memberships")
    member: Mapped[Member] = relationship()


class ExpenseCategory(Base):
    __tablename__ = "expense_categories"
    __table_args__ = (Index("ix_expense_categories_trip_id", "trip_id"),)

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(64), nullable=False)
    icon: Mapped[str] = mapped_column(String(16), nullable=False, server_default="🧾")
    # NULL means a built-in category shared by every trip.
    trip_id: Mapped[Optional[int]] = mapped_column(
        BigInteger,
        ForeignKey("trips.id", ondelete="CASCADE"),
        nullable=True,
    )


class SplitType(str, enum.Enum):
    EQUAL = "EQUAL"
    CUSTOM = "CUSTOM"
    PERSONAL = "PERSONAL"


class Expense(Base):
    __tablename__ = "expenses"
    __table_args__ = (
        Index("ix_expenses_trip_id", "trip_id"),
        Index("ix_expenses_trip_created_at", "trip_id", "created_at"),
        CheckConstraint("amount_cents > 0", name="ck_expenses_amount_positive"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    trip_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("trips.id", ondelete="CASCADE"),
        nullable=False,
    )
    payer_member_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("members.id", ondelete="RESTRICT"),
        nullable=False,
    )
    # Minor currency units. Example: 1234 -> 12.34.
    amount_cents: Mapped[int] = mapped_column(BigInteger, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    category_id: Mapped[Optional[int]] = mapped_column(
        BigInteger,
        ForeignKey("expense_categories.id", ondelete="SET NULL"),
        nullable=True,
    )
    split_type: Mapped[SplitType] = mapped_column(Enum(SplitType, name="split_type"), nullable=False)
    is_personal: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=sa.false())
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=UTC_NOW, nullable=False)

    trip: Mapped[Trip] = relationship(back_populates="expenses")
    payer: Mapped[Member] = relationship(foreign_keys=[payer_member_id])
    category: Mapped[Optional[ExpenseCategory]] = relationship()

    shares: Mapped[list[ExpenseShare]] = relationship(
        back_populates="expense",
        cascade="all, delete-orphan",
        order_by="ExpenseShare.id",
    )


class ExpenseShare(Base):
    __tablename__ = "expense_shares"
    __table_args__ = (
        UniqueConstraint("expense_id", "member_id", name="uq_expense_shares_expense_member"),
        Index("ix_expense_shares_expense_id", "expense_id"),
        CheckConstraint("amount_cents >= 0", name="ck_expense_shares_amount_non_negative"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    expense_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("expenses.id", ondelete="CASCADE"),
        nullable=False,
    )
    member_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("members.id", ondelete="RESTRICT"),
        nullable=False,
    )
    amount_cents: Mapped[int] = mapped_column(BigInteger, nullable=False)
    is_paid: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=sa.false())
    paid_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    expense: Mapped[Expense] = relationship(back_populates="shares")
    member: Mapped[Member] = relationship()
