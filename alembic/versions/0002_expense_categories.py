"""expense categories

Revision ID: 0002_expense_categories
Revises: 0001_init
Create Date: 2026-10-19

"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa


revision = "0002_expense_categories"
down_revision = "0001_init"
branch_labels = None
depends_on = None


def upgrade() -> None:
    categories = op.create_table(
        "expense_categories",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(length=64), nullable=False),
        sa.Column("icon", sa.String(length=16), server_default="🧾", nullable=False),
        sa.Column("trip_id", sa.BigInteger(), sa.ForeignKey("trips.id", ondelete="CASCADE"), nullable=True),
    )
    op.create_index("ix_expense_categories_trip_id", "expense_categories", ["trip_id"])

    # Same rows as services.categories.DEFAULT_CATEGORIES.
    op.bulk_insert(
        categories,
        [
            {"name": "Food", "icon": "🍽"},
            {"name": "Transport", "icon": "🚕"},
            {"name": "Lodging", "icon": "🏨"},
            {"name": "Activities", "icon": "🎟"},
            {"name": "Shopping", "icon": "🛍"},
            {"name": "Other", "icon": "🧾"},
        ],
    )

    op.add_column(
        "expenses",
        sa.Column(
            "category_id",
            sa.BigInteger(),
            sa.ForeignKey("expense_categories.id", ondelete="SET NULL", name="fk_expenses_category_id"),
            nullable=True,
        ),
    )


def downgrade() -> None:
    op.drop_constraint("fk_expenses_category_id", "expenses", type_="foreignkey")
    op.drop_column("expenses", "category_id")
    op.drop_index("ix_expense_categories_trip_id", table_name="expense_categories")
    op.drop_table("expense_categories")
