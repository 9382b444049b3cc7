"""Initial schema: users, groups, memberships, expenses, payers and splits.

Revision: 001_initial_schema
Created:  2026-10-19

Append-only: never edit this file once it has been applied to a database.
Schema changes go in a new migration.

Creation order:
  1. member_status_enum (must exist before group_members)
  2. Tables in FK dependency order (users → groups → group_members →
     expenses → expense_payers, expense_splits)
  3. Indexes (including the partial index idx_expenses_active)

ON DELETE policies:
  group_members.*             → RESTRICT
  expenses.group_id           → RESTRICT
  expense_payers.expense_id   → CASCADE   (owned by the expense)
  expense_splits.expense_id   → CASCADE   (owned by the expense)
  expense_payers/splits.user  → RESTRICT
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# ── Alembic revision identifiers ──────────────────────────────────────────
revision: str = "001_initial_schema"
down_revision: str | None = None
branch_labels: tuple | None = None
depends_on: tuple | None = None


def upgrade() -> None:
    """Apply the full initial schema."""

    # ── Step 1: PostgreSQL enum type ──────────────────────────────────────
    op.execute("""
        CREATE TYPE member_status_enum AS ENUM ('ACTIVE', 'INVITED', 'LEFT')
    """)

    # ── Step 2: users ──────────────────────────────────────────────────────
    # name and email are both optional; display falls back name → email.

    op.create_table(
        "users",
        sa.Column("id", sa.String(32), nullable=False),
        sa.Column("name", sa.String(100), nullable=True),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
        sa.PrimaryKeyConstraint("id", name="pk_users"),
        sa.UniqueConstraint("email", name="uq_users_email"),
    )

    # ── Step 3: groups ─────────────────────────────────────────────────────

    op.create_table(
        "groups",
        sa.Column("id", sa.String(32), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column(
            "currency",
            sa.String(3),
            nullable=False,
            server_default="USD",
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
        sa.PrimaryKeyConstraint("id", name="pk_groups"),
        sa.CheckConstraint(
            "LENGTH(TRIM(name)) > 0",
            name="ck_groups_name_nonempty",
        ),
    )

    # ── Step 4: group_members ──────────────────────────────────────────────
    # UNIQUE(group_id, user_id). Only ACTIVE rows count for settlements.

    op.create_table(
        "group_members",
        sa.Column("id", sa.String(32), nullable=False),
        sa.Column(
            "group_id",
            sa.String(32),
            sa.ForeignKey("groups.id", ondelete="RESTRICT", name="fk_group_members_group"),
            nullable=False,
        ),
        sa.Column(
            "user_id",
            sa.String(32),
            sa.ForeignKey("users.id", ondelete="RESTRICT", name="fk_group_members_user"),
            nullable=False,
        ),
        sa.Column(
            "status",
            postgresql.ENUM(
                "ACTIVE", "INVITED", "LEFT",
                name="member_status_enum",
                create_type=False,
            ),
            nullable=False,
            server_default="ACTIVE",
        ),
        sa.Column(
            "joined_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
        sa.PrimaryKeyConstraint("id", name="pk_group_members"),
        sa.UniqueConstraint("group_id", "user_id", name="uq_group_members_group_user"),
    )

    # ── Step 5: expenses ───────────────────────────────────────────────────
    # deleted_at IS NULL = active; non-null = soft-deleted.

    op.create_table(
        "expenses",
        sa.Column("id", sa.String(32), nullable=False),
        sa.Column(
            "group_id",
            sa.String(32),
            sa.ForeignKey("groups.id", ondelete="RESTRICT", name="fk_expenses_group"),
            nullable=False,
        ),
        sa.Column("description", sa.String(255), nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_expenses"),
        sa.CheckConstraint("amount > 0", name="ck_expenses_amount_positive"),
        sa.CheckConstraint(
            "LENGTH(TRIM(description)) > 0",
            name="ck_expenses_description_nonempty",
        ),
    )

    # ── Step 6: expense_payers / expense_splits ────────────────────────────
    # One row per (expense, user) on each side.

    op.create_table(
        "expense_payers",
        sa.Column("id", sa.String(32), nullable=False),
        sa.Column(
            "expense_id",
            sa.String(32),
            sa.ForeignKey("expenses.id", ondelete="CASCADE", name="fk_expense_payers_expense"),
            nullable=False,
        ),
        sa.Column(
            "user_id",
            sa.String(32),
            sa.ForeignKey("users.id", ondelete="RESTRICT", name="fk_expense_payers_user"),
            nullable=False,
        ),
        sa.Column("amount_paid", sa.Numeric(12, 2), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_expense_payers"),
        sa.UniqueConstraint("expense_id", "user_id", name="uq_expense_payers_expense_user"),
        sa.CheckConstraint("amount_paid >= 0", name="ck_expense_payers_amount_nonnegative"),
    )

    op.create_table(
        "expense_splits",
        sa.Column("id", sa.String(32), nullable=False),
        sa.Column(
            "expense_id",
            sa.String(32),
            sa.ForeignKey("expenses.id", ondelete="CASCADE", name="fk_expense_splits_expense"),
            nullable=False,
        ),
        sa.Column(
            "user_id",
            sa.String(32),
            sa.ForeignKey("users.id", ondelete="RESTRICT", name="fk_expense_splits_user"),
            nullable=False,
        ),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_expense_splits"),
        sa.UniqueConstraint("expense_id", "user_id", name="uq_expense_splits_expense_user"),
        sa.CheckConstraint("amount >= 0", name="ck_expense_splits_amount_nonnegative"),
    )

    # ── Step 7: Indexes ────────────────────────────────────────────────────

    op.create_index("ix_group_members_group_id", "group_members", ["group_id"])
    op.create_index("ix_group_members_user_id", "group_members", ["user_id"])
    op.create_index("ix_expenses_group_id", "expenses", ["group_id"])
    # Settlement requests only ever read active rows.
    op.create_index(
        "idx_expenses_active",
        "expenses",
        ["group_id"],
        postgresql_where=sa.text("deleted_at IS NULL"),
    )
    op.create_index("ix_expense_payers_expense_id", "expense_payers", ["expense_id"])
    op.create_index("ix_expense_splits_expense_id", "expense_splits", ["expense_id"])


def downgrade() -> None:
    """Drop everything created in upgrade(), in reverse dependency order."""

    op.drop_index("ix_expense_splits_expense_id", table_name="expense_splits")
    op.drop_index("ix_expense_payers_expense_id", table_name="expense_payers")
    op.drop_index("idx_expenses_active",          table_name="expenses")
    op.drop_index("ix_expenses_group_id",         table_name="expenses")
    op.drop_index("ix_group_members_user_id",     table_name="group_members")
    op.drop_index("ix_group_members_group_id",    table_name="group_members")

    op.drop_table("expense_splits")
    op.drop_table("expense_payers")
    op.drop_table("expenses")
    op.drop_table("group_members")
    op.drop_table("groups")
    op.drop_table("users")

    op.execute("DROP TYPE IF EXISTS member_status_enum")
