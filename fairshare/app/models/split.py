"""
models/split.py — ExpensePayer and ExpenseSplit table definitions.

No business logic. No imports from services or routes.

  - ExpensePayer: how much one user fronted for an expense.
  - ExpenseSplit: how much of an expense one user is responsible for.

Both are owned by their expense (ON DELETE CASCADE) and a user appears at
most once per expense on each side.
"""

from __future__ import annotations

from decimal import Decimal

from sqlalchemy import CheckConstraint, ForeignKey, Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from fairshare.app.extensions import db
from fairshare.app.models.user import new_id


class ExpensePayer(db.Model):
    __tablename__ = "expense_payers"

    __table_args__ = (
        UniqueConstraint("expense_id", "user_id", name="uq_expense_payers_expense_user"),
        CheckConstraint("amount_paid >= 0", name="ck_expense_payers_amount_nonnegative"),
    )

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)

    expense_id: Mapped[str] = mapped_column(
        ForeignKey("expenses.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    user_id: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
    )

    amount_paid: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
    )

    expense: Mapped["Expense"] = relationship(  # noqa: F821
        "Expense",
        back_populates="payers",
    )

    def __repr__(self) -> str:  # pragma: no cover
        return (
            f"<ExpensePayer expense_id={self.expense_id} "
            f"user_id={self.user_id} "
            f"amount_paid={self.amount_paid}>"
        )


class ExpenseSplit(db.Model):
    __tablename__ = "expense_splits"

    __table_args__ = (
        UniqueConstraint("expense_id", "user_id", name="uq_expense_splits_expense_user"),
        CheckConstraint("amount >= 0", name="ck_expense_splits_amount_nonnegative"),
    )

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)

    expense_id: Mapped[str] = mapped_column(
        ForeignKey("expenses.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    user_id: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
    )

    amount: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
    )

    expense: Mapped["Expense"] = relationship(  # noqa: F821
        "Expense",
        back_populates="splits",
    )

    def __repr__(self) -> str:  # pragma: no cover
        return (
            f"<ExpenseSplit expense_id={self.expense_id} "
            f"user_id={self.user_id} "
            f"amount={self.amount}>"
        )
