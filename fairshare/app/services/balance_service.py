"""
services/balance_service.py — Balance aggregation for a group.

This file is the SINGLE SOURCE OF TRUTH for how a member's balance is
computed. Any change to how balances work must be made here; settlement
suggestions and every view of them follow from it.

Layer rules:
  - No Flask imports. No current_app, request, g, or HTTP knowledge.
  - aggregate_balances() is pure: plain mappings in, dataclasses out.
  - The data-access helpers receive a SQLAlchemy Session and return plain
    dicts in exactly the shape aggregate_balances() consumes.

Money:
  - Every amount is a Decimal. Floats handed in by callers are converted
    through str() so 0.1 stays 0.1.
  - EPSILON (one cent) is the tolerance below which a balance counts as
    settled. It is shared with settlement_service.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from fairshare.app.models.expense import Expense
from fairshare.app.models.group import Group
from fairshare.app.models.membership import GroupMember, MemberStatus
from fairshare.app.models.user import User


EPSILON = Decimal("0.01")
ZERO = Decimal("0.00")
_CENT = Decimal("0.01")


def to_decimal(value) -> Decimal:
    """Normalises a Decimal, int, str or float amount to Decimal."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def round2(value: Decimal) -> Decimal:
    """Rounds to cents, half away from zero."""
    return value.quantize(_CENT, rounding=ROUND_HALF_UP)


@dataclass
class MemberBalance:
    """One member's position in a group. Positive net = is owed money."""

    user_id: str
    name: str
    total_paid: Decimal = ZERO
    total_owed: Decimal = ZERO
    net_balance: Decimal = ZERO

    @property
    def is_settled(self) -> bool:
        return abs(self.net_balance) <= EPSILON


# ── Core algorithm ─────────────────────────────────────────────────────────

def aggregate_balances(
        members: Iterable[Mapping],
        expenses: Iterable[Mapping],
) -> list[MemberBalance]:
    """
    Folds a group's expenses into one balance per member.

    Args:
        members:  [{"user_id": str, "name": str}, ...]
        expenses: [{"payers": [{"user_id", "amount_paid"}],
                    "splits": [{"user_id", "amount"}]}, ...]

    Returns:
        One MemberBalance per member, in the order members were given.

    Payer and split entries that reference a user who is not in `members`
    are skipped: they never create a balance record and never raise.
    The payer total of an expense is not compared to its split total here;
    expense creation owns that rule.
    """
    by_user: dict[str, MemberBalance] = {}
    for member in members:
        by_user[member["user_id"]] = MemberBalance(
            user_id=member["user_id"],
            name=member["name"],
        )

    for expense in expenses:
        for payer in expense.get("payers", ()):
            balance = by_user.get(payer["user_id"])
            if balance is not None:
                balance.total_paid += to_decimal(payer["amount_paid"])

        for split in expense.get("splits", ()):
            balance = by_user.get(split["user_id"])
            if balance is not None:
                balance.total_owed += to_decimal(split["amount"])

    for balance in by_user.values():
        balance.net_balance = balance.total_paid - balance.total_owed

    return list(by_user.values())


def balance_drift(balances: Iterable[MemberBalance]) -> Decimal:
    """
    Sum of all net balances. Zero for a consistent ledger; anything beyond
    EPSILON means some stored expense has payers and splits that disagree.
    """
    return sum((b.net_balance for b in balances), ZERO)


# ── Data access helpers ────────────────────────────────────────────────────
# The only sanctioned ways to read member/expense data for balance purposes.
# They apply the ACTIVE-member and not-deleted filters at the query level.

def get_group(group_id: str, session: Session) -> Group | None:
    return session.get(Group, group_id)


def get_active_member_ids(group_id: str, session: Session) -> list[str]:
    """Returns the user_ids of all ACTIVE members of a group."""
    stmt = select(GroupMember.user_id).where(
        GroupMember.group_id == group_id,
        GroupMember.status == MemberStatus.ACTIVE,
    )
    return list(session.execute(stmt).scalars().all())


def get_active_members(group_id: str, session: Session) -> list[dict]:
    """
    Returns [{"user_id", "name"}] for every ACTIVE member, oldest first.

    The display name falls back to the email address, then to "Unknown",
    so the aggregator always receives a non-empty label.
    """
    stmt = (
        select(User)
        .join(GroupMember, User.id == GroupMember.user_id)
        .where(
            GroupMember.group_id == group_id,
            GroupMember.status == MemberStatus.ACTIVE,
        )
        .order_by(GroupMember.joined_at, GroupMember.id)
    )
    return [
        {"user_id": user.id, "name": user.display_name}
        for user in session.execute(stmt).scalars().all()
    ]


def get_active_expenses(group_id: str, session: Session) -> list[dict]:
    """
    Returns every expense of a group WHERE deleted_at IS NULL, with its
    payer and split rows, as plain dicts.
    """
    stmt = (
        select(Expense)
        .where(
            Expense.group_id == group_id,
            Expense.deleted_at.is_(None),
        )
        .options(selectinload(Expense.payers), selectinload(Expense.splits))
        .order_by(Expense.created_at, Expense.id)
    )
    return [
        {
            "amount": expense.amount,
            "payers": [
                {"user_id": p.user_id, "amount_paid": p.amount_paid}
                for p in expense.payers
            ],
            "splits": [
                {"user_id": s.user_id, "amount": s.amount}
                for s in expense.splits
            ],
        }
        for expense in session.execute(stmt).scalars().all()
    ]
