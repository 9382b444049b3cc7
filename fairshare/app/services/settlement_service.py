"""
services/settlement_service.py — Suggested payments that settle a group.

Greedy minimum cash flow: the largest creditor is matched with the largest
debtor until one side runs out. For N unsettled members this produces at
most N-1 payments. It is a heuristic, not an exact minimum-transaction
solver, and the pairing/ordering it produces is part of the observable
behaviour.

Layer rules:
  - No Flask imports. Pure Python plus a SQLAlchemy session parameter for
    get_settlements_response().
  - Suggestions are derived on every request and never persisted here.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from decimal import Decimal

from sqlalchemy.orm import Session

from fairshare.app.errors import AppError, ErrorCode, WarningCode
from fairshare.app.schemas.settlement_schema import (
    GroupSettlementsSchema,
    SettlementSchema,
)
from fairshare.app.services import balance_service, format_service
from fairshare.app.services.balance_service import (
    EPSILON,
    MemberBalance,
    aggregate_balances,
    round2,
)

logger = logging.getLogger(__name__)


@dataclass
class Settlement:
    """A single suggested payment from a debtor to a creditor."""

    from_user_id: str
    from_user_name: str
    to_user_id: str
    to_user_name: str
    amount: Decimal
    currency: str


@dataclass
class GroupSettlements:
    group_id: str
    currency: str
    balances: list[MemberBalance] = field(default_factory=list)
    suggested_settlements: list[Settlement] = field(default_factory=list)
    total_transactions: int = 0


@dataclass
class _Position:
    # Working copy of a balance; `remaining` is always positive.
    user_id: str
    name: str
    remaining: Decimal


# ── Core algorithm ─────────────────────────────────────────────────────────

def optimize_settlements(
        balances: Iterable[MemberBalance],
        currency: str = "USD",
) -> list[Settlement]:
    """
    Greedy debt simplification over net balances.

    Members within EPSILON of zero are already settled and take no part.
    Creditors and debtors are each sorted largest first (stable, so equal
    amounts keep their input order) and swept with one cursor per side:

        transfer = min(creditor.remaining, debtor.remaining)

    A payment is emitted only when transfer > EPSILON, rounded to cents.
    A cursor moves on once its side drops below EPSILON; both may move in
    the same step. The sweep stops as soon as either side is exhausted, so
    drift smaller than EPSILON is left unassigned.

    The input balances are not modified. Payments come back in the order
    the sweep produced them.
    """
    balances = list(balances)

    creditors = sorted(
        (
            _Position(b.user_id, b.name, b.net_balance)
            for b in balances
            if b.net_balance > EPSILON
        ),
        key=lambda p: p.remaining,
        reverse=True,
    )
    debtors = sorted(
        (
            _Position(b.user_id, b.name, -b.net_balance)
            for b in balances
            if b.net_balance < -EPSILON
        ),
        key=lambda p: p.remaining,
        reverse=True,
    )

    settlements: list[Settlement] = []
    i = j = 0

    while i < len(creditors) and j < len(debtors):
        creditor = creditors[i]
        debtor = debtors[j]

        transfer = min(creditor.remaining, debtor.remaining)
        if transfer > EPSILON:
            settlements.append(Settlement(
                from_user_id=debtor.user_id,
                from_user_name=debtor.name,
                to_user_id=creditor.user_id,
                to_user_name=creditor.name,
                amount=round2(transfer),
                currency=currency,
            ))

        creditor.remaining -= transfer
        debtor.remaining -= transfer

        if creditor.remaining < EPSILON:
            i += 1
        if debtor.remaining < EPSILON:
            j += 1

    return settlements


def calculate_group_settlements(
        group_id: str,
        currency: str,
        members: Iterable[Mapping],
        expenses: Iterable[Mapping],
) -> GroupSettlements:
    """Aggregates balances, then optimizes them. Public entry point for a group."""
    balances = aggregate_balances(members, expenses)
    suggested = optimize_settlements(balances, currency)
    return GroupSettlements(
        group_id=group_id,
        currency=currency,
        balances=balances,
        suggested_settlements=suggested,
        total_transactions=len(suggested),
    )


def get_user_settlements(
        settlements: Iterable[Settlement],
        user_id: str,
) -> dict[str, list[Settlement]]:
    """Splits suggestions into what `user_id` owes and what they are owed."""
    settlements = list(settlements)
    return {
        "owes": [s for s in settlements if s.from_user_id == user_id],
        "owed": [s for s in settlements if s.to_user_id == user_id],
    }


# ── Service entry point ────────────────────────────────────────────────────

def get_settlements_response(
        group_id: str,
        caller_id: str,
        session: Session,
        default_currency: str = "USD",
) -> tuple[dict, list[dict]]:
    """
    Builds the payload for GET /groups/:id/settlements.

    Raises:
        AppError(GROUP_NOT_FOUND, 404) -- group does not exist.
        AppError(FORBIDDEN, 403)       -- caller is not an ACTIVE member.

    Returns:
        (data, warnings). An UNBALANCED_LEDGER warning is added when the
        group's balances do not net to zero; suggestions are still returned.
    """
    group = balance_service.get_group(group_id, session)
    if group is None:
        raise AppError(
            ErrorCode.GROUP_NOT_FOUND,
            f"Group {group_id} does not exist.",
            404,
        )

    if caller_id not in balance_service.get_active_member_ids(group_id, session):
        raise AppError(
            ErrorCode.FORBIDDEN,
            f"You are not a member of group {group_id}.",
            403,
        )

    currency = group.currency or default_currency
    result = calculate_group_settlements(
        group_id=group.id,
        currency=currency,
        members=balance_service.get_active_members(group_id, session),
        expenses=balance_service.get_active_expenses(group_id, session),
    )

    warnings: list[dict] = []
    drift = balance_service.balance_drift(result.balances)
    if abs(drift) > EPSILON:
        logger.warning(
            "Balances for group %s do not net to zero (drift %s)", group_id, drift,
        )
        warnings.append({
            "code": WarningCode.UNBALANCED_LEDGER,
            "message": (
                f"Group balances are off by {drift}. Some expense has payer "
                f"amounts that do not match its split amounts."
            ),
        })

    data = GroupSettlementsSchema().dump(result)
    data["summary"] = format_service.summarize(result.suggested_settlements)

    mine = get_user_settlements(result.suggested_settlements, caller_id)
    data["user_view"] = {
        key: SettlementSchema(many=True).dump(items) for key, items in mine.items()
    }

    logger.debug(
        "Computed %d suggested payments for group %s",
        result.total_transactions, group_id,
    )
    return data, warnings
