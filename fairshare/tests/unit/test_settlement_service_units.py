"""
Unit tests for settlement_service.get_settlements_response.

No Flask and no real database: the session is a MagicMock and the
balance_service data helpers are patched to return plain rows.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest

from fairshare.app.errors import AppError, ErrorCode, WarningCode
from fairshare.app.services import settlement_service


MEMBERS = [
    {"user_id": "alice", "name": "Alice"},
    {"user_id": "bob", "name": "Bob"},
    {"user_id": "carol", "name": "Carol"},
]

DINNER = {
    "amount": Decimal("90.00"),
    "payers": [{"user_id": "alice", "amount_paid": Decimal("90.00")}],
    "splits": [
        {"user_id": "alice", "amount": Decimal("30.00")},
        {"user_id": "bob", "amount": Decimal("30.00")},
        {"user_id": "carol", "amount": Decimal("30.00")},
    ],
}


def _patch_data(group, member_ids, members=MEMBERS, expenses=(DINNER,)):
    base = "fairshare.app.services.settlement_service.balance_service"
    return (
        patch(f"{base}.get_group", return_value=group),
        patch(f"{base}.get_active_member_ids", return_value=list(member_ids)),
        patch(f"{base}.get_active_members", return_value=list(members)),
        patch(f"{base}.get_active_expenses", return_value=list(expenses)),
    )


def _call(caller_id="bob", session=None, default_currency="USD"):
    return settlement_service.get_settlements_response(
        group_id="g1",
        caller_id=caller_id,
        session=session or MagicMock(),
        default_currency=default_currency,
    )


def test_raises_group_not_found():
    session = MagicMock()
    session.get.return_value = None

    with pytest.raises(AppError) as exc_info:
        settlement_service.get_settlements_response(
            group_id="missing",
            caller_id="alice",
            session=session,
        )

    err = exc_info.value
    assert err.code == ErrorCode.GROUP_NOT_FOUND
    assert err.http_status == 404


def test_raises_forbidden_for_non_member():
    group = SimpleNamespace(id="g1", currency="USD")
    p_group, p_ids, p_members, p_expenses = _patch_data(group, ["alice", "bob"])

    with p_group, p_ids, p_members, p_expenses as get_expenses:
        with pytest.raises(AppError) as exc_info:
            _call(caller_id="mallory")

    assert exc_info.value.code == ErrorCode.FORBIDDEN
    assert exc_info.value.http_status == 403
    get_expenses.assert_not_called()


def test_happy_path_payload():
    group = SimpleNamespace(id="g1", currency="USD")
    p_group, p_ids, p_members, p_expenses = _patch_data(group, ["alice", "bob", "carol"])

    with p_group, p_ids, p_members, p_expenses:
        data, warnings = _call(caller_id="bob")

    assert warnings == []
    assert data["group_id"] == "g1"
    assert data["currency"] == "USD"
    assert data["total_transactions"] == 2
    assert data["summary"] == "2 payments needed to settle up"
    assert [b["net_balance"] for b in data["balances"]] == ["60.00", "-30.00", "-30.00"]
    assert [
        (s["from_user_name"], s["to_user_name"], s["amount"])
        for s in data["suggested_settlements"]
    ] == [("Bob", "Alice", "30.00"), ("Carol", "Alice", "30.00")]

    assert [s["to_user_id"] for s in data["user_view"]["owes"]] == ["alice"]
    assert data["user_view"]["owed"] == []


def test_creditor_user_view():
    group = SimpleNamespace(id="g1", currency="USD")
    p_group, p_ids, p_members, p_expenses = _patch_data(group, ["alice", "bob", "carol"])

    with p_group, p_ids, p_members, p_expenses:
        data, _ = _call(caller_id="alice")

    assert data["user_view"]["owes"] == []
    assert [s["from_user_id"] for s in data["user_view"]["owed"]] == ["bob", "carol"]


def test_group_currency_wins_over_default():
    group = SimpleNamespace(id="g1", currency="EUR")
    p_group, p_ids, p_members, p_expenses = _patch_data(group, ["alice", "bob", "carol"])

    with p_group, p_ids, p_members, p_expenses:
        data, _ = _call(default_currency="GBP")

    assert data["currency"] == "EUR"
    assert data["suggested_settlements"][0]["display_amount"] == "€30.00"


def test_default_currency_used_when_group_has_none():
    group = SimpleNamespace(id="g1", currency=None)
    p_group, p_ids, p_members, p_expenses = _patch_data(group, ["alice", "bob", "carol"])

    with p_group, p_ids, p_members, p_expenses:
        data, _ = _call(default_currency="GBP")

    assert data["currency"] == "GBP"


def test_no_expenses_is_all_settled():
    group = SimpleNamespace(id="g1", currency="USD")
    p_group, p_ids, p_members, p_expenses = _patch_data(group, ["alice"], expenses=())

    with p_group, p_ids, p_members, p_expenses:
        data, warnings = _call(caller_id="alice")

    assert warnings == []
    assert data["suggested_settlements"] == []
    assert data["total_transactions"] == 0
    assert data["summary"] == "All settled up! 🎉"


def test_unbalanced_ledger_adds_warning(caplog):
    lopsided = {
        "payers": [{"user_id": "alice", "amount_paid": Decimal("100.00")}],
        "splits": [
            {"user_id": "bob", "amount": Decimal("45.00")},
            {"user_id": "carol", "amount": Decimal("45.00")},
        ],
    }
    group = SimpleNamespace(id="g1", currency="USD")
    p_group, p_ids, p_members, p_expenses = _patch_data(
        group, ["alice", "bob", "carol"], expenses=[lopsided],
    )

    with caplog.at_level(logging.WARNING, logger="fairshare.app.services.settlement_service"):
        with p_group, p_ids, p_members, p_expenses:
            data, warnings = _call(caller_id="alice")

    assert [w["code"] for w in warnings] == [WarningCode.UNBALANCED_LEDGER]
    assert "10.00" in warnings[0]["message"]
    assert "do not net to zero" in caplog.text
    # Suggestions are still produced for what can be matched.
    assert data["total_transactions"] == 2


def test_one_cent_drift_is_tolerated():
    off_by_a_cent = {
        "payers": [{"user_id": "alice", "amount_paid": Decimal("30.01")}],
        "splits": [
            {"user_id": "bob", "amount": Decimal("15.00")},
            {"user_id": "carol", "amount": Decimal("15.00")},
        ],
    }
    group = SimpleNamespace(id="g1", currency="USD")
    p_group, p_ids, p_members, p_expenses = _patch_data(
        group, ["alice", "bob", "carol"], expenses=[off_by_a_cent],
    )

    with p_group, p_ids, p_members, p_expenses:
        _, warnings = _call(caller_id="alice")

    assert warnings == []
