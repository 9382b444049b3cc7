"""
tests/integration/conftest.py — Fixtures and helpers for all integration tests.

Design:
  - The app is created once per session using create_app("testing"), which
    points at in-memory SQLite unless TEST_DATABASE_URL names a real database.
  - All tables are created once via db.create_all() at session start.
  - Between tests, all rows are deleted in FK-safe order so tests are isolated.

Helper functions (not fixtures) are provided for common operations:
  - make_user(...)         → User id
  - make_group(...)        → Group id
  - add_member(...)        → GroupMember row (ACTIVE by default)
  - make_expense(...)      → Expense id, with payer and split rows
  - make_token(user_id)    → signed HS256 access token
  - auth_headers(token)    → {"Authorization": "Bearer <token>"}

Settlements are read-only over HTTP, so fixture data goes straight through
the ORM. The helpers are plain functions so they can be called with
arbitrary arguments in any test.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import jwt
import pytest
from sqlalchemy import text

from fairshare.app import create_app
from fairshare.app.extensions import db as _db
from fairshare.app.models.expense import Expense
from fairshare.app.models.group import Group
from fairshare.app.models.membership import GroupMember, MemberStatus
from fairshare.app.models.split import ExpensePayer, ExpenseSplit
from fairshare.app.models.user import User

TEST_JWT_SECRET = "testing-secret"


# ═══════════════════════════════════════════════════════════════════════════
# Session-scoped app fixture
# ═══════════════════════════════════════════════════════════════════════════

@pytest.fixture(scope="session")
def app():
    """
    Creates the Flask application in 'testing' mode once for the entire session.

    create_all() creates member_status_enum along with group_members on
    PostgreSQL, and a CHECK constraint in its place on SQLite.
    """
    flask_app = create_app("testing")

    with flask_app.app_context():
        _db.create_all()

    yield flask_app

    with flask_app.app_context():
        _db.drop_all()


# ═══════════════════════════════════════════════════════════════════════════
# Function-scoped test isolation
# ═══════════════════════════════════════════════════════════════════════════

@pytest.fixture(autouse=True)
def clean_tables(app):
    """
    Deletes all rows after every test, children before parents so RESTRICT
    foreign keys never fire.
    """
    yield

    with app.app_context():
        _db.session.rollback()
        for table in (
            "expense_splits",
            "expense_payers",
            "expenses",
            "group_members",
            "groups",
            "users",
        ):
            _db.session.execute(text(f"DELETE FROM {table}"))
        _db.session.commit()


@pytest.fixture
def client(app):
    """Flask test client. Each test gets a fresh client (function-scoped)."""
    return app.test_client()


# ═══════════════════════════════════════════════════════════════════════════
# Shared helper functions (not fixtures)
# ═══════════════════════════════════════════════════════════════════════════

def make_user(app, user_id: str, name: str | None = None, email: str | None = None) -> str:
    with app.app_context():
        _db.session.add(User(id=user_id, name=name, email=email))
        _db.session.commit()
    return user_id


def make_group(app, name: str = "Test Group", currency: str = "USD", group_id: str | None = None) -> str:
    with app.app_context():
        group = Group(name=name, currency=currency)
        if group_id:
            group.id = group_id
        _db.session.add(group)
        _db.session.commit()
        return group.id


def add_member(app, group_id: str, user_id: str, status: MemberStatus = MemberStatus.ACTIVE) -> None:
    # Explicit joined_at keeps member order equal to call order.
    with app.app_context():
        _db.session.add(GroupMember(
            group_id=group_id,
            user_id=user_id,
            status=status,
            joined_at=datetime.now(timezone.utc),
        ))
        _db.session.commit()


def make_expense(
        app,
        group_id: str,
        payers: dict[str, str],
        splits: dict[str, str],
        description: str = "Test Expense",
        deleted: bool = False,
) -> str:
    """
    Creates an expense with one payer row per `payers` entry and one split row
    per `splits` entry. Amounts are strings, e.g. {"alice": "90.00"}.
    """
    with app.app_context():
        expense = Expense(
            group_id=group_id,
            description=description,
            amount=sum((Decimal(a) for a in payers.values()), Decimal("0.00")),
            deleted_at=datetime.now(timezone.utc) if deleted else None,
        )
        for user_id, amount in payers.items():
            expense.payers.append(ExpensePayer(user_id=user_id, amount_paid=Decimal(amount)))
        for user_id, amount in splits.items():
            expense.splits.append(ExpenseSplit(user_id=user_id, amount=Decimal(amount)))
        _db.session.add(expense)
        _db.session.commit()
        return expense.id


def make_token(user_id, expires_in: timedelta = timedelta(minutes=15), secret: str = TEST_JWT_SECRET) -> str:
    """Signs an access token the way the sign-in flow does."""
    now = datetime.now(timezone.utc)
    return jwt.encode(
        {"sub": user_id, "iat": now, "exp": now + expires_in},
        secret,
        algorithm="HS256",
    )


def auth_headers(token: str) -> dict:
    """Returns the Authorization header dict for use in test requests."""
    return {"Authorization": f"Bearer {token}"}


def dinner_group(app, currency: str = "USD") -> str:
    """
    Alice, Bob and Carol; Alice paid a 90.00 dinner split 30/30/30.
    """
    make_user(app, "alice", name="Alice")
    make_user(app, "bob", name="Bob")
    make_user(app, "carol", name="Carol")
    group_id = make_group(app, name="Dinner club", currency=currency)
    for user_id in ("alice", "bob", "carol"):
        add_member(app, group_id, user_id)
    make_expense(
        app, group_id,
        payers={"alice": "90.00"},
        splits={"alice": "30.00", "bob": "30.00", "carol": "30.00"},
        description="Dinner",
    )
    return group_id
