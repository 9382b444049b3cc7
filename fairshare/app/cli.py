"""
app/cli.py — Flask CLI commands.

    flask --app fairshare.app seed-demo
    flask --app fairshare.app settlements GROUP_ID
    flask --app fairshare.app settle-file expenses.json [--currency EUR]

Reports are rendered with rich. settle-file needs no database: it validates
a JSON document with SettlementInputSchema and runs the same pipeline the
API uses.
"""

from __future__ import annotations

import json
from decimal import Decimal
from pathlib import Path

import click
from flask import Flask, current_app
from flask.cli import with_appcontext
from marshmallow import ValidationError
from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.theme import Theme
from sqlalchemy import inspect

from fairshare.app.extensions import db
from fairshare.app.services import balance_service, format_service, settlement_service
from fairshare.app.services.settlement_service import GroupSettlements


THEME = Theme({
    "good":   "bright_green",
    "bad":    "bright_red",
    "muted":  "bright_black",
    "accent": "bright_cyan",
    "border": "bright_black",
})


def _console() -> Console:
    # Created per invocation so click's CliRunner can capture the output.
    return Console(theme=THEME, highlight=False, soft_wrap=True)


# ── Rendering ──────────────────────────────────────────────────────────────

def _balance_table(result: GroupSettlements) -> Table:
    tbl = Table(
        title="[muted]Balances[/]", title_justify="left",
        box=box.ROUNDED, border_style="border",
        show_header=True, header_style="bold dim",
    )
    tbl.add_column("Member", min_width=16)
    tbl.add_column("Paid",   justify="right")
    tbl.add_column("Owed",   justify="right")
    tbl.add_column("Net",    justify="right")

    for b in result.balances:
        if b.is_settled:
            style = "muted"
        else:
            style = "good" if b.net_balance > 0 else "bad"
        tbl.add_row(
            b.name,
            format_service.format_amount(b.total_paid, result.currency),
            format_service.format_amount(b.total_owed, result.currency),
            f"[{style}]{format_service.format_amount(b.net_balance, result.currency)}[/]",
        )
    return tbl


def _settlement_table(result: GroupSettlements) -> Table:
    tbl = Table(
        title="[muted]Suggested payments[/]", title_justify="left",
        box=box.ROUNDED, border_style="border",
        show_header=True, header_style="bold dim",
    )
    tbl.add_column("#",      justify="right", style="muted")
    tbl.add_column("From",   min_width=16)
    tbl.add_column("To",     min_width=16)
    tbl.add_column("Amount", justify="right")

    for n, s in enumerate(result.suggested_settlements, 1):
        tbl.add_row(
            str(n),
            s.from_user_name,
            s.to_user_name,
            f"[accent]{format_service.format_amount(s.amount, s.currency)}[/]",
        )
    return tbl


def render_report(result: GroupSettlements, console: Console) -> None:
    """Prints balances, suggested payments and the summary line."""
    title = f"Group {result.group_id} · {format_service.currency_name(result.currency)}"
    console.print(Panel(
        format_service.summarize(result.suggested_settlements),
        title=f"[muted]{title}[/]",
        border_style="good" if not result.suggested_settlements else "accent",
    ))
    console.print(_balance_table(result))
    if result.suggested_settlements:
        console.print(_settlement_table(result))


# ── Commands ───────────────────────────────────────────────────────────────

# Created by the Alembic history; seed-demo never builds them itself.
SEED_TABLES = (
    "users",
    "groups",
    "group_members",
    "expenses",
    "expense_payers",
    "expense_splits",
)


@click.command("seed-demo")
@with_appcontext
def seed_demo_command() -> None:
    """Creates a three-member demo group with one shared dinner."""
    from fairshare.app.models.expense import Expense
    from fairshare.app.models.group import Group
    from fairshare.app.models.membership import GroupMember
    from fairshare.app.models.split import ExpensePayer, ExpenseSplit
    from fairshare.app.models.user import User

    inspector = inspect(db.engine)
    missing = [name for name in SEED_TABLES if not inspector.has_table(name)]
    if missing:
        raise click.ClickException(
            f"Database schema is missing tables: {', '.join(missing)}. "
            "Run the Alembic migrations (alembic upgrade head) first."
        )

    people = [
        User(name="Alice", email=None),
        User(name="Bob", email=None),
        User(name="Carol", email=None),
    ]
    group = Group(name="Demo dinner club", currency="USD")
    db.session.add_all([*people, group])
    db.session.flush()

    for person in people:
        db.session.add(GroupMember(group_id=group.id, user_id=person.id))

    dinner = Expense(group_id=group.id, description="Dinner", amount=Decimal("90.00"))
    dinner.payers.append(ExpensePayer(user_id=people[0].id, amount_paid=Decimal("90.00")))
    for person in people:
        dinner.splits.append(ExpenseSplit(user_id=person.id, amount=Decimal("30.00")))
    db.session.add(dinner)
    db.session.commit()

    current_app.logger.info("Seeded demo group %s", group.id)
    click.echo(group.id)


@click.command("settlements")
@click.argument("group_id")
@with_appcontext
def settlements_command(group_id: str) -> None:
    """Prints balances and suggested payments for GROUP_ID."""
    group = balance_service.get_group(group_id, db.session)
    if group is None:
        raise click.ClickException(f"Group {group_id} does not exist.")

    result = settlement_service.calculate_group_settlements(
        group_id=group.id,
        currency=group.currency or current_app.config.get("DEFAULT_CURRENCY", "USD"),
        members=balance_service.get_active_members(group_id, db.session),
        expenses=balance_service.get_active_expenses(group_id, db.session),
    )
    render_report(result, _console())


@click.command("settle-file")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--currency", default=None, help="Override the document's currency.")
@with_appcontext
def settle_file_command(path: Path, currency: str | None) -> None:
    """Settles a JSON document of members and expenses without a database."""
    from fairshare.app.schemas.settlement_schema import SettlementInputSchema

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise click.ClickException(f"{path} is not valid JSON: {exc.msg}")

    try:
        doc = SettlementInputSchema().load(raw)
    except ValidationError as exc:
        raise click.ClickException(f"Invalid settlement input: {_first_message(exc.messages)}")

    code = (currency or doc["currency"]).upper()
    if not format_service.is_supported_currency(code):
        current_app.logger.warning("Currency %s is not supported for display", code)

    result = settlement_service.calculate_group_settlements(
        group_id=doc["group_id"],
        currency=code,
        members=doc["members"],
        expenses=doc["expenses"],
    )
    render_report(result, _console())


def _first_message(messages) -> str:
    """Flattens marshmallow's nested messages to the first 'path: message'."""
    path: list[str] = []
    while isinstance(messages, dict) and messages:
        key, messages = next(iter(messages.items()))
        path.append(str(key))
    if isinstance(messages, list) and messages:
        messages = messages[0]
    prefix = ".".join(path)
    return f"{prefix}: {messages}" if prefix else str(messages)


def register_cli(app: Flask) -> None:
    app.cli.add_command(seed_demo_command)
    app.cli.add_command(settlements_command)
    app.cli.add_command(settle_file_command)
