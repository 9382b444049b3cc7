"""
schemas/settlement_schema.py — Marshmallow schemas for settlement data.

Two directions:
  - Output (dump): MemberBalanceSchema, SettlementSchema,
    GroupSettlementsSchema turn the service dataclasses into JSON-ready
    dicts. Monetary amounts are dumped as strings, never JSON numbers.
  - Input (load): SettlementInputSchema validates a standalone
    {"members": [...], "expenses": [...]} document (used by the
    `settle-file` CLI command) and returns plain dicts with Decimal amounts
    in the shape aggregate_balances() consumes.

Inherits from marshmallow.Schema directly; see extensions.py.
"""

from __future__ import annotations

from decimal import Decimal

from marshmallow import Schema, ValidationError, fields, validate, validates

from fairshare.app.services import format_service


def _validate_non_negative(value: Decimal) -> None:
    """Amounts in payer and split entries may be zero but never negative."""
    if value < Decimal("0"):
        raise ValidationError("Amount must not be negative.")


# ── Output schemas ─────────────────────────────────────────────────────────

class MemberBalanceSchema(Schema):
    user_id     = fields.String()
    name        = fields.String()
    total_paid  = fields.Decimal(as_string=True)
    total_owed  = fields.Decimal(as_string=True)
    net_balance = fields.Decimal(as_string=True)


class SettlementSchema(Schema):
    from_user_id   = fields.String()
    from_user_name = fields.String()
    to_user_id     = fields.String()
    to_user_name   = fields.String()
    amount         = fields.Decimal(as_string=True)
    currency       = fields.String()

    # Preformatted for display, e.g. "$30.00".
    display_amount = fields.Method("get_display_amount")

    def get_display_amount(self, obj) -> str:
        return format_service.format_amount(obj.amount, obj.currency)


class GroupSettlementsSchema(Schema):
    group_id              = fields.String()
    currency              = fields.String()
    balances              = fields.List(fields.Nested(MemberBalanceSchema))
    suggested_settlements = fields.List(fields.Nested(SettlementSchema))
    total_transactions    = fields.Integer()


# ── Input schemas ──────────────────────────────────────────────────────────

class MemberInputSchema(Schema):
    user_id = fields.String(required=True, validate=validate.Length(min=1))
    name    = fields.String(required=True, validate=validate.Length(min=1))


class PayerInputSchema(Schema):
    user_id     = fields.String(required=True, validate=validate.Length(min=1))
    amount_paid = fields.Decimal(required=True, validate=_validate_non_negative)


class SplitInputSchema(Schema):
    user_id = fields.String(required=True, validate=validate.Length(min=1))
    amount  = fields.Decimal(required=True, validate=_validate_non_negative)


class ExpenseInputSchema(Schema):
    # Informational; balances are driven by payers and splits only.
    description = fields.String()
    amount      = fields.Decimal(validate=_validate_non_negative)
    payers = fields.List(fields.Nested(PayerInputSchema), load_default=list)
    splits = fields.List(fields.Nested(SplitInputSchema), load_default=list)


class SettlementInputSchema(Schema):
    """
    Standalone settlement input document.

        {
          "group_id": "trip",            (optional)
          "currency": "USD",             (optional, defaults to USD)
          "members":  [{"user_id": "a", "name": "Alice"}, ...],
          "expenses": [{"payers": [...], "splits": [...]}, ...]
        }

    Duplicate member ids are rejected: every balance needs a unique owner.
    """

    group_id = fields.String(load_default="local")
    currency = fields.String(
        load_default="USD",
        validate=validate.Length(equal=3, error="currency must be a 3-letter code."),
    )
    members  = fields.List(fields.Nested(MemberInputSchema), required=True)
    expenses = fields.List(fields.Nested(ExpenseInputSchema), load_default=list)

    @validates("members")
    def validate_unique_members(self, value: list[dict], **kwargs) -> None:
        seen: set[str] = set()
        for member in value:
            if member["user_id"] in seen:
                raise ValidationError(f"Duplicate member user_id {member['user_id']!r}.")
            seen.add(member["user_id"])
