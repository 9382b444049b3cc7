"""
routes/settlements.py — Settlement suggestion route handlers.

Layer rules:
  - Call ONE service, return envelope.
  - No business logic. No DB queries. No bare SQL.

Endpoints (base url_prefix=/api/v1/groups):
  GET /groups/:id/settlements → 200  balances + suggested payments
"""

from __future__ import annotations

from flask import Blueprint, current_app, g, jsonify

from fairshare.app.extensions import db
from fairshare.app.middleware.auth_middleware import require_auth
from fairshare.app.services import settlement_service

settlements_bp = Blueprint("settlements", __name__)


@settlements_bp.route("/<group_id>/settlements", methods=["GET"])
@require_auth
def get_settlements(group_id: str):
    """
    GET /groups/:id/settlements

    Membership (ACTIVE only) is enforced inside the service. Suggestions are
    recomputed from current expense data on every call.
    """
    data, warnings = settlement_service.get_settlements_response(
        group_id=group_id,
        caller_id=g.user_id,
        session=db.session,
        default_currency=current_app.config.get("DEFAULT_CURRENCY", "USD"),
    )
    return jsonify({"data": data, "warnings": warnings}), 200
