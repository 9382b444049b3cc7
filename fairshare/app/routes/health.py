"""
routes/health.py — Liveness/readiness probe.

GET /api/v1/health → 200 when the database answers SELECT 1, else 500.
Unauthenticated on purpose so load balancers can call it.
"""

from __future__ import annotations

from flask import Blueprint, current_app, jsonify
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from fairshare.app.extensions import db

health_bp = Blueprint("health", __name__)


@health_bp.route("/health", methods=["GET"])
def health():
    try:
        db.session.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        current_app.logger.error("Database health check failed: %s", exc)
        db.session.rollback()
        return jsonify({
            "status": "error",
            "message": "Database connection test failed",
            "error": exc.__class__.__name__,
        }), 500

    return jsonify({
        "status": "success",
        "message": "Database connection successful",
    }), 200
