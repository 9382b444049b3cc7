"""
app/__init__.py — Flask application factory.

Pattern: create_app(config_name) creates and returns a configured Flask app.
         Nothing is initialised at import time, which allows:
           - Multiple isolated test app instances
           - `flask --app fairshare.app <command>` without starting a server
           - Alembic to import model metadata without side effects

Responsibilities:
  1. Load configuration from config_by_name[config_name]
  2. Configure logging from LOG_LEVEL
  3. Initialise SQLAlchemy via init_app()
  4. Register route blueprints under /api/v1
  5. Register global error handlers (AppError → JSON, Exception → 500)
  6. Register a JSON provider that serialises Decimal as string
  7. Register CLI commands (seed-demo, settlements, settle-file)
"""

from __future__ import annotations

import logging
import os
import traceback
from decimal import Decimal

from flask import Flask, jsonify, request
from flask.json.provider import DefaultJSONProvider
from werkzeug.exceptions import HTTPException

from fairshare.config import config_by_name, validate_production_config


class DecimalJSONProvider(DefaultJSONProvider):
    """
    Serialises Decimal as str so jsonify() never turns money into a float.

    Example: Decimal("10.50") → "10.50" (not 10.5)
    """

    def default(self, o):
        if isinstance(o, Decimal):
            return str(o)
        return super().default(o)


# ── Application factory ────────────────────────────────────────────────────

def create_app(config_name: str | None = None) -> Flask:
    """
    Creates and returns a configured Flask application instance.

    Args:
        config_name: One of "development", "testing", "production".
                     Defaults to $FLASK_ENV, then "development".
    """
    if config_name is None:
        config_name = os.getenv("FLASK_ENV", "development")

    app = Flask(__name__)
    app.json_provider_class = DecimalJSONProvider
    app.json = DecimalJSONProvider(app)

    config_class = config_by_name.get(config_name, config_by_name["development"])
    app.config.from_object(config_class)

    if config_name == "production":
        validate_production_config(app)  # raises ValueError if misconfigured

    _configure_logging(app)

    from fairshare.app.extensions import db
    db.init_app(app)

    # Import all models so SQLAlchemy's MetaData is populated for
    # db.create_all() and Alembic autogenerate.
    with app.app_context():
        from fairshare.app.models import (  # noqa: F401
            expense,
            group,
            membership,
            split,
            user,
        )

    _register_blueprints(app)
    _register_error_handlers(app)
    _register_cors(app)

    from fairshare.app.cli import register_cli
    register_cli(app)

    return app


def _configure_logging(app: Flask) -> None:
    """
    Applies LOG_LEVEL to the app logger and to the fairshare.* service
    loggers, which propagate to the root handler Flask installs.
    """
    level = logging.getLevelName(str(app.config.get("LOG_LEVEL", "INFO")).upper())
    if not isinstance(level, int):
        level = logging.INFO

    app.logger.setLevel(level)
    logging.getLogger("fairshare").setLevel(level)

    if not logging.getLogger().handlers:
        logging.basicConfig(
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )


def _register_blueprints(app: Flask) -> None:
    """Registers all route blueprints under the /api/v1 prefix."""
    from fairshare.app.routes.health import health_bp
    from fairshare.app.routes.settlements import settlements_bp

    app.register_blueprint(health_bp,      url_prefix="/api/v1")
    app.register_blueprint(settlements_bp, url_prefix="/api/v1/groups")


def _register_error_handlers(app: Flask) -> None:
    """
    Registers global error handlers.

      AppError      → structured JSON error envelope with the right status
      HTTPException → same envelope for werkzeug 404/405s
      Exception     → generic INTERNAL_ERROR (500); traceback logged only
    """
    from fairshare.app.errors import AppError, ErrorCode

    @app.errorhandler(AppError)
    def handle_app_error(error: AppError):
        # Routes never catch AppError; they let it propagate here.
        return jsonify(error.to_dict()), error.http_status

    @app.errorhandler(HTTPException)
    def handle_http_exception(error: HTTPException):
        code = "NOT_FOUND" if error.code == 404 else error.name.upper().replace(" ", "_")
        return jsonify({
            "error": {
                "code": code,
                "message": error.description,
            }
        }), error.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(error: Exception):
        app.logger.error(
            "Unhandled exception: %s\n%s",
            str(error),
            traceback.format_exc(),
        )
        return jsonify({
            "error": {
                "code": ErrorCode.INTERNAL_ERROR,
                "message": "An unexpected error occurred. Please try again later.",
            }
        }), 500


def _register_cors(app: Flask) -> None:
    """
    Adds CORS headers for browser-based local development.

    Enabled when DEBUG or TESTING is true so a frontend served from another
    local port can call the API with Authorization headers.
    """

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        allow_all = bool(app.config.get("DEBUG") or app.config.get("TESTING"))

        if allow_all:
            response.headers["Access-Control-Allow-Origin"] = origin if origin else "*"
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Methods"] = "GET, OPTIONS"
            response.headers["Access-Control-Allow-Headers"] = "Authorization, Content-Type"

        return response
