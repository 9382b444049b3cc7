"""
extensions.py — Flask extension singletons.

Initialises SQLAlchemy as a module-level object so it can be imported
anywhere without creating circular dependencies.

Pattern:
    1. Create the extension object here (no app attached yet).
    2. Call init_app(app) inside the app factory in app/__init__.py.
    3. Import `db` from here wherever needed.

    from fairshare.app.extensions import db

Do not pass the app object directly to SQLAlchemy() at import time — that
would prevent running tests with a separate test app instance.

Schema rule:
    Validation and serialisation schemas (in app/schemas/) inherit from
    marshmallow.Schema directly. Unit tests in tests/unit/ run without a
    Flask app, so nothing there may need an application context.
"""

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()
