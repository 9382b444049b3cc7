"""
middleware/auth_middleware.py — JWT authentication decorator.

The @require_auth decorator:
  1. Reads the Authorization header (expected: "Bearer <token>")
  2. Decodes and verifies the JWT signature (HS256 by default)
  3. Checks token expiry
  4. Attaches user_id (str) to flask.g for the duration of the request
  5. Raises the appropriate 401 error if any step fails

Tokens are issued by the sign-in flow, which lives outside this package.
This middleware only verifies them.

Responsibility boundary:
  - Middleware = authentication (401). Who is calling?
  - Services  = authorization (403). Is the caller an active group member?
  - Services receive user_id as a plain string argument, with no knowledge
    of JWT or HTTP headers.
"""

from __future__ import annotations

import functools
from typing import Callable

import jwt
from flask import current_app, g, request

from fairshare.app.errors import AppError, ErrorCode


def require_auth(f: Callable) -> Callable:
    """
    Route decorator that enforces JWT authentication.

    Usage:
        @bp.route("/<group_id>/settlements")
        @require_auth
        def get_settlements(group_id):
            user_id = g.user_id  # always a non-empty str when this runs
            ...
    """
    @functools.wraps(f)
    def decorated(*args, **kwargs):
        _authenticate_request()
        return f(*args, **kwargs)

    return decorated


def _authenticate_request() -> None:
    """
    Performs the full JWT authentication sequence and sets flask.g.user_id.

    Raises AppError on any authentication failure; the global Flask error
    handler turns it into the JSON error envelope.
    """
    auth_header = request.headers.get("Authorization", "")

    if not auth_header:
        raise AppError(
            ErrorCode.TOKEN_MISSING,
            "Authentication required. Provide a Bearer token in the Authorization header.",
            401,
        )

    parts = auth_header.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise AppError(
            ErrorCode.TOKEN_INVALID,
            "Authorization header must be in the format: Bearer <token>.",
            401,
        )

    try:
        payload = jwt.decode(
            parts[1],
            current_app.config["JWT_SECRET_KEY"],
            algorithms=[current_app.config.get("JWT_ALGORITHM", "HS256")],
        )
    except jwt.ExpiredSignatureError:
        raise AppError(
            ErrorCode.TOKEN_EXPIRED,
            "The access token has expired. Sign in again to obtain a new one.",
            401,
        )
    except jwt.InvalidTokenError:
        # Bad signature, malformed token, invalid claims, etc.
        raise AppError(
            ErrorCode.TOKEN_INVALID,
            "The access token is invalid or has been tampered with.",
            401,
        )

    sub = payload.get("sub")
    if not isinstance(sub, str) or not sub.strip():
        raise AppError(
            ErrorCode.TOKEN_INVALID,
            "The access token is missing a valid 'sub' claim.",
            401,
        )

    g.user_id = sub
