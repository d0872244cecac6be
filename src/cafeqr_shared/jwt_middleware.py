"""
JWT Middleware for Flask.

Loads the signed-in identity from the request token into ``g.current_user``.
Authorization decisions are made by the access gate, not here.
"""

from __future__ import annotations

import logging
from functools import wraps
from http import HTTPStatus
from typing import TYPE_CHECKING, Any

from flask import g, jsonify, request

from cafeqr_shared.jwt_service import (
    InvalidTokenError,
    TokenExpiredError,
    decode_token,
    extract_token_from_request,
)
from cafeqr_shared.serializers import error_response

if TYPE_CHECKING:
    from flask import Flask

logger = logging.getLogger(__name__)


def init_jwt_middleware(app: Flask) -> None:
    """
    Initialize JWT middleware for a Flask app.

    Sets up a before_request handler that validates the token and stores the
    payload in g.current_user (None when absent, expired or invalid).
    """

    @app.before_request
    def load_jwt_user():
        g.current_user = None
        g.jwt_token = None

        token = extract_token_from_request(request)
        if not token:
            return

        try:
            payload = decode_token(token, verify_type="access")
            g.current_user = payload
            g.jwt_token = token
        except TokenExpiredError:
            logger.debug(f"Expired token on {request.path}")
        except InvalidTokenError as e:
            logger.warning(f"Invalid token on {request.path}: {e}")


def get_current_user() -> dict[str, Any] | None:
    """
    Get current authenticated user from request context.

    Returns:
        Token payload dict if authenticated, None otherwise
    """
    return getattr(g, "current_user", None)


def jwt_required(f):
    """
    Decorator to require valid JWT for a route.

    Returns 401 if no valid token present.
    """

    @wraps(f)
    def decorated_function(*args, **kwargs):
        user = get_current_user()
        if not user:
            payload = error_response(
                "Silakan login terlebih dahulu", {"code": "AUTH_REQUIRED", "redirect_to": "/login"}
            )
            return jsonify(payload), HTTPStatus.UNAUTHORIZED
        return f(*args, **kwargs)

    return decorated_function
