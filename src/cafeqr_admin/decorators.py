"""Decorators for route protection using the access gate."""

from __future__ import annotations

from functools import wraps
from http import HTTPStatus

from flask import jsonify

from cafeqr_shared.error_handlers import moved_response
from cafeqr_shared.jwt_middleware import get_current_user
from cafeqr_shared.serializers import error_response
from cafeqr_shared.services.access_gate import (
    DenialReason,
    GateOutcome,
    GateState,
    verify_super_admin,
    verify_tenant_admin,
)
from cafeqr_shared.services.identity_service import identity_from_token


def _outcome_response(outcome: GateOutcome):
    """HTTP response for an outcome that is not AUTHORIZED."""
    if outcome.state == GateState.REDIRECT:
        return moved_response(outcome.canonical_slug)

    if outcome.reason == DenialReason.NOT_SIGNED_IN:
        payload = error_response(
            outcome.message, {"code": "AUTH_REQUIRED", "redirect_to": outcome.redirect_to}
        )
        return jsonify(payload), HTTPStatus.UNAUTHORIZED

    payload = error_response(
        outcome.message, {"code": "PERM_001", "reason": outcome.reason.value if outcome.reason else None}
    )
    return jsonify(payload), HTTPStatus.FORBIDDEN


def tenant_admin_required(f):
    """
    Run the tenant admin gate for the ``slug`` in the URL.

    The view receives ``ctx`` (an AdminContext) as a keyword argument.
    """

    @wraps(f)
    def decorated_function(*args, **kwargs):
        identity = identity_from_token(get_current_user())
        outcome = verify_tenant_admin(identity, kwargs.get("slug", ""))
        if outcome.state != GateState.AUTHORIZED:
            return _outcome_response(outcome)
        return f(*args, ctx=outcome.context, **kwargs)

    return decorated_function


def super_admin_required(f):
    """Run the super-admin gate; the view receives ``ctx`` (a SuperAdminContext)."""

    @wraps(f)
    def decorated_function(*args, **kwargs):
        identity = identity_from_token(get_current_user())
        outcome = verify_super_admin(identity)
        if outcome.state != GateState.AUTHORIZED:
            return _outcome_response(outcome)
        return f(*args, ctx=outcome.context, **kwargs)

    return decorated_function
