"""
Auth API - JWT-based authentication endpoints.

Handles registration, login, logout, token refresh, and current user info.
"""

from http import HTTPStatus

from flask import Blueprint, current_app, jsonify, make_response, request

from cafeqr_shared.jwt_middleware import get_current_user, jwt_required
from cafeqr_shared.jwt_service import (
    InvalidTokenError,
    TokenExpiredError,
    create_access_token,
    decode_token,
)
from cafeqr_shared.logging_config import get_logger
from cafeqr_shared.schemas import LoginRequest, RegisterRequest
from cafeqr_shared.security_middleware import rate_limit
from cafeqr_shared.serializers import error_response, success_response
from cafeqr_shared.services import identity_service
from cafeqr_shared.services.access_gate import landing_route
from cafeqr_shared.services.identity_service import (
    ACCESS_COOKIE,
    REFRESH_COOKIE,
    identity_from_token,
)
from cafeqr_shared.validation import parse_request

auth_bp = Blueprint("auth", __name__)
logger = get_logger(__name__)


def _set_token_cookie(response, name: str, token: str, max_age: int) -> None:
    response.set_cookie(
        name,
        token,
        httponly=True,
        secure=request.is_secure,
        samesite="Lax",
        max_age=max_age,
        path="/",
    )


def _signed_in_response(identity, message: str, status: HTTPStatus = HTTPStatus.OK):
    """Tokens in the body and in httponly cookies, plus where to go next."""
    tokens = identity_service.issue_tokens(identity)
    config = current_app.config["CAFEQR_CONFIG"]
    response = make_response(
        jsonify(
            success_response(
                {
                    **tokens,
                    "user": {"uid": identity.uid, "email": identity.email},
                    "redirect_to": landing_route(identity),
                },
                message,
            )
        ),
        status,
    )
    _set_token_cookie(
        response, ACCESS_COOKIE, tokens["access_token"], config.jwt_access_token_expires_hours * 3600
    )
    _set_token_cookie(
        response, REFRESH_COOKIE, tokens["refresh_token"], config.jwt_refresh_token_expires_days * 86400
    )
    return response


@auth_bp.post("/auth/login")
@rate_limit(max_requests=5, window_seconds=60, key_prefix="login")
def post_login():
    """
    Sign in with email and password and issue JWT tokens.

    Body:
        {"email": str, "password": str}

    Returns the tokens plus ``redirect_to``: the admin panel of the user's
    cafe, or the super-admin console.
    """
    login = parse_request(LoginRequest, request.get_json(silent=True))
    identity = identity_service.sign_in(login.email, login.password)
    logger.info(f"Identity {identity.uid} ({identity.email}) logged in")
    return _signed_in_response(identity, "Login berhasil")


@auth_bp.post("/auth/register")
@rate_limit(max_requests=5, window_seconds=60, key_prefix="register")
def post_register():
    """
    Create an identity and sign it in.

    Body:
        {"email": str, "password": str, "confirm_password": str}

    A brand-new identity has no admin profile, so ``redirect_to`` points at
    the super-admin console. The first identity to open it becomes the
    super-admin; everyone after that is denied there.
    """
    registration = parse_request(RegisterRequest, request.get_json(silent=True))
    identity = identity_service.create_identity(registration.email, registration.password)
    logger.info(f"Identity {identity.uid} ({identity.email}) registered")
    return _signed_in_response(identity, "Pendaftaran berhasil", HTTPStatus.CREATED)


@auth_bp.post("/auth/logout")
def post_logout():
    """
    Logout - clears JWT cookies.

    Tokens are stateless; clients holding a bearer token should discard it.
    """
    response = make_response(jsonify(success_response(None, "Logout berhasil")))
    response.delete_cookie(ACCESS_COOKIE, path="/")
    response.delete_cookie(REFRESH_COOKIE, path="/")
    return response


@auth_bp.post("/auth/refresh")
@rate_limit(max_requests=10, window_seconds=60, key_prefix="refresh")
def post_refresh():
    """Issue a new access token from a refresh token (body or cookie)."""
    payload = request.get_json(silent=True) or {}
    refresh_token = payload.get("refresh_token") or request.cookies.get(REFRESH_COOKIE)

    if not refresh_token:
        return jsonify(error_response("Refresh token wajib diisi")), HTTPStatus.BAD_REQUEST

    try:
        token_data = decode_token(refresh_token, verify_type="refresh")
    except (TokenExpiredError, InvalidTokenError) as exc:
        logger.info(f"Refresh rejected: {exc}")
        return jsonify(
            error_response("Sesi berakhir, silakan login kembali", {"code": "AUTH_REQUIRED"})
        ), HTTPStatus.UNAUTHORIZED

    identity = identity_service.get_identity(token_data.get("sub") or "")
    if identity is None:
        return jsonify(
            error_response("Akun tidak ditemukan", {"code": "AUTH_REQUIRED"})
        ), HTTPStatus.UNAUTHORIZED

    access_token = create_access_token(identity.uid, identity.email)
    config = current_app.config["CAFEQR_CONFIG"]
    response = make_response(jsonify(success_response({"access_token": access_token})))
    _set_token_cookie(
        response, ACCESS_COOKIE, access_token, config.jwt_access_token_expires_hours * 3600
    )
    return response


@auth_bp.get("/auth/me")
@jwt_required
def get_me():
    identity = identity_from_token(get_current_user())
    return jsonify(
        success_response(
            {
                "uid": identity.uid,
                "email": identity.email,
                "redirect_to": landing_route(identity),
            }
        )
    ), HTTPStatus.OK
