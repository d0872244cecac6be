"""
JWT Service - Token generation and validation for admin sessions.
"""

from __future__ import annotations

import os
from datetime import datetime, timedelta, timezone
from typing import Any

import jwt
from flask import Request, current_app


def get_access_token_expiry() -> int:
    try:
        return current_app.config.get("JWT_ACCESS_TOKEN_EXPIRES_HOURS", 24)
    except RuntimeError:
        return int(os.getenv("JWT_ACCESS_TOKEN_EXPIRES_HOURS", "24"))


def get_refresh_token_expiry() -> int:
    try:
        return current_app.config.get("JWT_REFRESH_TOKEN_EXPIRES_DAYS", 7)
    except RuntimeError:
        return int(os.getenv("JWT_REFRESH_TOKEN_EXPIRES_DAYS", "7"))


JWT_ALGORITHM = "HS256"


class JWTError(Exception):
    """Base exception for JWT errors."""

    def __init__(self, message: str, status: int = 401):
        self.message = message
        self.status = status
        super().__init__(message)


class TokenExpiredError(JWTError):
    """Token has expired."""

    def __init__(self):
        super().__init__("Token expired", 401)


class InvalidTokenError(JWTError):
    """Token is invalid or malformed."""

    def __init__(self, message: str = "Invalid token"):
        super().__init__(message, 401)


def get_jwt_secret() -> str:
    """Get JWT secret key from config or environment."""
    try:
        secret = current_app.config.get("SECRET_KEY")
        if secret:
            return secret
    except RuntimeError:
        pass

    secret = os.getenv("SECRET_KEY", os.getenv("JWT_SECRET_KEY"))
    if not secret:
        raise RuntimeError("JWT_SECRET_KEY or SECRET_KEY must be configured")
    return secret


def create_access_token(uid: str, email: str, expires_hours: int | None = None) -> str:
    """
    Create a JWT access token for a signed-in identity.

    Roles are deliberately not embedded: the access gate re-reads the admin
    profile on every request.
    """
    secret = get_jwt_secret()
    expires = expires_hours or get_access_token_expiry()

    now = datetime.now(timezone.utc)
    payload = {
        "sub": uid,
        "iat": now,
        "exp": now + timedelta(hours=expires),
        "type": "access",
        "email": email,
    }

    return jwt.encode(payload, secret, algorithm=JWT_ALGORITHM)


def create_refresh_token(uid: str, expires_days: int | None = None) -> str:
    secret = get_jwt_secret()
    expires = expires_days or get_refresh_token_expiry()

    now = datetime.now(timezone.utc)
    payload = {
        "sub": uid,
        "iat": now,
        "exp": now + timedelta(days=expires),
        "type": "refresh",
    }

    return jwt.encode(payload, secret, algorithm=JWT_ALGORITHM)


def decode_token(token: str, verify_type: str | None = None) -> dict[str, Any]:
    """
    Decode and validate a JWT token.

    Args:
        token: JWT token string
        verify_type: Expected token type ('access' or 'refresh')

    Raises:
        TokenExpiredError: If token has expired
        InvalidTokenError: If token is invalid
    """
    secret = get_jwt_secret()

    try:
        payload = jwt.decode(token, secret, algorithms=[JWT_ALGORITHM])

        if verify_type and payload.get("type") != verify_type:
            raise InvalidTokenError(f"Expected {verify_type} token")

        return payload

    except jwt.ExpiredSignatureError:
        raise TokenExpiredError()
    except jwt.InvalidTokenError as e:
        raise InvalidTokenError(str(e))


def extract_token_from_request(request: Request) -> str | None:
    """
    Extract JWT token from request.

    Checks in order:
    1. Authorization header (Bearer token)
    2. X-Access-Token header
    3. access_token cookie
    """
    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.startswith("Bearer "):
        return auth_header[7:]

    token_header = request.headers.get("X-Access-Token")
    if token_header:
        return token_header

    return request.cookies.get("access_token")
