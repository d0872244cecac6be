"""
Identity provider: sign-in identities and their session tokens.

Identities live in their own table and are only reached through this module,
so the rest of the code treats them as an external collaborator.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from cafeqr_shared.db import get_session
from cafeqr_shared.errors import AuthenticationError, ConflictError, UserNotFoundError
from cafeqr_shared.jwt_service import create_access_token, create_refresh_token
from cafeqr_shared.models import Identity
from cafeqr_shared.security import hash_credentials, normalize_identifier, verify_credentials
from cafeqr_shared.validation import validate_email, validate_password

logger = logging.getLogger(__name__)

ACCESS_COOKIE = "access_token"
REFRESH_COOKIE = "refresh_token"


@dataclass(frozen=True)
class AuthenticatedIdentity:
    """A signed-in identity, detached from any database session."""

    uid: str
    email: str


def identity_from_token(payload: dict[str, Any] | None) -> AuthenticatedIdentity | None:
    if not payload or not payload.get("sub"):
        return None
    return AuthenticatedIdentity(uid=payload["sub"], email=payload.get("email") or "")


def sign_in(email: str, password: str) -> AuthenticatedIdentity:
    """
    Check an email/password pair.

    Raises:
        AuthenticationError: unknown email or wrong password
    """
    email = normalize_identifier(email)
    with get_session() as session:
        identity = session.execute(
            select(Identity).where(Identity.email == email)
        ).scalar_one_or_none()
        if identity is None or not verify_credentials(email, password, identity.auth_hash):
            raise AuthenticationError()
        return AuthenticatedIdentity(uid=identity.uid, email=identity.email)


def issue_tokens(identity: AuthenticatedIdentity) -> dict[str, str]:
    return {
        "access_token": create_access_token(identity.uid, identity.email),
        "refresh_token": create_refresh_token(identity.uid),
    }


def create_identity(email: str, password: str) -> AuthenticatedIdentity:
    """
    Register a new identity.

    Raises:
        ValidationError: malformed email or password shorter than 6 characters
        ConflictError: the email is already registered
    """
    email = normalize_identifier(email)
    validate_email(email)
    validate_password(password)

    with get_session() as session:
        exists = session.execute(
            select(Identity.uid).where(Identity.email == email)
        ).scalar_one_or_none()
        if exists:
            raise ConflictError("Email sudah terdaftar", {"fields": {"email": "Email sudah terdaftar"}})
        identity = Identity(email=email, auth_hash=hash_credentials(email, password))
        session.add(identity)
        try:
            session.flush()
        except IntegrityError as exc:
            raise ConflictError("Email sudah terdaftar") from exc
        logger.info(f"Identity created: {identity.uid}")
        return AuthenticatedIdentity(uid=identity.uid, email=identity.email)


def get_identity(uid: str) -> AuthenticatedIdentity | None:
    with get_session() as session:
        identity = session.get(Identity, uid)
        if identity is None:
            return None
        return AuthenticatedIdentity(uid=identity.uid, email=identity.email)


def delete_identity(uid: str) -> None:
    """Remove an identity; its tokens stop resolving to a profile at the gate."""
    with get_session() as session:
        identity = session.get(Identity, uid)
        if identity is None:
            raise UserNotFoundError()
        session.delete(identity)
        logger.info(f"Identity deleted: {uid}")
