"""
Input validation utilities.
"""

from __future__ import annotations

import re
from http import HTTPStatus

from pydantic import ValidationError as PydanticValidationError

from cafeqr_shared.constants import (
    DAILY_TOKEN_LENGTH,
    DEFAULT_PAGE_SIZE,
    EMAIL_PATTERN,
    MAX_PAGE_SIZE,
    MIN_PASSWORD_LENGTH,
)
from cafeqr_shared.errors import AppError


class ValidationError(AppError):
    """Raised when validation fails. ``fields`` maps field names to messages."""

    status = HTTPStatus.BAD_REQUEST
    code = "VALIDATION_ERROR"
    default_message = "Data tidak valid"

    def __init__(self, message: str | None = None, fields: dict[str, str] | None = None):
        self.fields = fields or {}
        super().__init__(message, {"fields": self.fields} if self.fields else None)


def validate_password(password: str) -> None:
    if not password:
        raise ValidationError("Kata sandi wajib diisi", {"password": "Kata sandi wajib diisi"})

    if len(password) < MIN_PASSWORD_LENGTH:
        message = f"Kata sandi minimal {MIN_PASSWORD_LENGTH} karakter"
        raise ValidationError(message, {"password": message})


def validate_email(email: str) -> None:
    """Validate email format."""
    if not email:
        raise ValidationError("Email wajib diisi", {"email": "Email wajib diisi"})

    if not re.match(EMAIL_PATTERN, email):
        raise ValidationError("Format email tidak valid", {"email": "Format email tidak valid"})


def validate_daily_token(token: str) -> None:
    """The daily token is exactly four digits."""
    if not token or len(token) != DAILY_TOKEN_LENGTH or not token.isdigit():
        message = f"Token harus {DAILY_TOKEN_LENGTH} digit"
        raise ValidationError(message, {"daily_token": message})


def validate_page_size(limit: int | None) -> int:
    """
    Normalize a page size to [1, MAX_PAGE_SIZE].
    """
    if limit is None or limit < 1:
        return DEFAULT_PAGE_SIZE
    if limit > MAX_PAGE_SIZE:
        return MAX_PAGE_SIZE
    return limit


def field_errors_from_pydantic(exc: PydanticValidationError) -> dict[str, str]:
    """Flatten pydantic errors into {"items.0.quantity": message}."""
    fields: dict[str, str] = {}
    for error in exc.errors():
        loc = ".".join(str(part) for part in error.get("loc", ())) or "__root__"
        fields.setdefault(loc, error.get("msg", "Tidak valid"))
    return fields


def parse_request(schema, payload):
    """
    Validate a request payload with a pydantic schema.

    Raises ValidationError with field level messages instead of the pydantic
    error so every service reports input problems the same way.
    """
    try:
        return schema.model_validate(payload or {})
    except PydanticValidationError as exc:
        raise ValidationError(fields=field_errors_from_pydantic(exc)) from exc
