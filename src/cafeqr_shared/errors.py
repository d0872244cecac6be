"""
Error taxonomy shared by services and Flask apps.

Every error carries an HTTP status and a stable machine code so the error
handlers can turn it into a JSON payload without knowing the service.
"""

from __future__ import annotations

from http import HTTPStatus
from typing import Any


class AppError(Exception):
    """Base class for controlled application errors."""

    status = HTTPStatus.INTERNAL_SERVER_ERROR
    code = "SYSTEM_001"
    default_message = "Terjadi kesalahan pada server"

    def __init__(self, message: str | None = None, details: dict[str, Any] | None = None):
        self.message = message or self.default_message
        self.details = details or {}
        super().__init__(self.message)

    def to_details(self) -> dict[str, Any]:
        return {"code": self.code, **self.details}


class AuthenticationError(AppError):
    status = HTTPStatus.UNAUTHORIZED
    code = "AUTH_001"
    default_message = "Email atau kata sandi salah"


class AuthorizationError(AppError):
    status = HTTPStatus.FORBIDDEN
    code = "PERM_001"
    default_message = "Anda tidak memiliki akses ke halaman ini"


class PermissionDeniedError(AuthorizationError):
    """
    A store operation was rejected by the access rules.

    Besides propagating, these are published on the ``permission-error``
    signal with the operation, path and attempted payload.
    """

    code = "PERM_002"
    default_message = "Izin ditolak"

    def __init__(
        self,
        operation: str,
        path: str,
        request_resource_data: dict[str, Any] | None = None,
        message: str | None = None,
    ):
        self.operation = operation
        self.path = path
        self.request_resource_data = request_resource_data
        super().__init__(message, {"operation": operation, "path": path})


class NotFoundError(AppError):
    status = HTTPStatus.NOT_FOUND
    code = "NOT_FOUND"
    default_message = "Data tidak ditemukan"


class TenantNotFoundError(NotFoundError):
    code = "TENANT_NOT_FOUND"
    default_message = "Kafe tidak ditemukan"


class TableNotFoundError(NotFoundError):
    code = "TABLE_NOT_FOUND"
    default_message = "Meja tidak ditemukan"


class MenuNotFoundError(NotFoundError):
    code = "MENU_NOT_FOUND"
    default_message = "Menu tidak ditemukan"


class CategoryNotFoundError(NotFoundError):
    code = "CATEGORY_NOT_FOUND"
    default_message = "Kategori tidak ditemukan"


class OrderNotFoundError(NotFoundError):
    code = "ORDER_NOT_FOUND"
    default_message = "Pesanan tidak ditemukan"


class UserNotFoundError(NotFoundError):
    code = "USER_NOT_FOUND"
    default_message = "Pengguna tidak ditemukan"


class TenantMovedError(AppError):
    """The slug belonged to a tenant that has since been renamed."""

    status = HTTPStatus.PERMANENT_REDIRECT
    code = "TENANT_MOVED"
    default_message = "Alamat kafe telah berubah"

    def __init__(self, canonical_slug: str):
        self.canonical_slug = canonical_slug
        super().__init__(details={"canonical_slug": canonical_slug})


class StoreUnavailableError(AppError):
    status = HTTPStatus.SERVICE_UNAVAILABLE
    code = "STORE_UNAVAILABLE"
    default_message = "Gagal memuat data, silakan coba lagi"


class MalformedDocumentError(AppError):
    """A stored record did not match its document schema."""

    code = "DOCUMENT_MALFORMED"
    default_message = "Data tersimpan tidak valid"

    def __init__(self, path: str, errors: list[dict[str, Any]] | None = None):
        self.path = path
        self.errors = errors or []
        super().__init__(details={"path": path})


class ConflictError(AppError):
    status = HTTPStatus.CONFLICT
    code = "CONFLICT"
    default_message = "Data sudah ada"


class PayloadTooLargeError(AppError):
    status = HTTPStatus.REQUEST_ENTITY_TOO_LARGE
    code = "PAYLOAD_TOO_LARGE"
    default_message = "Ukuran file melebihi batas"
