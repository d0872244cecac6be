"""
Image uploads for menus and tenant branding.

Uploads go to Supabase Storage when it is configured, otherwise to the local
upload folder served by the admin app.
"""

from __future__ import annotations

import logging
import uuid
from pathlib import Path

from cafeqr_shared.config import AppConfig
from cafeqr_shared.constants import ALLOWED_IMAGE_EXTENSIONS
from cafeqr_shared.errors import PayloadTooLargeError, StoreUnavailableError
from cafeqr_shared.supabase.storage import SupabaseStorage, resolve_bucket
from cafeqr_shared.validation import ValidationError

logger = logging.getLogger(__name__)

IMAGE_KINDS = {"menu", "logo", "qris"}
LOCAL_UPLOADS_ROUTE = "/uploads"

_CONTENT_TYPES = {
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "gif": "image/gif",
    "webp": "image/webp",
}


def _extension(filename: str) -> str:
    if "." not in filename:
        return ""
    return filename.rsplit(".", 1)[1].lower()


def validate_image(filename: str, content: bytes, max_bytes: int) -> str:
    """Return the normalized extension or raise."""
    if len(content) > max_bytes:
        raise PayloadTooLargeError(
            f"Ukuran file maksimal {max_bytes // (1024 * 1024)} MB",
            {"max_bytes": max_bytes, "size": len(content)},
        )
    if not content:
        raise ValidationError("File kosong", {"file": "File kosong"})
    extension = _extension(filename or "")
    if extension not in ALLOWED_IMAGE_EXTENSIONS:
        allowed = ", ".join(sorted(ALLOWED_IMAGE_EXTENSIONS))
        raise ValidationError("Format gambar tidak didukung", {"file": f"Gunakan {allowed}"})
    return extension


def upload_image(config: AppConfig, tenant_id: str, kind: str, filename: str, content: bytes) -> str:
    """
    Store an image and return its public URL.
    """
    if kind not in IMAGE_KINDS:
        raise ValidationError("Jenis gambar tidak valid", {"kind": "Gunakan menu, logo atau qris"})
    extension = validate_image(filename, content, config.max_upload_bytes)
    object_path = f"{tenant_id}/{kind}/{uuid.uuid4().hex}.{extension}"

    if SupabaseStorage.is_available(config):
        bucket = resolve_bucket(kind, config)
        try:
            SupabaseStorage.upload_bytes(config, bucket, object_path, content, _CONTENT_TYPES[extension])
        except Exception as exc:
            logger.error(f"Supabase upload failed for {object_path}: {exc}")
            raise StoreUnavailableError("Gagal mengunggah gambar") from exc
        url = SupabaseStorage.get_public_url(config, bucket, object_path)
    else:
        target = Path(config.upload_folder) / object_path
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(content)
        url = f"{LOCAL_UPLOADS_ROUTE}/{object_path}"

    logger.info(f"Image uploaded for tenant {tenant_id}: {object_path}")
    return url
