"""
Supabase Storage helper for menu images and tenant branding.
"""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

from supabase import Client, create_client

from cafeqr_shared.config import AppConfig

logger = logging.getLogger(__name__)


class SupabaseStorage:
    """Lightweight wrapper around Supabase Storage buckets."""

    _client: Client | None = None

    @classmethod
    def _get_client(cls, config: AppConfig) -> Client | None:
        if cls._client is None:
            if not config.storage_enabled:
                logger.info("Supabase Storage credentials missing; using local uploads.")
                return None
            cls._client = create_client(config.supabase_url, config.supabase_service_role_key)
        return cls._client

    @classmethod
    def is_available(cls, config: AppConfig) -> bool:
        return cls._get_client(config) is not None

    @classmethod
    def reset(cls) -> None:
        cls._client = None

    @classmethod
    def upload_bytes(
        cls,
        config: AppConfig,
        bucket: str,
        path: str,
        content: bytes,
        content_type: str | None = None,
    ) -> dict[str, Any]:
        client = cls._get_client(config)
        if client is None:
            raise RuntimeError("Supabase client not available")

        options: dict[str, Any] = {"upsert": "true"}
        if content_type:
            options["content-type"] = content_type

        response = client.storage.from_(bucket).upload(path, content, options)
        return response.model_dump() if hasattr(response, "model_dump") else {"data": response}

    @staticmethod
    def get_public_url(config: AppConfig, bucket: str, path: str) -> str:
        safe_path = quote(path, safe="/")
        return f"{config.supabase_url.rstrip('/')}/storage/v1/object/public/{bucket}/{safe_path}"


def resolve_bucket(kind: str, config: AppConfig) -> str:
    """Map an image kind to a bucket name."""
    normalized = (kind or "menu").strip().lower()
    if normalized in {"branding", "logo", "qris"}:
        return config.storage_bucket_branding
    return config.storage_bucket_menu
