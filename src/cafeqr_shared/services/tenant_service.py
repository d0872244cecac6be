"""
Tenant resolution, CRUD and settings.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from cafeqr_shared.constants import RESERVED_SLUGS
from cafeqr_shared.db import get_session
from cafeqr_shared.documents import TenantDocument, load_document
from cafeqr_shared.errors import (
    ConflictError,
    StoreUnavailableError,
    TenantMovedError,
    TenantNotFoundError,
)
from cafeqr_shared.models import (
    Category,
    Menu,
    Order,
    OrderStatusEvent,
    Table,
    Tenant,
    TenantSlugAlias,
)
from cafeqr_shared.security import generate_daily_token
from cafeqr_shared.serializers import serialize_tenant
from cafeqr_shared.slugs import slugify
from cafeqr_shared.supabase.realtime import RealtimeManager
from cafeqr_shared.validation import ValidationError, validate_daily_token

logger = logging.getLogger(__name__)


def admin_url(slug: str, page: str = "") -> str:
    path = f"/{slug}/admin"
    return f"{path}/{page.strip('/')}" if page else path


def find_tenant_by_slug(session: Session, slug: str) -> Tenant:
    """
    Exactly one tenant must carry ``slug``.

    Raises:
        TenantMovedError: the slug is a former slug of a renamed tenant
        TenantNotFoundError: no match, or more than one
    """
    matches = list(session.execute(select(Tenant).where(Tenant.slug == slug).limit(2)).scalars())
    if len(matches) == 1:
        return matches[0]
    if len(matches) > 1:
        logger.error(f"Ambiguous tenant slug '{slug}' matched {len(matches)} tenants")
        raise TenantNotFoundError()

    alias = session.get(TenantSlugAlias, slug)
    if alias is not None:
        raise TenantMovedError(alias.tenant.slug)
    raise TenantNotFoundError()


def resolve_tenant_by_slug(slug: str) -> TenantDocument:
    """
    Resolve the public tenant for a URL slug.

    A failing query is reported as StoreUnavailableError, distinct from a
    missing tenant. There is no retry.
    """
    try:
        with get_session() as session:
            tenant = find_tenant_by_slug(session, slug)
            return load_document(TenantDocument, tenant, f"tenants/{tenant.id}")
    except SQLAlchemyError as exc:
        logger.error(f"Tenant lookup for '{slug}' failed: {exc}")
        raise StoreUnavailableError() from exc


def get_tenant_row(session: Session, tenant_id: str) -> Tenant:
    tenant = session.get(Tenant, tenant_id)
    if tenant is None:
        raise TenantNotFoundError()
    return tenant


def get_tenant(tenant_id: str) -> TenantDocument:
    with get_session() as session:
        tenant = get_tenant_row(session, tenant_id)
        return load_document(TenantDocument, tenant, f"tenants/{tenant_id}")


def list_tenants() -> list[dict[str, Any]]:
    with get_session() as session:
        tenants = session.execute(select(Tenant).order_by(Tenant.name)).scalars().all()
        return [serialize_tenant(tenant) for tenant in tenants]


def _derive_slug(name: str) -> str:
    slug = slugify(name)
    if not slug:
        message = "Nama kafe harus mengandung huruf atau angka"
        raise ValidationError(message, {"name": message})
    if slug in RESERVED_SLUGS:
        message = "Nama kafe tidak boleh memakai kata yang dicadangkan sistem"
        raise ValidationError(message, {"name": message})
    return slug


def _ensure_slug_free(session: Session, slug: str, tenant_id: str | None = None) -> None:
    stmt = select(func.count()).select_from(Tenant).where(Tenant.slug == slug)
    if tenant_id:
        stmt = stmt.where(Tenant.id != tenant_id)
    if session.execute(stmt).scalar_one():
        raise ConflictError(
            "Nama kafe sudah digunakan", {"fields": {"name": "Nama kafe sudah digunakan"}}
        )


def _claim_slug(session: Session, slug: str) -> None:
    """A slug that becomes a current slug stops being anyone's alias."""
    session.execute(delete(TenantSlugAlias).where(TenantSlugAlias.slug == slug))


def create_tenant(name: str, **profile: Any) -> dict[str, Any]:
    """Create a tenant; the slug is derived from the name and must be unused."""
    name = name.strip()
    slug = _derive_slug(name)
    with get_session() as session:
        _ensure_slug_free(session, slug)
        _claim_slug(session, slug)
        tenant = Tenant(name=name, slug=slug, daily_token=generate_daily_token(), **profile)
        session.add(tenant)
        try:
            session.flush()
        except IntegrityError as exc:
            raise ConflictError("Nama kafe sudah digunakan") from exc
        RealtimeManager.emit_collection_changed(session, None, "tenants", id=tenant.id)
        logger.info(f"Tenant created: {tenant.id} ({slug})")
        return serialize_tenant(tenant)


def _apply_rename(session: Session, tenant: Tenant, new_name: str) -> bool:
    new_slug = _derive_slug(new_name)
    tenant.name = new_name
    if new_slug == tenant.slug:
        return False

    _ensure_slug_free(session, new_slug, tenant.id)
    old_slug = tenant.slug
    _claim_slug(session, new_slug)
    session.add(TenantSlugAlias(slug=old_slug, tenant_id=tenant.id))
    tenant.slug = new_slug
    logger.info(f"Tenant {tenant.id} renamed: slug {old_slug} -> {new_slug}")
    return True


def update_tenant_settings(tenant_id: str, changes: dict[str, Any]) -> dict[str, Any]:
    """
    Apply settings changes.

    A name change re-derives the slug and keeps the old one as an alias.
    Returns the serialized tenant plus ``slug_changed`` and ``admin_url`` so
    the caller can navigate to the new canonical URL.
    """
    changes = dict(changes)
    if "daily_token" in changes and changes["daily_token"] is not None:
        validate_daily_token(changes["daily_token"])

    with get_session() as session:
        tenant = get_tenant_row(session, tenant_id)
        slug_changed = False
        new_name = changes.pop("name", None)
        if new_name is not None:
            slug_changed = _apply_rename(session, tenant, new_name.strip())

        for field in (
            "daily_token",
            "address",
            "owner_name",
            "phone_number",
            "receipt_message",
            "logo_url",
            "qris_image_url",
        ):
            if field in changes:
                value = changes[field]
                if field == "daily_token" and value is None:
                    continue
                setattr(tenant, field, value)

        try:
            session.flush()
        except IntegrityError as exc:
            raise ConflictError("Nama kafe sudah digunakan") from exc

        RealtimeManager.emit_collection_changed(
            session, tenant.id, "tenant", slug=tenant.slug, slug_changed=slug_changed
        )
        return {
            "tenant": serialize_tenant(tenant),
            "slug_changed": slug_changed,
            "admin_url": admin_url(tenant.slug, "settings"),
        }


def rename_tenant(tenant_id: str, new_name: str) -> dict[str, Any]:
    return update_tenant_settings(tenant_id, {"name": new_name})


def rotate_daily_token(tenant_id: str) -> dict[str, Any]:
    """Issue a fresh daily token; the old one stops working immediately."""
    with get_session() as session:
        tenant = get_tenant_row(session, tenant_id)
        token = generate_daily_token()
        while token == tenant.daily_token:
            token = generate_daily_token()
        tenant.daily_token = token
        RealtimeManager.emit_collection_changed(session, tenant.id, "tenant", daily_token_rotated=True)
        logger.info(f"Daily token rotated for tenant {tenant.id}")
        return serialize_tenant(tenant)


def delete_tenant(tenant_id: str) -> None:
    """
    Delete a tenant with its menus, categories, tables, orders and aliases.

    Admin profiles that point at the tenant are kept; the access gate
    rejects them because the tenant no longer exists.
    """
    with get_session() as session:
        tenant = get_tenant_row(session, tenant_id)
        order_ids = select(Order.id).where(Order.tenant_id == tenant_id)
        for stmt in (
            delete(OrderStatusEvent).where(OrderStatusEvent.order_id.in_(order_ids)),
            delete(Order).where(Order.tenant_id == tenant_id),
            delete(Menu).where(Menu.tenant_id == tenant_id),
            delete(Category).where(Category.tenant_id == tenant_id),
            delete(Table).where(Table.tenant_id == tenant_id),
        ):
            session.execute(stmt.execution_options(synchronize_session=False))
        session.delete(tenant)
        RealtimeManager.emit_collection_changed(session, None, "tenants", id=tenant_id)
        logger.info(f"Tenant deleted: {tenant_id}")
