"""
Menu categories of a tenant.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from cafeqr_shared import access_rules
from cafeqr_shared.db import get_session
from cafeqr_shared.errors import CategoryNotFoundError, ConflictError
from cafeqr_shared.models import Category, Menu
from cafeqr_shared.serializers import serialize_category
from cafeqr_shared.supabase.realtime import RealtimeManager

logger = logging.getLogger(__name__)


def get_category_row(session: Session, tenant_id: str, category_id: str, operation: str) -> Category:
    category = session.get(Category, category_id)
    if category is None:
        raise CategoryNotFoundError()
    access_rules.check_tenant_scope(
        tenant_id, category.tenant_id, operation, f"tenants/{category.tenant_id}/categories/{category_id}"
    )
    return category


def list_categories(tenant_id: str) -> list[dict[str, Any]]:
    with get_session() as session:
        categories = session.execute(
            select(Category)
            .where(Category.tenant_id == tenant_id)
            .order_by(Category.display_order, Category.name)
        ).scalars()
        return [serialize_category(category) for category in categories]


def _duplicate_name(session: Session, tenant_id: str, name: str, exclude_id: str | None = None) -> bool:
    stmt = select(func.count()).select_from(Category).where(
        Category.tenant_id == tenant_id, func.lower(Category.name) == name.lower()
    )
    if exclude_id:
        stmt = stmt.where(Category.id != exclude_id)
    return bool(session.execute(stmt).scalar_one())


def create_category(tenant_id: str, name: str) -> dict[str, Any]:
    """Create a category at the end of the display order."""
    with get_session() as session:
        if _duplicate_name(session, tenant_id, name):
            raise ConflictError("Kategori sudah ada", {"fields": {"name": "Kategori sudah ada"}})
        last = session.execute(
            select(func.max(Category.display_order)).where(Category.tenant_id == tenant_id)
        ).scalar()
        category = Category(tenant_id=tenant_id, name=name, display_order=(last or 0) + 1)
        session.add(category)
        try:
            session.flush()
        except IntegrityError as exc:
            raise ConflictError("Kategori sudah ada") from exc
        RealtimeManager.emit_collection_changed(session, tenant_id, "categories", category_id=category.id)
        return serialize_category(category)


def rename_category(tenant_id: str, category_id: str, name: str) -> dict[str, Any]:
    with get_session() as session:
        category = get_category_row(session, tenant_id, category_id, "update")
        if _duplicate_name(session, tenant_id, name, exclude_id=category_id):
            raise ConflictError("Kategori sudah ada", {"fields": {"name": "Kategori sudah ada"}})
        category.name = name
        RealtimeManager.emit_collection_changed(session, tenant_id, "categories", category_id=category.id)
        return serialize_category(category)


def delete_category(tenant_id: str, category_id: str) -> None:
    """Delete a category; rejected while menus still reference it."""
    with get_session() as session:
        category = get_category_row(session, tenant_id, category_id, "delete")
        in_use = session.execute(
            select(func.count()).select_from(Menu).where(Menu.category_id == category_id)
        ).scalar_one()
        if in_use:
            raise ConflictError(
                f"Kategori masih dipakai oleh {in_use} menu", {"menu_count": in_use}
            )
        session.delete(category)
        RealtimeManager.emit_collection_changed(session, tenant_id, "categories", category_id=category_id)
        logger.info(f"Category {category_id} deleted for tenant {tenant_id}")
