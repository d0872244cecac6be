"""
Menu management for tenant admins and the public menu page.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from cafeqr_shared import access_rules
from cafeqr_shared.db import get_session
from cafeqr_shared.errors import MenuNotFoundError
from cafeqr_shared.models import Category, Menu
from cafeqr_shared.serializers import serialize_category, serialize_menu
from cafeqr_shared.services.category_service import get_category_row
from cafeqr_shared.supabase.realtime import RealtimeManager

logger = logging.getLogger(__name__)

_UPDATABLE_FIELDS = ("name", "price", "category_id", "description", "image_url", "available")


def _category_names(session: Session, tenant_id: str) -> dict[str, str]:
    return dict(
        session.execute(
            select(Category.id, Category.name).where(Category.tenant_id == tenant_id)
        ).all()
    )


def get_menu_row(session: Session, tenant_id: str, menu_id: str, operation: str) -> Menu:
    menu = session.get(Menu, menu_id)
    if menu is None:
        raise MenuNotFoundError()
    access_rules.check_tenant_scope(
        tenant_id, menu.tenant_id, operation, f"tenants/{menu.tenant_id}/menus/{menu_id}"
    )
    return menu


def list_menus(tenant_id: str, only_available: bool = False) -> list[dict[str, Any]]:
    with get_session() as session:
        stmt = select(Menu).where(Menu.tenant_id == tenant_id)
        if only_available:
            stmt = stmt.where(Menu.available.is_(True))
        stmt = stmt.order_by(Menu.name)
        names = _category_names(session, tenant_id)
        return [serialize_menu(menu, names.get(menu.category_id)) for menu in session.execute(stmt).scalars()]


def public_menu(tenant_id: str) -> dict[str, Any]:
    """
    Menu shown to customers: available menus only, grouped by category in
    display order. Categories with nothing available are omitted.
    """
    with get_session() as session:
        categories = session.execute(
            select(Category)
            .where(Category.tenant_id == tenant_id)
            .order_by(Category.display_order, Category.name)
        ).scalars().all()
        menus = session.execute(
            select(Menu)
            .where(Menu.tenant_id == tenant_id, Menu.available.is_(True))
            .order_by(Menu.name)
        ).scalars().all()

        grouped: dict[str, list[dict[str, Any]]] = {}
        for menu in menus:
            grouped.setdefault(menu.category_id, []).append(serialize_menu(menu))

        data = []
        for category in categories:
            items = grouped.get(category.id)
            if items:
                data.append({**serialize_category(category), "items": items})
    return {"categories": data}


def create_menu(tenant_id: str, payload: dict[str, Any]) -> dict[str, Any]:
    with get_session() as session:
        category = get_category_row(session, tenant_id, payload["category_id"], "create")
        menu = Menu(
            tenant_id=tenant_id,
            name=payload["name"].strip(),
            price=payload["price"],
            category_id=category.id,
            description=payload.get("description"),
            image_url=payload.get("image_url"),
            available=payload.get("available", True),
        )
        session.add(menu)
        session.flush()
        RealtimeManager.emit_collection_changed(session, tenant_id, "menus", menu_id=menu.id)
        logger.info(f"Menu {menu.id} created for tenant {tenant_id}")
        return serialize_menu(menu, category.name)


def update_menu(tenant_id: str, menu_id: str, changes: dict[str, Any]) -> dict[str, Any]:
    with get_session() as session:
        menu = get_menu_row(session, tenant_id, menu_id, "update")
        if changes.get("category_id"):
            get_category_row(session, tenant_id, changes["category_id"], "update")
        for field in _UPDATABLE_FIELDS:
            if field in changes and changes[field] is not None:
                setattr(menu, field, changes[field])
        session.flush()
        RealtimeManager.emit_collection_changed(session, tenant_id, "menus", menu_id=menu.id)
        names = _category_names(session, tenant_id)
        return serialize_menu(menu, names.get(menu.category_id))


def set_menu_availability(tenant_id: str, menu_id: str, available: bool) -> dict[str, Any]:
    return update_menu(tenant_id, menu_id, {"available": available})


def delete_menu(tenant_id: str, menu_id: str) -> None:
    with get_session() as session:
        menu = get_menu_row(session, tenant_id, menu_id, "delete")
        session.delete(menu)
        RealtimeManager.emit_collection_changed(session, tenant_id, "menus", menu_id=menu_id)
        logger.info(f"Menu {menu_id} deleted for tenant {tenant_id}")


def available_menus_by_id(session: Session, tenant_id: str, menu_ids: list[str]) -> dict[str, Menu]:
    """Available menus of the tenant keyed by id; unknown or unavailable ids are absent."""
    if not menu_ids:
        return {}
    rows = session.execute(
        select(Menu).where(
            Menu.tenant_id == tenant_id,
            Menu.id.in_(menu_ids),
            Menu.available.is_(True),
        )
    ).scalars()
    return {menu.id: menu for menu in rows}
