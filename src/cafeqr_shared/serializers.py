"""
Serializers for consistent API responses.

Serializers accept either ORM rows or the documents from
``cafeqr_shared.documents``; both expose the same attributes.
"""

from typing import Any

from cafeqr_shared.constants import ORDER_STATUS_META_DEFAULT
from cafeqr_shared.datetime_utils import isoformat_utc


def _enum_value(value):
    return getattr(value, "value", value)


def resolve_status_meta(status_key: str, scope: str = "admin") -> dict[str, str]:
    status_key = _enum_value(status_key)
    data = ORDER_STATUS_META_DEFAULT.get(
        status_key,
        {"client_label": status_key, "admin_label": status_key},
    )
    status_display = data["client_label"] if scope == "client" else data["admin_label"]
    return {**data, "status_display": status_display}


def serialize_tenant(tenant, include_token: bool = True) -> dict[str, Any]:
    """Serialize a tenant. The daily token is only shown to staff."""
    data = {
        "id": tenant.id,
        "name": tenant.name,
        "slug": tenant.slug,
        "logo_url": tenant.logo_url,
        "qris_image_url": tenant.qris_image_url,
        "address": tenant.address,
        "owner_name": tenant.owner_name,
        "phone_number": tenant.phone_number,
        "receipt_message": tenant.receipt_message,
        "created_at": isoformat_utc(tenant.created_at),
    }
    if include_token:
        data["daily_token"] = tenant.daily_token
    return data


def serialize_public_tenant(tenant) -> dict[str, Any]:
    return {
        "id": tenant.id,
        "name": tenant.name,
        "slug": tenant.slug,
        "logo_url": tenant.logo_url,
        "address": tenant.address,
    }


def serialize_category(category) -> dict[str, Any]:
    return {
        "id": category.id,
        "name": category.name,
        "display_order": category.display_order,
    }


def serialize_menu(menu, category_name: str | None = None) -> dict[str, Any]:
    """Serialize a menu entry."""
    return {
        "id": menu.id,
        "name": menu.name,
        "price": menu.price,
        "category_id": menu.category_id,
        "category": category_name,
        "description": menu.description,
        "image_url": menu.image_url,
        "available": menu.available,
    }


def serialize_table(table) -> dict[str, Any]:
    return {
        "id": table.id,
        "table_number": table.table_number,
        "status": _enum_value(table.status),
    }


def serialize_order_item(item) -> dict[str, Any]:
    if isinstance(item, dict):
        return {
            "id": item["id"],
            "name": item["name"],
            "price": item["price"],
            "quantity": item["quantity"],
        }
    return {"id": item.id, "name": item.name, "price": item.price, "quantity": item.quantity}


def serialize_order(order, scope: str = "admin") -> dict[str, Any]:
    """Serialize an order for the admin panel or the customer status page."""
    status_meta = resolve_status_meta(order.status, scope)
    data = {
        "id": order.id,
        "table_id": order.table_id,
        "table_number": order.table_number,
        "order_items": [serialize_order_item(item) for item in order.order_items],
        "subtotal": order.subtotal,
        "unique_code": order.unique_code,
        "total_amount": order.total_amount,
        "status": _enum_value(order.status),
        "status_display": status_meta["status_display"],
        "payment_method": _enum_value(order.payment_method),
        "payment_verified": order.payment_verified,
        "created_at": isoformat_utc(order.created_at),
    }
    if scope != "client":
        data["tenant_id"] = order.tenant_id
        data["updated_at"] = isoformat_utc(order.updated_at)
    return data


def serialize_status_event(event) -> dict[str, Any]:
    return {
        "from_status": event.from_status,
        "to_status": event.to_status,
        "actor_uid": event.actor_uid,
        "reason": event.reason,
        "created_at": isoformat_utc(event.created_at),
    }


def serialize_admin_user(profile, tenant_name: str | None) -> dict[str, Any]:
    """Serialize an admin profile with the tenant name joined at read time."""
    return {
        "uid": profile.id,
        "email": profile.email,
        "role": _enum_value(profile.role),
        "tenant_id": profile.tenant_id,
        "tenant_name": tenant_name,
    }


def serialize_realtime_event(event) -> dict[str, Any]:
    return {
        "id": event.id,
        "event_type": event.event_type,
        "payload": event.payload,
        "created_at": isoformat_utc(event.created_at),
    }


def success_response(data: Any, message: str | None = None) -> dict[str, Any]:
    """Create a standardized success response."""
    response = {"status": "success", "data": data, "error": None}
    if message:
        response["message"] = message
    return response


def error_response(error: str, details: dict[str, Any] | None = None) -> dict[str, Any]:
    """Create a standardized error response."""
    response = {"status": "error", "data": None, "error": error}
    if details:
        response["details"] = details
    return response
