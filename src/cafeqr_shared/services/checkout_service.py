"""
Customer checkout and the order status page.
"""

from __future__ import annotations

import logging
import random
from http import HTTPStatus
from typing import Any

from sqlalchemy.exc import SQLAlchemyError

from cafeqr_shared import access_rules
from cafeqr_shared.constants import OrderStatus, PaymentMethod
from cafeqr_shared.db import get_session
from cafeqr_shared.documents import OrderDocument, load_document
from cafeqr_shared.errors import OrderNotFoundError, StoreUnavailableError
from cafeqr_shared.models import Order
from cafeqr_shared.serializers import serialize_order, serialize_public_tenant
from cafeqr_shared.services.menu_service import available_menus_by_id
from cafeqr_shared.services.price_service import OrderTotals, compute_totals
from cafeqr_shared.services.table_service import find_public_table
from cafeqr_shared.services.tenant_service import find_tenant_by_slug
from cafeqr_shared.supabase.realtime import RealtimeManager
from cafeqr_shared.validation import ValidationError

logger = logging.getLogger(__name__)

__all__ = [
    "CheckoutValidationError",
    "OrderTotals",
    "compute_totals",
    "get_order_status",
    "order_status_url",
    "place_order",
]

TOKEN_MISMATCH_MESSAGE = "Token verifikasi salah. Silakan tanyakan token kepada kasir."


class CheckoutValidationError(ValidationError):
    """Checkout input rejected; ``fields`` says which field to fix."""

    status = HTTPStatus.UNPROCESSABLE_ENTITY
    code = "CHECKOUT_INVALID"
    default_message = "Pesanan tidak dapat diproses"


def order_status_url(slug: str, table_id: str, order_id: str) -> str:
    return f"/{slug}/order/{table_id}/status/{order_id}"


def _snapshot_items(session, tenant_id: str, items: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """
    Build the immutable item snapshot from the tenant's available menus.
    Prices and names never come from the client.
    """
    menus = available_menus_by_id(session, tenant_id, [item["menu_id"] for item in items])
    merged: dict[str, dict[str, Any]] = {}
    errors: dict[str, str] = {}
    for index, item in enumerate(items):
        menu = menus.get(item["menu_id"])
        if menu is None:
            errors[f"items.{index}.menu_id"] = "Menu tidak tersedia"
            continue
        entry = merged.setdefault(
            menu.id, {"id": menu.id, "name": menu.name, "price": menu.price, "quantity": 0}
        )
        entry["quantity"] += int(item["quantity"])
    if errors:
        raise CheckoutValidationError("Beberapa menu tidak tersedia", errors)
    return list(merged.values())


def place_order(
    tenant_slug: str,
    table_id: str,
    items: list[dict[str, Any]],
    payment_method: PaymentMethod | str,
    verification_token: str,
    rng: random.Random | None = None,
) -> dict[str, Any]:
    """
    Create an order from the customer's cart.

    The verification token must equal the tenant's daily token exactly;
    otherwise nothing is written and CheckoutValidationError names the
    ``verification_token`` field.
    """
    payment_method = PaymentMethod(payment_method)
    if not items:
        raise CheckoutValidationError("Keranjang masih kosong", {"items": "Keranjang masih kosong"})

    try:
        with get_session() as session:
            tenant = find_tenant_by_slug(session, tenant_slug)
            table = find_public_table(session, tenant.id, table_id)

            if verification_token != tenant.daily_token:
                logger.warning(
                    "Checkout rejected: token mismatch",
                    extra={"tenant_id": tenant.id, "table_id": table.id},
                )
                raise CheckoutValidationError(
                    TOKEN_MISMATCH_MESSAGE, {"verification_token": TOKEN_MISMATCH_MESSAGE}
                )

            order_items = _snapshot_items(session, tenant.id, items)
            totals = compute_totals(order_items, payment_method, rng)
            data = {
                "tenant_id": tenant.id,
                "table_id": table.id,
                "table_number": table.table_number,
                "order_items": order_items,
                "subtotal": totals.subtotal,
                "unique_code": totals.unique_code,
                "total_amount": totals.total_amount,
                "status": OrderStatus.RECEIVED.value,
                "payment_method": payment_method.value,
                "payment_verified": False,
                "verification_token": verification_token,
            }
            access_rules.check_public_order_create(data)
            order = Order(**data)
            session.add(order)
            session.flush()
            load_document(OrderDocument, order, f"tenants/{tenant.id}/orders/{order.id}")
            RealtimeManager.emit_new_order(session, tenant.id, order.id, table.table_number)
            logger.info(
                f"Order {order.id} placed at table {table.table_number} "
                f"for tenant {tenant.id} ({payment_method.value}, total {totals.total_amount})"
            )
            result = serialize_order(order, scope="client")
            result["status_url"] = order_status_url(tenant.slug, table.id, order.id)
            return result
    except SQLAlchemyError as exc:
        logger.error(f"Checkout failed for '{tenant_slug}': {exc}")
        raise StoreUnavailableError() from exc


def _payment_instructions(order: Order, tenant) -> dict[str, Any]:
    if order.payment_verified:
        return {"state": "paid", "message": "Pembayaran Lunas"}
    if order.payment_method == PaymentMethod.QRIS.value:
        return {
            "state": "awaiting_qris",
            "message": "Silakan scan QRIS dan bayar sesuai total (termasuk kode unik).",
            "qris_image_url": tenant.qris_image_url,
            "amount": order.total_amount,
        }
    return {
        "state": "pay_at_cashier",
        "message": "Silakan lakukan pembayaran di kasir.",
        "amount": order.total_amount,
    }


def get_order_status(tenant_slug: str, table_id: str, order_id: str) -> dict[str, Any]:
    """Data for the customer's order status page."""
    with get_session() as session:
        tenant = find_tenant_by_slug(session, tenant_slug)
        order = session.get(Order, order_id)
        if order is None or order.tenant_id != tenant.id or order.table_id != table_id:
            raise OrderNotFoundError()
        load_document(OrderDocument, order, f"tenants/{tenant.id}/orders/{order.id}")
        return {
            "tenant": serialize_public_tenant(tenant),
            "order": serialize_order(order, scope="client"),
            "payment": _payment_instructions(order, tenant),
            "receipt_message": tenant.receipt_message,
        }
