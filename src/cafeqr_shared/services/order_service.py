"""
Order handling for tenant admins: detail, status changes and payment
verification.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.orm import Session

from cafeqr_shared import access_rules
from cafeqr_shared.constants import OrderStatus
from cafeqr_shared.db import get_session
from cafeqr_shared.errors import OrderNotFoundError
from cafeqr_shared.models import Order, OrderStatusEvent
from cafeqr_shared.serializers import serialize_order, serialize_status_event
from cafeqr_shared.services.order_state_machine import TransitionContext, order_state_machine
from cafeqr_shared.supabase.realtime import RealtimeManager

logger = logging.getLogger(__name__)

PAYMENT_VERIFIED_MARKER = "payment_verified"
PAYMENT_UNVERIFIED_MARKER = "payment_unverified"


def get_order_row(session: Session, tenant_id: str, order_id: str, operation: str) -> Order:
    order = session.get(Order, order_id)
    if order is None:
        raise OrderNotFoundError()
    access_rules.check_tenant_scope(
        tenant_id, order.tenant_id, operation, f"tenants/{order.tenant_id}/orders/{order_id}"
    )
    return order


def get_order_detail(tenant_id: str, order_id: str) -> dict[str, Any]:
    """Order with its audit trail and the statuses it may move to next."""
    with get_session() as session:
        order = get_order_row(session, tenant_id, order_id, "get")
        data = serialize_order(order)
        data["history"] = [serialize_status_event(event) for event in order.history]
        data["allowed_statuses"] = [
            status.value for status in order_state_machine.allowed_targets(OrderStatus(order.status))
        ]
        return data


def update_order_status(
    tenant_id: str,
    order_id: str,
    target_status: OrderStatus | str,
    actor_uid: str | None = None,
    reason: str | None = None,
) -> dict[str, Any]:
    """
    Move an order to ``target_status``.

    Re-applying the current status is accepted and writes nothing.

    Raises:
        OrderStateError: the transition is not allowed
    """
    target_status = OrderStatus(target_status)
    with get_session() as session:
        order = get_order_row(session, tenant_id, order_id, "update")
        changed = order_state_machine.apply_transition(
            TransitionContext(order=order, target_status=target_status, actor_uid=actor_uid, reason=reason)
        )
        if changed:
            session.flush()
            RealtimeManager.emit_order_status_change(session, tenant_id, order.id, order.status)
            logger.info(f"Order {order.id} -> {order.status} by {actor_uid}")
        data = serialize_order(order)
        data["changed"] = changed
        return data


def set_payment_verified(
    tenant_id: str, order_id: str, verified: bool, actor_uid: str | None = None
) -> dict[str, Any]:
    """
    Toggle payment verification. Independent of the order status; every
    effective toggle is recorded in the order history.
    """
    with get_session() as session:
        order = get_order_row(session, tenant_id, order_id, "update")
        changed = order.payment_verified != verified
        if changed:
            order.payment_verified = verified
            order.history.append(
                OrderStatusEvent(
                    from_status=PAYMENT_UNVERIFIED_MARKER if verified else PAYMENT_VERIFIED_MARKER,
                    to_status=PAYMENT_VERIFIED_MARKER if verified else PAYMENT_UNVERIFIED_MARKER,
                    actor_uid=actor_uid,
                )
            )
            session.flush()
            RealtimeManager.emit_payment_verified(session, tenant_id, order.id, verified)
            logger.info(f"Order {order.id} payment_verified={verified} by {actor_uid}")
        data = serialize_order(order)
        data["changed"] = changed
        return data
