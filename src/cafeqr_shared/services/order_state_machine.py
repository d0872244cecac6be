"""
Order State Machine.

Keeps the status transition rules out of the Order model and the routes.
Orders move one step at a time along received -> preparing -> ready ->
delivered, and may be cancelled until they are delivered.
"""

from __future__ import annotations

from dataclasses import dataclass
from http import HTTPStatus

from cafeqr_shared.constants import ORDER_TRANSITIONS, TERMINAL_ORDER_STATUSES, OrderStatus
from cafeqr_shared.datetime_utils import utcnow_naive
from cafeqr_shared.errors import ConflictError
from cafeqr_shared.models import Order, OrderStatusEvent


class OrderStateError(ConflictError):
    """Error raised when a state transition is invalid."""

    code = "ORDER_STATE_INVALID"
    status = HTTPStatus.CONFLICT

    def __init__(
        self, message: str, current_status: OrderStatus | None, target_status: OrderStatus | None
    ):
        self.current_status = current_status
        self.target_status = target_status
        super().__init__(
            message,
            {
                "current_status": current_status.value if current_status else None,
                "target_status": target_status.value if target_status else None,
            },
        )


@dataclass
class TransitionContext:
    """Context for one status change request."""

    order: Order
    target_status: OrderStatus
    actor_uid: str | None = None
    reason: str | None = None


class OrderStateMachine:
    """
    State machine for order status transitions.

    Responsibilities:
    - Validate that a transition is allowed
    - Apply the status change
    - Record an OrderStatusEvent for every effective change
    """

    def can_transition(self, current_status: OrderStatus, target_status: OrderStatus) -> bool:
        if current_status == target_status:
            return True
        return (current_status, target_status) in ORDER_TRANSITIONS

    def allowed_targets(self, current_status: OrderStatus) -> list[OrderStatus]:
        return [target for (source, target) in ORDER_TRANSITIONS if source == current_status]

    def validate_transition(self, context: TransitionContext) -> None:
        current_status = self._get_status(context.order)
        target_status = context.target_status

        if current_status == target_status:
            return

        if current_status in TERMINAL_ORDER_STATUSES:
            raise OrderStateError(
                f"Pesanan sudah {current_status.value}, status tidak dapat diubah",
                current_status,
                target_status,
            )

        if (current_status, target_status) not in ORDER_TRANSITIONS:
            raise OrderStateError(
                f"Perubahan status tidak valid: {current_status.value} → {target_status.value}",
                current_status,
                target_status,
            )

    def apply_transition(self, context: TransitionContext) -> bool:
        """
        Apply the transition. Returns False when the order already had the
        target status, in which case nothing is written.
        """
        self.validate_transition(context)

        current_status = self._get_status(context.order)
        if current_status == context.target_status:
            return False

        context.order.status = context.target_status.value
        context.order.updated_at = utcnow_naive()
        context.order.history.append(
            OrderStatusEvent(
                from_status=current_status.value,
                to_status=context.target_status.value,
                actor_uid=context.actor_uid,
                reason=context.reason,
            )
        )
        return True

    def _get_status(self, order: Order) -> OrderStatus:
        try:
            return OrderStatus(order.status)
        except ValueError:
            raise OrderStateError(
                f"Status pesanan tidak dikenal: {order.status}", None, None
            ) from None


order_state_machine = OrderStateMachine()
