"""
Realtime change feed.

Events are written to the ``cafeqr_realtime_events`` table inside the same
transaction as the change that caused them, so subscribers polling
``/admin/events?after=<id>`` never see an event for a rolled back write.
"""

import logging
from datetime import date, datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from cafeqr_shared.models import RealtimeEvent

logger = logging.getLogger(__name__)

EVENTS_POLL_LIMIT = 100


class RealtimeManager:
    """
    Persists change events for polling subscribers.
    """

    @staticmethod
    def _serialize_value(value: Any) -> Any:
        if isinstance(value, (datetime, date)):
            return value.isoformat()
        if isinstance(value, (set, tuple)):
            return list(value)
        if isinstance(value, dict):
            return {k: RealtimeManager._serialize_value(v) for k, v in value.items()}
        if isinstance(value, list):
            return [RealtimeManager._serialize_value(v) for v in value]
        return getattr(value, "value", value)

    @classmethod
    def emit(
        cls,
        session: Session,
        tenant_id: str | None,
        event_type: str,
        payload: dict[str, Any] | None = None,
    ) -> None:
        session.add(
            RealtimeEvent(
                tenant_id=tenant_id,
                event_type=event_type,
                payload=cls._serialize_value(payload or {}),
            )
        )
        logger.debug(f"Queued realtime event '{event_type}' for tenant {tenant_id}")

    @classmethod
    def emit_new_order(cls, session: Session, tenant_id: str, order_id: str, table_number: int):
        cls.emit(
            session,
            tenant_id,
            "orders.new",
            {"order_id": order_id, "table_number": table_number},
        )

    @classmethod
    def emit_order_status_change(cls, session: Session, tenant_id: str, order_id: str, status: str):
        cls.emit(session, tenant_id, "orders.status_changed", {"order_id": order_id, "status": status})

    @classmethod
    def emit_payment_verified(cls, session: Session, tenant_id: str, order_id: str, verified: bool):
        cls.emit(
            session,
            tenant_id,
            "orders.payment_verified",
            {"order_id": order_id, "payment_verified": verified},
        )

    @classmethod
    def emit_collection_changed(
        cls, session: Session, tenant_id: str | None, collection: str, **extra_data
    ) -> None:
        """Generic "<collection>.changed" event for menu, category, table and tenant edits."""
        cls.emit(session, tenant_id, f"{collection}.changed", extra_data)

    @staticmethod
    def get_events_since(
        session: Session, tenant_id: str, after_id: int = 0, limit: int = EVENTS_POLL_LIMIT
    ) -> list[RealtimeEvent]:
        stmt = (
            select(RealtimeEvent)
            .where(RealtimeEvent.tenant_id == tenant_id, RealtimeEvent.id > after_id)
            .order_by(RealtimeEvent.id)
            .limit(limit)
        )
        return list(session.execute(stmt).scalars())
