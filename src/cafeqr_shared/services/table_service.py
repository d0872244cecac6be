"""
Tables of a tenant and the URLs printed on their QR codes.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from cafeqr_shared import access_rules
from cafeqr_shared.constants import TableStatus
from cafeqr_shared.db import get_session
from cafeqr_shared.errors import ConflictError, TableNotFoundError
from cafeqr_shared.models import Table
from cafeqr_shared.serializers import serialize_table
from cafeqr_shared.supabase.realtime import RealtimeManager

logger = logging.getLogger(__name__)


def table_order_url(origin: str, slug: str, table_id: str) -> str:
    """QR payload for a table: ``{origin}/{slug}/order/{table_id}``."""
    return f"{origin.rstrip('/')}/{slug}/order/{table_id}"


def get_table_row(session: Session, tenant_id: str, table_id: str, operation: str) -> Table:
    table = session.get(Table, table_id)
    if table is None:
        raise TableNotFoundError()
    access_rules.check_tenant_scope(
        tenant_id, table.tenant_id, operation, f"tenants/{table.tenant_id}/tables/{table_id}"
    )
    return table


def find_public_table(session: Session, tenant_id: str, table_id: str) -> Table:
    """Table lookup for customer pages: a table of another tenant is simply not found."""
    table = session.get(Table, table_id)
    if table is None or table.tenant_id != tenant_id:
        raise TableNotFoundError()
    return table


def list_tables(tenant_id: str, origin: str | None = None, slug: str | None = None) -> list[dict[str, Any]]:
    with get_session() as session:
        tables = session.execute(
            select(Table).where(Table.tenant_id == tenant_id).order_by(Table.table_number)
        ).scalars()
        data = []
        for table in tables:
            item = serialize_table(table)
            if origin and slug:
                item["order_url"] = table_order_url(origin, slug, table.id)
            data.append(item)
        return data


def create_table(tenant_id: str, table_number: int) -> dict[str, Any]:
    with get_session() as session:
        exists = session.execute(
            select(func.count())
            .select_from(Table)
            .where(Table.tenant_id == tenant_id, Table.table_number == table_number)
        ).scalar_one()
        if exists:
            message = f"Meja nomor {table_number} sudah ada"
            raise ConflictError(message, {"fields": {"table_number": message}})
        table = Table(tenant_id=tenant_id, table_number=table_number, status=TableStatus.AVAILABLE.value)
        session.add(table)
        try:
            session.flush()
        except IntegrityError as exc:
            raise ConflictError(f"Meja nomor {table_number} sudah ada") from exc
        RealtimeManager.emit_collection_changed(session, tenant_id, "tables", table_id=table.id)
        return serialize_table(table)


def set_table_status(tenant_id: str, table_id: str, status: TableStatus) -> dict[str, Any]:
    with get_session() as session:
        table = get_table_row(session, tenant_id, table_id, "update")
        table.status = TableStatus(status).value
        RealtimeManager.emit_collection_changed(
            session, tenant_id, "tables", table_id=table.id, status=table.status
        )
        return serialize_table(table)


def delete_table(tenant_id: str, table_id: str) -> None:
    """Delete a table. Orders keep their table number snapshot."""
    with get_session() as session:
        table = get_table_row(session, tenant_id, table_id, "delete")
        session.delete(table)
        RealtimeManager.emit_collection_changed(session, tenant_id, "tables", table_id=table_id)
        logger.info(f"Table {table_id} deleted for tenant {tenant_id}")


def get_table_qr(tenant_id: str, table_id: str, origin: str, slug: str) -> dict[str, Any]:
    with get_session() as session:
        table = get_table_row(session, tenant_id, table_id, "get")
        return {**serialize_table(table), "order_url": table_order_url(origin, slug, table.id)}
