"""
Store access rules.

These checks run inside the write transaction, next to the data they
protect. A rejected operation raises PermissionDeniedError and is published
on the ``permission-error`` signal.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from cafeqr_shared.constants import OrderStatus
from cafeqr_shared.errors import PermissionDeniedError
from cafeqr_shared.models import SuperAdminRole
from cafeqr_shared.signals import emit_permission_error


def deny(operation: str, path: str, data: dict[str, Any] | None = None) -> PermissionDeniedError:
    return emit_permission_error(PermissionDeniedError(operation, path, data))


def check_super_admin_create(session: Session, user_id: str, email: str) -> None:
    """A super-admin role may only be created while none exists."""
    existing = session.execute(select(func.count()).select_from(SuperAdminRole)).scalar_one()
    if existing:
        raise deny(
            "create",
            f"super_admin_roles/{user_id}",
            {"user_id": user_id, "email": email},
        )


def check_tenant_scope(
    actor_tenant_id: str,
    target_tenant_id: str,
    operation: str,
    path: str,
    data: dict[str, Any] | None = None,
) -> None:
    """Tenant admins may only touch records of their own tenant."""
    if actor_tenant_id != target_tenant_id:
        raise deny(operation, path, data)


def check_public_order_create(data: dict[str, Any]) -> None:
    """
    Orders created from the public checkout must start unpaid and received.
    """
    if data.get("status") != OrderStatus.RECEIVED.value or data.get("payment_verified"):
        raise deny("create", f"tenants/{data.get('tenant_id')}/orders", data)
