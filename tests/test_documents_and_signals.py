from datetime import datetime

import pytest

from cafeqr_shared import access_rules
from cafeqr_shared.db import get_session
from cafeqr_shared.documents import OrderDocument, TenantDocument, load_document
from cafeqr_shared.errors import MalformedDocumentError, PermissionDeniedError
from cafeqr_shared.models import Tenant
from cafeqr_shared.services import menu_service
from cafeqr_shared.signals import permission_error


def test_valid_row_loads_as_document():
    with get_session() as session:
        tenant = Tenant(name="Kopi", slug="kopi", daily_token="1234")
        session.add(tenant)
        session.flush()
        document = load_document(TenantDocument, tenant, f"tenants/{tenant.id}")
    assert document.slug == "kopi"
    assert document.daily_token == "1234"


@pytest.mark.parametrize(
    "record",
    [
        {"id": "t1", "name": "Kopi", "slug": "Kopi Besar", "daily_token": "1234"},
        {"id": "t1", "name": "Kopi", "slug": "kopi", "daily_token": "12345"},
        {"id": "t1", "name": "", "slug": "kopi", "daily_token": "1234"},
    ],
)
def test_malformed_tenant_is_rejected(record):
    with pytest.raises(MalformedDocumentError) as exc_info:
        load_document(TenantDocument, record, "tenants/t1")
    assert exc_info.value.path == "tenants/t1"
    assert exc_info.value.errors


def test_order_without_items_is_malformed():
    record = {
        "id": "o1",
        "tenant_id": "t1",
        "table_id": "tb1",
        "table_number": 1,
        "order_items": [],
        "subtotal": 0,
        "total_amount": 0,
        "status": "received",
        "payment_method": "cash",
        "payment_verified": False,
        "verification_token": "1234",
        "created_at": datetime(2024, 5, 1),
    }
    with pytest.raises(MalformedDocumentError):
        load_document(OrderDocument, record, "tenants/t1/orders/o1")


def test_permission_errors_are_published(cafe, other_cafe):
    received = []

    def listener(sender, error, **extra):
        received.append((sender, error))

    permission_error.connect(listener)
    try:
        with pytest.raises(PermissionDeniedError) as exc_info:
            menu_service.delete_menu(other_cafe.tenant["id"], cafe.menus["kopi"]["id"])
    finally:
        permission_error.disconnect(listener)

    path = f"tenants/{cafe.tenant['id']}/menus/{cafe.menus['kopi']['id']}"
    assert exc_info.value.operation == "delete"
    assert exc_info.value.path == path
    assert received == [(path, exc_info.value)]
    assert [m["id"] for m in menu_service.list_menus(cafe.tenant["id"])].count(cafe.menus["kopi"]["id"]) == 1


def test_public_order_must_start_unpaid():
    with pytest.raises(PermissionDeniedError):
        access_rules.check_public_order_create(
            {"tenant_id": "t1", "status": "received", "payment_verified": True}
        )
    with pytest.raises(PermissionDeniedError):
        access_rules.check_public_order_create(
            {"tenant_id": "t1", "status": "delivered", "payment_verified": False}
        )
    access_rules.check_public_order_create({"tenant_id": "t1", "status": "received", "payment_verified": False})
