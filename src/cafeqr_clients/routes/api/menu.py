"""Order page data: cafe profile, table and the available menu."""

from __future__ import annotations

from http import HTTPStatus

from flask import Blueprint, jsonify

from cafeqr_shared.db import get_session
from cafeqr_shared.serializers import serialize_public_tenant, serialize_table, success_response
from cafeqr_shared.services.menu_service import public_menu
from cafeqr_shared.services.table_service import find_public_table
from cafeqr_shared.services.tenant_service import resolve_tenant_by_slug

menu_bp = Blueprint("client_menu_api", __name__)


@menu_bp.get("/<slug>/order/<table_id>")
def get_order_page(slug: str, table_id: str):
    """
    Everything the order page renders.

    404 TENANT_NOT_FOUND / TABLE_NOT_FOUND, 308 for a renamed cafe,
    503 STORE_UNAVAILABLE when the database cannot be read.
    """
    tenant = resolve_tenant_by_slug(slug)
    with get_session() as session:
        table = serialize_table(find_public_table(session, tenant.id, table_id))

    data = {
        "tenant": serialize_public_tenant(tenant),
        "table": table,
        "menu": public_menu(tenant.id),
    }
    return jsonify(success_response(data)), HTTPStatus.OK
