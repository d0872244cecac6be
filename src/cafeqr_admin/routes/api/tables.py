"""
Tables API - tables of the cafe and the order URL encoded in their QR codes.

The QR payload is plain text ({origin}/{slug}/order/{tableId}); rendering
the image is left to the client.
"""

from http import HTTPStatus

from flask import Blueprint, current_app, jsonify, request

from cafeqr_admin.decorators import tenant_admin_required
from cafeqr_shared.schemas import CreateTableRequest, TableStatusRequest
from cafeqr_shared.serializers import success_response
from cafeqr_shared.services import table_service
from cafeqr_shared.validation import parse_request

tables_bp = Blueprint("admin_tables", __name__)


def _origin() -> str:
    return current_app.config["CAFEQR_CONFIG"].public_origin


@tables_bp.get("/<slug>/admin/tables")
@tenant_admin_required
def list_tables(slug: str, ctx):
    tables = table_service.list_tables(ctx.tenant.id, _origin(), ctx.tenant.slug)
    return jsonify(success_response(tables)), HTTPStatus.OK


@tables_bp.post("/<slug>/admin/tables")
@tenant_admin_required
def create_table(slug: str, ctx):
    payload = parse_request(CreateTableRequest, request.get_json(silent=True))
    table = table_service.create_table(ctx.tenant.id, payload.table_number)
    table["order_url"] = table_service.table_order_url(_origin(), ctx.tenant.slug, table["id"])
    return jsonify(success_response(table, "Meja berhasil ditambahkan")), HTTPStatus.CREATED


@tables_bp.put("/<slug>/admin/tables/<table_id>/status")
@tenant_admin_required
def set_table_status(slug: str, table_id: str, ctx):
    payload = parse_request(TableStatusRequest, request.get_json(silent=True))
    table = table_service.set_table_status(ctx.tenant.id, table_id, payload.status)
    return jsonify(success_response(table, "Status meja diperbarui")), HTTPStatus.OK


@tables_bp.get("/<slug>/admin/tables/<table_id>/qr")
@tenant_admin_required
def get_table_qr(slug: str, table_id: str, ctx):
    data = table_service.get_table_qr(ctx.tenant.id, table_id, _origin(), ctx.tenant.slug)
    return jsonify(success_response(data)), HTTPStatus.OK


@tables_bp.delete("/<slug>/admin/tables/<table_id>")
@tenant_admin_required
def delete_table(slug: str, table_id: str, ctx):
    table_service.delete_table(ctx.tenant.id, table_id)
    return jsonify(success_response({"id": table_id}, "Meja berhasil dihapus")), HTTPStatus.OK
