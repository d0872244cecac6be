"""Categories API - grouping of menus, in display order."""

from http import HTTPStatus

from flask import Blueprint, jsonify, request

from cafeqr_admin.decorators import tenant_admin_required
from cafeqr_shared.schemas import CategoryRequest
from cafeqr_shared.serializers import success_response
from cafeqr_shared.services import category_service
from cafeqr_shared.validation import parse_request

categories_bp = Blueprint("admin_categories", __name__)


@categories_bp.get("/<slug>/admin/categories")
@tenant_admin_required
def list_categories(slug: str, ctx):
    return jsonify(success_response(category_service.list_categories(ctx.tenant.id))), HTTPStatus.OK


@categories_bp.post("/<slug>/admin/categories")
@tenant_admin_required
def create_category(slug: str, ctx):
    payload = parse_request(CategoryRequest, request.get_json(silent=True))
    category = category_service.create_category(ctx.tenant.id, payload.name)
    return jsonify(success_response(category, "Kategori berhasil ditambahkan")), HTTPStatus.CREATED


@categories_bp.patch("/<slug>/admin/categories/<category_id>")
@tenant_admin_required
def rename_category(slug: str, category_id: str, ctx):
    payload = parse_request(CategoryRequest, request.get_json(silent=True))
    category = category_service.rename_category(ctx.tenant.id, category_id, payload.name)
    return jsonify(success_response(category, "Kategori berhasil diperbarui")), HTTPStatus.OK


@categories_bp.delete("/<slug>/admin/categories/<category_id>")
@tenant_admin_required
def delete_category(slug: str, category_id: str, ctx):
    category_service.delete_category(ctx.tenant.id, category_id)
    return jsonify(success_response({"id": category_id}, "Kategori berhasil dihapus")), HTTPStatus.OK
