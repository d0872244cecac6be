"""
Menus API - menu items of the cafe.

Prices are integer Rupiah; a menu always belongs to one of the cafe's
categories.
"""

from http import HTTPStatus

from flask import Blueprint, jsonify, request

from cafeqr_admin.decorators import tenant_admin_required
from cafeqr_shared.logging_config import get_logger
from cafeqr_shared.schemas import CreateMenuRequest, MenuAvailabilityRequest, UpdateMenuRequest
from cafeqr_shared.serializers import success_response
from cafeqr_shared.services import menu_service
from cafeqr_shared.validation import parse_request

menus_bp = Blueprint("admin_menus", __name__)
logger = get_logger(__name__)


@menus_bp.get("/<slug>/admin/menus")
@tenant_admin_required
def list_menus(slug: str, ctx):
    """
    Query params:
    - available: "true" to list only menus customers can order
    """
    only_available = request.args.get("available", "").lower() in {"1", "true", "yes"}
    return jsonify(success_response(menu_service.list_menus(ctx.tenant.id, only_available))), HTTPStatus.OK


@menus_bp.post("/<slug>/admin/menus")
@tenant_admin_required
def create_menu(slug: str, ctx):
    payload = parse_request(CreateMenuRequest, request.get_json(silent=True))
    menu = menu_service.create_menu(ctx.tenant.id, payload.model_dump())
    return jsonify(success_response(menu, "Menu berhasil ditambahkan")), HTTPStatus.CREATED


@menus_bp.patch("/<slug>/admin/menus/<menu_id>")
@tenant_admin_required
def update_menu(slug: str, menu_id: str, ctx):
    payload = parse_request(UpdateMenuRequest, request.get_json(silent=True))
    menu = menu_service.update_menu(ctx.tenant.id, menu_id, payload.model_dump(exclude_unset=True))
    return jsonify(success_response(menu, "Menu berhasil diperbarui")), HTTPStatus.OK


@menus_bp.put("/<slug>/admin/menus/<menu_id>/availability")
@tenant_admin_required
def set_availability(slug: str, menu_id: str, ctx):
    payload = parse_request(MenuAvailabilityRequest, request.get_json(silent=True))
    menu = menu_service.set_menu_availability(ctx.tenant.id, menu_id, payload.available)
    message = "Menu tersedia" if payload.available else "Menu ditandai habis"
    return jsonify(success_response(menu, message)), HTTPStatus.OK


@menus_bp.delete("/<slug>/admin/menus/<menu_id>")
@tenant_admin_required
def delete_menu(slug: str, menu_id: str, ctx):
    menu_service.delete_menu(ctx.tenant.id, menu_id)
    return jsonify(success_response({"id": menu_id}, "Menu berhasil dihapus")), HTTPStatus.OK
