"""
Cafe management - create, rename, edit and delete tenants.
"""

from http import HTTPStatus

from flask import Blueprint, jsonify, request

from cafeqr_admin.decorators import super_admin_required
from cafeqr_shared.logging_config import get_logger
from cafeqr_shared.schemas import CreateTenantRequest, UpdateTenantSettingsRequest
from cafeqr_shared.serializers import serialize_tenant, success_response
from cafeqr_shared.services import tenant_service
from cafeqr_shared.validation import parse_request

tenants_bp = Blueprint("system_tenants", __name__)
logger = get_logger(__name__)


@tenants_bp.get("/tenants")
@super_admin_required
def list_tenants(ctx):
    return jsonify(success_response(tenant_service.list_tenants())), HTTPStatus.OK


@tenants_bp.post("/tenants")
@super_admin_required
def create_tenant(ctx):
    payload = parse_request(CreateTenantRequest, request.get_json(silent=True))
    profile = payload.model_dump(exclude={"name"}, exclude_none=True)
    tenant = tenant_service.create_tenant(payload.name, **profile)
    logger.info(f"Tenant {tenant['id']} created by {ctx.identity.uid}")
    return jsonify(success_response(tenant, "Kafe berhasil ditambahkan")), HTTPStatus.CREATED


@tenants_bp.get("/tenants/<tenant_id>")
@super_admin_required
def get_tenant(tenant_id: str, ctx):
    return jsonify(success_response(serialize_tenant(tenant_service.get_tenant(tenant_id)))), HTTPStatus.OK


@tenants_bp.patch("/tenants/<tenant_id>")
@super_admin_required
def update_tenant(tenant_id: str, ctx):
    payload = parse_request(UpdateTenantSettingsRequest, request.get_json(silent=True))
    result = tenant_service.update_tenant_settings(tenant_id, payload.model_dump(exclude_unset=True))
    return jsonify(success_response(result, "Kafe berhasil diperbarui")), HTTPStatus.OK


@tenants_bp.delete("/tenants/<tenant_id>")
@super_admin_required
def delete_tenant(tenant_id: str, ctx):
    tenant_service.delete_tenant(tenant_id)
    logger.info(f"Tenant {tenant_id} deleted by {ctx.identity.uid}")
    return jsonify(success_response({"id": tenant_id}, "Kafe berhasil dihapus")), HTTPStatus.OK
