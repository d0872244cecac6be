"""
Settings API - cafe profile, daily verification token and branding.

Renaming the cafe changes its slug; the response carries the new admin URL
and the old slug keeps redirecting.
"""

from http import HTTPStatus

from flask import Blueprint, jsonify, request

from cafeqr_admin.decorators import tenant_admin_required
from cafeqr_shared.logging_config import get_logger
from cafeqr_shared.schemas import UpdateTenantSettingsRequest
from cafeqr_shared.serializers import serialize_tenant, success_response
from cafeqr_shared.services import tenant_service
from cafeqr_shared.validation import parse_request

settings_bp = Blueprint("admin_settings", __name__)
logger = get_logger(__name__)


@settings_bp.get("/<slug>/admin/settings")
@tenant_admin_required
def get_settings(slug: str, ctx):
    return jsonify(success_response(serialize_tenant(ctx.tenant))), HTTPStatus.OK


@settings_bp.patch("/<slug>/admin/settings")
@tenant_admin_required
def update_settings(slug: str, ctx):
    payload = parse_request(UpdateTenantSettingsRequest, request.get_json(silent=True))
    result = tenant_service.update_tenant_settings(ctx.tenant.id, payload.model_dump(exclude_unset=True))
    if result["slug_changed"]:
        logger.info(f"Tenant {ctx.tenant.id} moved to {result['admin_url']}")
    return jsonify(success_response(result, "Pengaturan berhasil disimpan")), HTTPStatus.OK


@settings_bp.post("/<slug>/admin/settings/rotate-token")
@tenant_admin_required
def rotate_token(slug: str, ctx):
    tenant = tenant_service.rotate_daily_token(ctx.tenant.id)
    return jsonify(success_response(tenant, "Token harian diperbarui")), HTTPStatus.OK
