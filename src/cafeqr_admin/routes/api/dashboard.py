"""Landing page of the tenant admin panel."""

from http import HTTPStatus

from flask import Blueprint, jsonify

from cafeqr_admin.decorators import tenant_admin_required
from cafeqr_admin.routes.params import report_timezone
from cafeqr_shared.serializers import success_response
from cafeqr_shared.services.report_service import tenant_dashboard

dashboard_bp = Blueprint("admin_dashboard", __name__)


@dashboard_bp.get("/<slug>/admin")
@dashboard_bp.get("/<slug>/admin/dashboard")
@tenant_admin_required
def get_dashboard(slug: str, ctx):
    data = tenant_dashboard(ctx.tenant.id, report_timezone())
    data["admin"] = {"uid": ctx.identity.uid, "email": ctx.profile.email}
    return jsonify(success_response(data)), HTTPStatus.OK
