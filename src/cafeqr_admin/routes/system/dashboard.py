"""Console landing page and the error catalog."""

from http import HTTPStatus

from flask import Blueprint, jsonify

from cafeqr_admin.decorators import super_admin_required
from cafeqr_shared.error_catalog import ERROR_CATALOG
from cafeqr_shared.serializers import success_response
from cafeqr_shared.services.report_service import super_admin_dashboard

dashboard_bp = Blueprint("system_dashboard", __name__)


@dashboard_bp.get("/dashboard")
@super_admin_required
def get_dashboard(ctx):
    data = super_admin_dashboard()
    data["super_admin"] = {
        "uid": ctx.identity.uid,
        "email": ctx.identity.email,
        "bootstrapped": ctx.bootstrapped,
    }
    message = "Anda terdaftar sebagai super admin" if ctx.bootstrapped else None
    return jsonify(success_response(data, message)), HTTPStatus.OK


@dashboard_bp.get("/errors")
@super_admin_required
def get_error_catalog(ctx):
    return jsonify(success_response(ERROR_CATALOG)), HTTPStatus.OK
