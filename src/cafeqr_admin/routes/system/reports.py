"""
Sales reports across all cafes or for a single cafe, by month or year.
"""

from http import HTTPStatus

from flask import Blueprint, Response, jsonify, request

from cafeqr_admin.decorators import super_admin_required
from cafeqr_admin.routes.params import report_period
from cafeqr_shared.serializers import success_response
from cafeqr_shared.services.report_export_service import ReportExportService
from cafeqr_shared.services.report_service import build_report
from cafeqr_shared.services.tenant_service import get_tenant

reports_bp = Blueprint("system_reports", __name__)

_PERIODS = ("month", "year")


def _selected_report():
    """
    Query params:
    - tenant_id: a single cafe; omitted or "all" covers every cafe
    - period: month (default) or year
    - year, month
    """
    tenant_id = request.args.get("tenant_id") or None
    if tenant_id == "all":
        tenant_id = None
    tenant = get_tenant(tenant_id) if tenant_id else None
    period, label, start, end = report_period("month", _PERIODS)
    report = build_report(tenant_id, start, end)
    report["period"] = period
    report["label"] = label
    report["tenant_name"] = tenant.name if tenant else None
    return report, tenant


@reports_bp.get("/reports")
@super_admin_required
def get_report(ctx):
    report, _ = _selected_report()
    return jsonify(success_response(report)), HTTPStatus.OK


@reports_bp.get("/reports/export")
@super_admin_required
def export_report(ctx):
    report, tenant = _selected_report()
    filename = ReportExportService.filename(tenant.slug if tenant else "semua-kafe", report["label"])
    return Response(
        ReportExportService.export_report_to_csv(report),
        mimetype="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
