"""
Reports API - revenue and transactions of the cafe for a day, month or year.
"""

from http import HTTPStatus

from flask import Blueprint, Response, jsonify

from cafeqr_admin.decorators import tenant_admin_required
from cafeqr_admin.routes.params import report_period
from cafeqr_shared.serializers import success_response
from cafeqr_shared.services.report_export_service import ReportExportService
from cafeqr_shared.services.report_service import build_report

reports_bp = Blueprint("admin_reports", __name__)

_PERIODS = ("day", "month", "year")


@reports_bp.get("/<slug>/admin/reports")
@tenant_admin_required
def get_report(slug: str, ctx):
    """
    Query params:
    - period: day (default), month or year
    - date: YYYY-MM-DD for period=day
    - year, month: for period=month / year
    """
    period, label, start, end = report_period("day", _PERIODS)
    report = build_report(ctx.tenant.id, start, end)
    report["period"] = period
    report["label"] = label
    return jsonify(success_response(report)), HTTPStatus.OK


@reports_bp.get("/<slug>/admin/reports/export")
@tenant_admin_required
def export_report(slug: str, ctx):
    _, label, start, end = report_period("day", _PERIODS)
    report = build_report(ctx.tenant.id, start, end)
    filename = ReportExportService.filename(ctx.tenant.slug, label)
    return Response(
        ReportExportService.export_report_to_csv(report),
        mimetype="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
