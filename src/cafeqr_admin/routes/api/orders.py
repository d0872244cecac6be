"""
Orders API - incoming orders, status changes and payment verification.

Endpoints:
- GET /<slug>/admin/orders?date=YYYY-MM-DD&page_size=&after=&before=
- GET /<slug>/admin/orders/<order_id>
- PUT /<slug>/admin/orders/<order_id>/status
- PUT /<slug>/admin/orders/<order_id>/payment
"""

from http import HTTPStatus

from flask import Blueprint, current_app, jsonify, request

from cafeqr_admin.decorators import tenant_admin_required
from cafeqr_admin.routes.params import query_date, query_int, report_timezone
from cafeqr_shared.schemas import OrderStatusRequest, PaymentVerificationRequest
from cafeqr_shared.serializers import resolve_status_meta, success_response
from cafeqr_shared.services import order_service
from cafeqr_shared.services.report_service import day_bounds, paginate_orders, today_local
from cafeqr_shared.validation import parse_request

orders_bp = Blueprint("admin_orders", __name__)


@orders_bp.get("/<slug>/admin/orders")
@tenant_admin_required
def list_orders(slug: str, ctx):
    """One page of the day's orders, newest first (defaults to today)."""
    tz_name = report_timezone()
    day = query_date("date", today_local(tz_name))
    start, end = day_bounds(day, tz_name)
    page_size = query_int("page_size", current_app.config["CAFEQR_CONFIG"].orders_page_size)
    page = paginate_orders(
        ctx.tenant.id,
        start,
        end,
        page_size=page_size,
        after=request.args.get("after") or None,
        before=request.args.get("before") or None,
    )
    page["date"] = day.isoformat()
    return jsonify(success_response(page)), HTTPStatus.OK


@orders_bp.get("/<slug>/admin/orders/<order_id>")
@tenant_admin_required
def get_order(slug: str, order_id: str, ctx):
    return jsonify(success_response(order_service.get_order_detail(ctx.tenant.id, order_id))), HTTPStatus.OK


@orders_bp.put("/<slug>/admin/orders/<order_id>/status")
@tenant_admin_required
def update_status(slug: str, order_id: str, ctx):
    payload = parse_request(OrderStatusRequest, request.get_json(silent=True))
    order = order_service.update_order_status(
        ctx.tenant.id, order_id, payload.status, actor_uid=ctx.identity.uid, reason=payload.reason
    )
    label = resolve_status_meta(order["status"])["status_display"]
    return jsonify(success_response(order, f"Status pesanan: {label}")), HTTPStatus.OK


@orders_bp.put("/<slug>/admin/orders/<order_id>/payment")
@tenant_admin_required
def update_payment(slug: str, order_id: str, ctx):
    payload = parse_request(PaymentVerificationRequest, request.get_json(silent=True))
    order = order_service.set_payment_verified(
        ctx.tenant.id, order_id, payload.verified, actor_uid=ctx.identity.uid
    )
    message = "Pembayaran terverifikasi" if payload.verified else "Verifikasi pembayaran dibatalkan"
    return jsonify(success_response(order, message)), HTTPStatus.OK
