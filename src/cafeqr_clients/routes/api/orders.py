"""
Checkout and order status for customers.

Endpoints:
- POST /<slug>/order/<table_id>/checkout - place an order
- GET  /<slug>/order/<table_id>/status/<order_id> - order status page
"""

from __future__ import annotations

from http import HTTPStatus

from flask import Blueprint, jsonify, request

from cafeqr_shared.logging_config import get_logger
from cafeqr_shared.schemas import CheckoutRequest
from cafeqr_shared.security_middleware import rate_limit
from cafeqr_shared.serializers import success_response
from cafeqr_shared.services.checkout_service import get_order_status, place_order
from cafeqr_shared.validation import parse_request

orders_bp = Blueprint("client_orders_api", __name__)
logger = get_logger(__name__)


@orders_bp.post("/<slug>/order/<table_id>/checkout")
@rate_limit(max_requests=10, window_seconds=60, key_prefix="checkout", config_key="CHECKOUT_RATE_LIMIT")
def post_checkout(slug: str, table_id: str):
    """
    Place an order.

    Body:
        {
            "items": [{"menu_id": str, "quantity": int}],
            "payment_method": "qris" | "cash",
            "verification_token": str
        }

    Prices come from the menu, never from the body. A wrong token returns
    422 with fields.verification_token and creates nothing.
    """
    checkout = parse_request(CheckoutRequest, request.get_json(silent=True))
    order = place_order(
        slug,
        table_id,
        [item.model_dump() for item in checkout.items],
        checkout.payment_method,
        checkout.verification_token,
    )
    return jsonify(success_response(order, "Pesanan berhasil dibuat")), HTTPStatus.CREATED


@orders_bp.get("/<slug>/order/<table_id>/status/<order_id>")
def get_status(slug: str, table_id: str, order_id: str):
    return jsonify(success_response(get_order_status(slug, table_id, order_id))), HTTPStatus.OK
