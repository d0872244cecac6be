"""
Clients API - Modular Blueprint Structure

Every customer endpoint lives under /api/<slug>/order/<table_id>.
"""

from flask import Blueprint

api_bp = Blueprint("client_api", __name__)

from cafeqr_clients.routes.api.menu import menu_bp  # noqa: E402
from cafeqr_clients.routes.api.orders import orders_bp  # noqa: E402

api_bp.register_blueprint(menu_bp)
api_bp.register_blueprint(orders_bp)

__all__ = ["api_bp"]
