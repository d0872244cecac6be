"""
Tenant admin API - every endpoint lives under /api/<slug>/admin and runs the
tenant admin gate.
"""

from flask import Blueprint

api_bp = Blueprint("admin_api", __name__)

from cafeqr_admin.routes.api.categories import categories_bp  # noqa: E402
from cafeqr_admin.routes.api.dashboard import dashboard_bp  # noqa: E402
from cafeqr_admin.routes.api.events import events_bp  # noqa: E402
from cafeqr_admin.routes.api.images import images_bp  # noqa: E402
from cafeqr_admin.routes.api.menus import menus_bp  # noqa: E402
from cafeqr_admin.routes.api.orders import orders_bp  # noqa: E402
from cafeqr_admin.routes.api.reports import reports_bp  # noqa: E402
from cafeqr_admin.routes.api.settings import settings_bp  # noqa: E402
from cafeqr_admin.routes.api.tables import tables_bp  # noqa: E402

api_bp.register_blueprint(dashboard_bp)
api_bp.register_blueprint(menus_bp)
api_bp.register_blueprint(categories_bp)
api_bp.register_blueprint(tables_bp)
api_bp.register_blueprint(orders_bp)
api_bp.register_blueprint(reports_bp)
api_bp.register_blueprint(settings_bp)
api_bp.register_blueprint(images_bp)
api_bp.register_blueprint(events_bp)

__all__ = ["api_bp"]
