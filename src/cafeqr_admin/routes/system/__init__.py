"""
Super-admin console API, mounted at /api/admin.

Every endpoint runs the super-admin gate; the first identity without an
admin profile to reach it becomes the super-admin.
"""

from flask import Blueprint

system_bp = Blueprint("system_api", __name__)

from cafeqr_admin.routes.system.dashboard import dashboard_bp  # noqa: E402
from cafeqr_admin.routes.system.reports import reports_bp  # noqa: E402
from cafeqr_admin.routes.system.tenants import tenants_bp  # noqa: E402
from cafeqr_admin.routes.system.users import users_bp  # noqa: E402

system_bp.register_blueprint(dashboard_bp)
system_bp.register_blueprint(tenants_bp)
system_bp.register_blueprint(users_bp)
system_bp.register_blueprint(reports_bp)

__all__ = ["system_bp"]
