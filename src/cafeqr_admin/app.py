"""
Factory for the staff-facing Flask application: tenant admin panel,
super-admin console and authentication.

Uses JWT for authentication instead of server-side sessions.
"""

from __future__ import annotations

import os
from pathlib import Path

from flask import Flask, send_from_directory
from flask_cors import CORS
from werkzeug.middleware.proxy_fix import ProxyFix

from cafeqr_shared.config import AppConfig, load_config, load_env_secrets, validate_required_env_vars
from cafeqr_shared.db import init_db, init_engine
from cafeqr_shared.error_handlers import register_error_handlers
from cafeqr_shared.jwt_middleware import init_jwt_middleware
from cafeqr_shared.logging_config import configure_logging
from cafeqr_shared.models import Base
from cafeqr_shared.security_middleware import configure_security_headers
from cafeqr_shared.services.image_service import LOCAL_UPLOADS_ROUTE

DEV_ORIGINS = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]

# Leave room for multipart overhead on top of the image limit.
_UPLOAD_OVERHEAD_BYTES = 64 * 1024


def create_app(config: AppConfig | None = None, testing: bool = False) -> Flask:
    """
    Build the Flask application that powers the admin panels.
    """
    if config is None:
        load_env_secrets()
        validate_required_env_vars(skip_in_debug=False)
        config = load_config("cafeqr-admin")

    app = Flask(__name__)

    configure_logging(config.app_name, config.log_level)

    # Initialize database engine first (before any DB queries)
    init_engine(config)
    init_db(Base.metadata)

    app.config["SECRET_KEY"] = config.secret_key
    app.config["APP_NAME"] = config.app_name
    app.config["CAFEQR_CONFIG"] = config
    app.config["TESTING"] = testing
    app.config["DEBUG_MODE"] = config.debug_mode
    app.config["MAX_CONTENT_LENGTH"] = config.max_upload_bytes + _UPLOAD_OVERHEAD_BYTES
    app.config["JSON_SORT_KEYS"] = False

    # Initialize JWT middleware
    init_jwt_middleware(app)

    configure_security_headers(app)
    register_error_handlers(app)

    # ProxyFix: Trust X-Forwarded-* headers from reverse proxy
    num_proxies = int(os.getenv("NUM_PROXIES", "0"))
    if num_proxies > 0:
        app.wsgi_app = ProxyFix(
            app.wsgi_app,
            x_for=num_proxies,
            x_proto=num_proxies,
            x_host=num_proxies,
            x_port=num_proxies,
        )

    # Register blueprints
    from cafeqr_admin.routes.api import api_bp
    from cafeqr_admin.routes.auth import auth_bp
    from cafeqr_admin.routes.system import system_bp

    app.register_blueprint(auth_bp, url_prefix="/api")
    app.register_blueprint(system_bp, url_prefix="/api/admin")
    app.register_blueprint(api_bp, url_prefix="/api")

    upload_root = Path(config.upload_folder).resolve()

    @app.get(f"{LOCAL_UPLOADS_ROUTE}/<path:filename>")
    def serve_upload(filename: str):
        return send_from_directory(upload_root, filename)

    @app.get("/health")
    def health():
        return {"status": "ok", "app": config.app_name}

    # Configure CORS with secure defaults
    allowed_origins = config.cors_allowed_origins
    if config.debug_mode or not allowed_origins:
        allowed_origins = DEV_ORIGINS
    CORS(
        app,
        resources={r"/api/*": {"origins": allowed_origins, "supports_credentials": True}},
        supports_credentials=True,
    )

    return app
