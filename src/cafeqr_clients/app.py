"""
Factory for the customer-facing Flask application.

Customers are anonymous: they reach a table through its QR code and order
with the cafe's daily verification token. No JWT middleware is installed.
"""

from __future__ import annotations

import os

from flask import Flask
from flask_cors import CORS
from werkzeug.middleware.proxy_fix import ProxyFix

from cafeqr_clients.routes.api import api_bp
from cafeqr_shared.config import AppConfig, load_config, load_env_secrets, validate_required_env_vars
from cafeqr_shared.db import init_db, init_engine
from cafeqr_shared.error_handlers import register_error_handlers
from cafeqr_shared.logging_config import configure_logging
from cafeqr_shared.models import Base
from cafeqr_shared.security_middleware import configure_security_headers

DEV_ORIGINS = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]


def create_app(config: AppConfig | None = None, testing: bool = False) -> Flask:
    """
    Build and configure the Flask app for customers.
    """
    if config is None:
        load_env_secrets()
        validate_required_env_vars(skip_in_debug=True)
        config = load_config("cafeqr-clients")

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
    app.config["CHECKOUT_RATE_LIMIT"] = config.checkout_rate_limit
    app.config["JSON_SORT_KEYS"] = False

    configure_security_headers(app)
    register_error_handlers(app)

    num_proxies = int(os.getenv("NUM_PROXIES", "0"))
    if num_proxies > 0:
        app.wsgi_app = ProxyFix(
            app.wsgi_app,
            x_for=num_proxies,
            x_proto=num_proxies,
            x_host=num_proxies,
            x_port=num_proxies,
        )

    app.register_blueprint(api_bp, url_prefix="/api")

    # Configure CORS with secure defaults
    allowed_origins = config.cors_allowed_origins
    if config.debug_mode or not allowed_origins:
        allowed_origins = DEV_ORIGINS
    CORS(app, resources={r"/api/*": {"origins": allowed_origins}})

    @app.get("/health")
    def health():
        return {"status": "ok", "app": config.app_name}

    return app
