"""
Security middleware: rate limiting and response security headers.
"""

import os
import time
from collections import defaultdict
from collections.abc import Callable
from functools import wraps
from http import HTTPStatus

from flask import current_app, jsonify, request

from cafeqr_shared.serializers import error_response


def get_client_ip() -> str:
    """
    Get real client IP considering proxies (Docker, nginx, etc.).
    """
    forwarded_for = request.headers.get("X-Forwarded-For", "")
    if forwarded_for:
        # X-Forwarded-For: client, proxy1, proxy2
        return forwarded_for.split(",")[0].strip()

    real_ip = request.headers.get("X-Real-IP", "")
    if real_ip:
        return real_ip.strip()

    return request.remote_addr or "unknown"


class RateLimiter:
    """Simple in-memory rate limiter with IP awareness."""

    def __init__(self):
        self.requests: dict[str, list] = defaultdict(list)

    def is_allowed(self, key: str, max_requests: int, window_seconds: int) -> tuple[bool, int]:
        """
        Check if request is allowed based on rate limit.

        Returns:
            Tuple of (is_allowed, remaining_requests)
        """
        now = time.time()
        cutoff = now - window_seconds

        self.requests[key] = [t for t in self.requests[key] if t > cutoff]

        remaining = max_requests - len(self.requests[key])

        if len(self.requests[key]) >= max_requests:
            return False, 0

        self.requests[key].append(now)
        return True, remaining - 1

    def reset(self) -> None:
        self.requests.clear()


_rate_limiter = RateLimiter()


def get_rate_limiter() -> RateLimiter:
    return _rate_limiter


def _rate_limit_disabled() -> bool:
    if current_app.config.get("TESTING") and not current_app.config.get("RATE_LIMIT_IN_TESTS"):
        return True
    return os.getenv("TESTING", "").lower() in {"1", "true", "yes", "on"}


def rate_limit(
    max_requests: int = 5,
    window_seconds: int = 60,
    key_prefix: str = "",
    config_key: str | None = None,
):
    """
    Decorator to rate limit endpoints per client address.

    Args:
        max_requests: Maximum requests allowed per window
        window_seconds: Time window in seconds
        key_prefix: Optional prefix for the rate limit key
        config_key: app.config key overriding max_requests when set
    """

    def decorator(f: Callable) -> Callable:
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if _rate_limit_disabled():
                return f(*args, **kwargs)

            limit = max_requests
            if config_key and current_app.config.get(config_key):
                limit = int(current_app.config[config_key])

            client_ip = get_client_ip()
            key = f"{client_ip}:{key_prefix}{request.path}"

            is_allowed, remaining = _rate_limiter.is_allowed(key, limit, window_seconds)

            if not is_allowed:
                response = jsonify(
                    error_response(
                        "Terlalu banyak permintaan. Coba lagi nanti.",
                        {"code": "RATE_LIMITED", "retry_after": window_seconds},
                    )
                )
                response.status_code = HTTPStatus.TOO_MANY_REQUESTS
                response.headers["Retry-After"] = str(window_seconds)
                response.headers["X-RateLimit-Limit"] = str(limit)
                response.headers["X-RateLimit-Remaining"] = "0"
                return response

            response = current_app.make_response(f(*args, **kwargs))
            response.headers["X-RateLimit-Limit"] = str(limit)
            response.headers["X-RateLimit-Remaining"] = str(remaining)
            return response

        return decorated_function

    return decorator


def configure_security_headers(app):
    """
    Configure security headers for a JSON API app.
    """

    @app.after_request
    def add_security_headers(response):
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        if not app.config.get("DEBUG_MODE", False):
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

        # Admin data and order status change constantly.
        if "/api/" in request.path:
            response.headers["Cache-Control"] = "no-store"

        response.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none';"
        return response
