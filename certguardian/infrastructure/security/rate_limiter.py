"""
Rate limiting configuration for the application.

Provides centralized rate limiting that can be imported across blueprints
without circular import issues.
"""

from flask import request
from flask_limiter import Limiter


def _get_real_ip():
    """Client IP; ProxyFix already rewrote remote_addr from X-Forwarded-For."""
    return request.remote_addr or '127.0.0.1'


# Instance bound to the app in init_limiter
limiter = Limiter(
    key_func=_get_real_ip,
    default_limits=["2000 per day", "300 per hour"],
    strategy="fixed-window"
)


def init_limiter(app):
    """Initialize the limiter with the Flask app (reads RATELIMIT_* keys)."""
    app.config.setdefault("RATELIMIT_STORAGE_URI", "memory://")
    limiter.init_app(app)


def login_limit():
    """Rate limit for login attempts: 20 per minute per IP."""
    return limiter.limit("20 per minute", error_message="Muitas tentativas de login. Aguarde um minuto.")


def upload_limit():
    """Rate limit for certificate uploads: 10 per minute per IP."""
    return limiter.limit("10 per minute", error_message="Limite de uploads excedido. Aguarde um minuto.")


def auth_code_limit():
    """Rate limit for password-reveal confirmation codes."""
    return limiter.limit("10 per minute", error_message="Muitas solicitações de código. Aguarde um minuto.")
