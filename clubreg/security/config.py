"""Security configuration and middleware."""

from flask import abort, request

from clubreg.auth import ADMIN_HEADER

MAX_PAYLOAD_BYTES = 1024 * 1024


def configure_security_headers(app):
    """Configure security headers."""

    @app.after_request
    def add_security_headers(response):
        """Add security headers to all responses."""
        # Prevent MIME type sniffing
        response.headers['X-Content-Type-Options'] = 'nosniff'

        # Prevent clickjacking
        response.headers['X-Frame-Options'] = 'DENY'

        response.headers['Referrer-Policy'] = 'no-referrer-when-downgrade'

        # JSON API: nothing is rendered, nothing may be framed
        response.headers['Content-Security-Policy'] = "default-src 'none'; frame-ancestors 'none'"

        # HSTS for HTTPS (only add if using HTTPS)
        if request.is_secure:
            response.headers['Strict-Transport-Security'] = 'max-age=31536000; includeSubDomains'

        return response

    return app


def configure_cors(app):
    """Allow the configured frontend origins to call the API."""
    allowed = set(app.config.get('CORS_ORIGINS') or [])

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get('Origin')
        if origin and ('*' in allowed or origin in allowed):
            response.headers['Access-Control-Allow-Origin'] = origin
            response.headers['Access-Control-Allow-Methods'] = 'GET, POST, PATCH, DELETE, OPTIONS'
            response.headers['Access-Control-Allow-Headers'] = f'Content-Type, {ADMIN_HEADER}'
            response.headers['Vary'] = 'Origin'
        return response

    return app


def validate_input_length(app):
    """Middleware to validate request payload size."""
    @app.before_request
    def limit_request_size():
        if request.content_length and request.content_length > MAX_PAYLOAD_BYTES:
            abort(413)  # Payload Too Large

    return app


# Rate limiting decorators
def auth_rate_limit():
    """Rate limit for admin login."""
    return "5 per minute"


def checkout_rate_limit():
    """Rate limit for endpoints that open a checkout session."""
    return "20 per minute"


__all__ = [
    'configure_security_headers',
    'configure_cors',
    'validate_input_length',
    'auth_rate_limit',
    'checkout_rate_limit',
]
