"""Security middleware helpers."""

from .config import (
    auth_rate_limit,
    checkout_rate_limit,
    configure_cors,
    configure_security_headers,
    validate_input_length,
)

__all__ = [
    'auth_rate_limit',
    'checkout_rate_limit',
    'configure_cors',
    'configure_security_headers',
    'validate_input_length',
]
