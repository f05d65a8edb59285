"""Shared-secret admin authorization."""

from __future__ import annotations

import hmac
from functools import wraps
from typing import Callable, TypeVar, cast

from flask import current_app, request

from clubreg.errors import Unauthorized

F = TypeVar('F', bound=Callable[..., object])

ADMIN_HEADER = 'X-Admin-Password'


def is_authorized(supplied: str | None, secret: str | None = None) -> bool:
    """Compare ``supplied`` with the configured admin secret in constant time.

    An unset secret authorizes nobody.
    """
    if secret is None:
        secret = current_app.config.get('ADMIN_PASSWORD')
    if not secret or not supplied:
        return False
    return hmac.compare_digest(supplied.encode('utf-8'), secret.encode('utf-8'))


def admin_required(func: F) -> F:
    """Decorator rejecting requests without the admin secret header."""
    @wraps(func)
    def wrapper(*args, **kwargs):
        if not is_authorized(request.headers.get(ADMIN_HEADER)):
            current_app.logger.warning(
                f"Rejected admin request to {request.path} from {request.remote_addr}"
            )
            raise Unauthorized()
        return func(*args, **kwargs)

    return cast(F, wrapper)


__all__ = ['ADMIN_HEADER', 'admin_required', 'is_authorized']
