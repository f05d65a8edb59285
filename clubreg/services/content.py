"""Editable page text: one free-form JSON document per key."""

from __future__ import annotations

from typing import Any

from flask import current_app

from clubreg.errors import ValidationError
from clubreg.extensions import db
from clubreg.models import SiteContent, utcnow

MAX_KEY_LENGTH = 100


def _normalise_key(key: str | None) -> str:
    return (key or '').strip()


def get_content(key: str) -> Any | None:
    """Return the stored document for ``key`` or None when unset."""
    key = _normalise_key(key)
    if not key:
        return None
    entry = db.session.get(SiteContent, key)
    return entry.content if entry is not None else None


def put_content(key: str, content: Any) -> SiteContent:
    """Replace the document stored under ``key`` wholesale."""
    key = _normalise_key(key)
    if not key or len(key) > MAX_KEY_LENGTH:
        raise ValidationError('Invalid content key')
    if content is None:
        raise ValidationError('Expected a JSON body')

    entry = db.session.get(SiteContent, key)
    if entry is None:
        entry = SiteContent(key=key, content=content)
        db.session.add(entry)
    else:
        entry.content = content
        entry.updated_at = utcnow()
    db.session.commit()

    current_app.logger.info(f"Site content '{key}' updated")
    return entry


__all__ = ['get_content', 'put_content']
