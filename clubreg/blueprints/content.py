"""Editable page content."""

from flask import Blueprint, jsonify, request

from clubreg.auth import admin_required
from clubreg.services.content import get_content, put_content

content_bp = Blueprint('content', __name__, url_prefix='/content')


@content_bp.get('/<key>')
def read_content(key):
    # Unknown keys answer null; the frontend falls back to its defaults
    return jsonify(get_content(key))


@content_bp.post('/<key>')
@admin_required
def write_content(key):
    entry = put_content(key, request.get_json(silent=True))
    return jsonify({'key': entry.key, 'content': entry.content})


__all__ = ['content_bp']
