"""Application factory for the club registration and payments backend."""

from __future__ import annotations

import os

from flask import Flask
from sqlalchemy.exc import SQLAlchemyError

from clubreg.blueprints import api_bp
from clubreg.config import Config
from clubreg.errors import register_error_handlers
from clubreg.extensions import db, limiter, migrate
from clubreg.security.config import (
    configure_cors,
    configure_security_headers,
    validate_input_length,
)
from clubreg.services.checkout import init_checkout


def create_app(config_class=Config):
    """Create Flask application."""
    app = Flask(__name__)
    app.config.from_object(config_class)

    # Initialize Flask extensions
    db.init_app(app)
    migrate.init_app(app, db)
    limiter.init_app(app)
    init_checkout(app)

    # Ensure models are registered for migrations
    import clubreg.models  # noqa: F401

    # Create missing tables for environments without migrations
    if os.getenv('CLUBREG_SKIP_BOOTSTRAP', '0') != '1':
        with app.app_context():
            try:
                db.create_all()
            except SQLAlchemyError as e:
                app.logger.error(f"Database bootstrap failed: {e}")

    # Configure security
    configure_security_headers(app)
    configure_cors(app)
    validate_input_length(app)
    register_error_handlers(app)

    app.register_blueprint(api_bp)

    if not app.config.get('ADMIN_PASSWORD'):
        app.logger.warning("ADMIN_PASSWORD is not set; admin endpoints will reject every request")

    # Register CLI commands
    from clubreg.commands import register_commands
    register_commands(app)

    return app


__all__ = ['create_app']
