"""HTTP blueprints, all nested under the ``/api`` blueprint."""

from flask import Blueprint

from .content import content_bp
from .donations import donations_bp
from .health import health_bp
from .registrations import registrations_bp
from .teams import teams_bp
from .webhooks import webhooks_bp

api_bp = Blueprint('api', __name__, url_prefix='/api')
api_bp.register_blueprint(health_bp)
api_bp.register_blueprint(teams_bp)
api_bp.register_blueprint(registrations_bp)
api_bp.register_blueprint(donations_bp)
api_bp.register_blueprint(content_bp)
api_bp.register_blueprint(webhooks_bp)

__all__ = [
    'api_bp',
    'content_bp',
    'donations_bp',
    'health_bp',
    'registrations_bp',
    'teams_bp',
    'webhooks_bp',
]
