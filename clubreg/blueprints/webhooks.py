"""Inbound payment provider notifications."""

from flask import Blueprint, jsonify, request

from clubreg.extensions import limiter
from clubreg.services.payments import handle_webhook

webhooks_bp = Blueprint('webhooks', __name__, url_prefix='/webhooks')


@webhooks_bp.post('/stripe')
@limiter.exempt
def stripe_webhook():
    # The signature covers the raw body, so it must not be re-serialised
    handle_webhook(request.get_data(), request.headers.get('Stripe-Signature'))
    return jsonify({'received': True})


__all__ = ['webhooks_bp']
