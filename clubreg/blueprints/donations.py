"""Donation and reimbursement endpoints."""

from flask import Blueprint, jsonify, request

from clubreg.auth import admin_required
from clubreg.extensions import limiter
from clubreg.security import checkout_rate_limit
from clubreg.services import payments, records

donations_bp = Blueprint('donations', __name__, url_prefix='/donations')


@donations_bp.post('/checkout')
@limiter.limit(checkout_rate_limit)
def checkout():
    url = payments.start_donation_checkout(request.get_json(silent=True))
    return jsonify({'url': url})


@donations_bp.post('/verify')
def verify():
    return jsonify(payments.verify_donation(request.get_json(silent=True)))


@donations_bp.get('')
@admin_required
def list_donations():
    return jsonify(records.list_donations())


__all__ = ['donations_bp']
