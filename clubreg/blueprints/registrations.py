"""Player registration endpoints: public intake plus the admin views."""

from flask import Blueprint, current_app, jsonify, make_response, request

from clubreg.auth import admin_required, is_authorized
from clubreg.errors import Unauthorized
from clubreg.extensions import limiter
from clubreg.security import auth_rate_limit, checkout_rate_limit
from clubreg.services import payments, records
from clubreg.services.export import export_filename, export_registrations_csv

registrations_bp = Blueprint('registrations', __name__, url_prefix='/registrations')


@registrations_bp.post('/checkout')
@limiter.limit(checkout_rate_limit)
def checkout():
    """Create a pending registration and hand back the hosted checkout URL."""
    url = payments.start_registration_checkout(request.get_json(silent=True))
    return jsonify({'url': url})


@registrations_bp.post('/waitlist')
@limiter.limit(checkout_rate_limit)
def waitlist():
    registration = payments.join_waitlist(request.get_json(silent=True))
    return jsonify({
        'status': 'waitlisted',
        'registration': records.serialize_registration(registration, records.team_name_for(registration)),
    }), 201


@registrations_bp.post('/verify')
def verify():
    return jsonify(payments.verify_registration(request.get_json(silent=True)))


@registrations_bp.post('/auth')
@limiter.limit(auth_rate_limit)
def admin_login():
    """Check the admin password so the dashboard can unlock itself."""
    data = request.get_json(silent=True) or {}
    password = data.get('password') if isinstance(data, dict) else None
    if not isinstance(password, str) or not is_authorized(password):
        current_app.logger.warning(f"Failed admin login from {request.remote_addr}")
        raise Unauthorized('Invalid password')
    return jsonify({'status': 'ok'})


@registrations_bp.get('')
@admin_required
def list_registrations():
    return jsonify(records.list_registrations(request.args.get('filter') or None))


@registrations_bp.get('/emails')
@admin_required
def list_emails():
    filter_name = request.args.get('filter') or 'all'
    emails = records.guardian_emails(filter_name)
    return jsonify({'filter': filter_name, 'count': len(emails), 'emails': emails})


@registrations_bp.get('/export')
@admin_required
def export_registrations():
    response = make_response(export_registrations_csv())
    response.headers['Content-Type'] = 'text/csv; charset=utf-8'
    response.headers['Content-Disposition'] = f'attachment; filename={export_filename()}'
    return response


@registrations_bp.delete('/<registration_id>')
@admin_required
def delete_registration(registration_id):
    records.delete_registration(registration_id, request.args.get('confirm'))
    return jsonify({'status': 'deleted', 'id': registration_id})


__all__ = ['registrations_bp']
