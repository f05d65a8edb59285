"""Payment lifecycle for registrations and donations.

A submission becomes a pending (``unpaid``) record priced from the team, then
a hosted checkout session whose metadata carries the record id. The record
becomes ``paid`` when the payer returns and calls verify, or when the provider
delivers a signed ``checkout.session.completed`` webhook, whichever comes
first. Both paths funnel into the same conditional update, so repeats are
no-ops. Waitlist registrations skip the session entirely and never become
paid.
"""

from __future__ import annotations

from typing import Any, Mapping

from flask import current_app

from clubreg.errors import UpstreamFailure, ValidationError
from clubreg.extensions import db
from clubreg.forms.registration import CheckoutRegistrationForm, DonationForm, RegistrationForm, load_form
from clubreg.models import Donation, DonationType, PaymentStatus, Registration
from clubreg.services import records
from clubreg.services.checkout import (
    COMPLETED_EVENT,
    EXPIRED_EVENT,
    CheckoutRequest,
    SessionOutcome,
    get_gateway,
)
from clubreg.services.teams import get_team

REGISTRATION_KEY = 'registration_id'
DONATION_KEY = 'donation_id'

# Delayed payment methods settle after the session completes
PAID_EVENTS = (COMPLETED_EVENT, 'checkout.session.async_payment_succeeded')


def _frontend_url(path: str) -> str:
    return f"{current_app.config['FRONTEND_URL']}{path}"


def _session_id_from(payload: Mapping[str, Any] | None) -> str:
    session_id = payload.get('session_id') if isinstance(payload, Mapping) else None
    if not isinstance(session_id, str) or not session_id.strip():
        raise ValidationError('session_id is required', fields={'session_id': ['This field is required.']})
    return session_id.strip()


# ---------------------------------------------------------------------------
# Registrations
# ---------------------------------------------------------------------------

def start_registration_checkout(payload: Mapping[str, Any] | None) -> str:
    """Create a pending registration and return the checkout redirect URL."""
    form = load_form(CheckoutRegistrationForm, payload)
    team = get_team(form.team_id.data.strip())
    if not team.open:
        raise ValidationError('Registration for this team is closed')

    registration = records.create_registration(team, form.registration_fields())
    current_app.logger.info(
        f"Registration {registration.id} created for team {team.id} "
        f"at {registration.amount_cents} cents"
    )

    checkout = CheckoutRequest(
        amount_cents=registration.amount_cents,
        name=f"{team.name} Registration",
        description=f"Player: {registration.player_name}",
        metadata={REGISTRATION_KEY: registration.id},
        success_url=_frontend_url('/success?session_id={CHECKOUT_SESSION_ID}'),
        cancel_url=_frontend_url('/?canceled=true'),
        currency=registration.currency,
        customer_email=registration.guardian1_email,
    )
    try:
        session = get_gateway().create_session(checkout)
    except UpstreamFailure:
        current_app.logger.warning(f"Registration {registration.id} left pending: checkout session not created")
        raise

    records.attach_session(registration, session.id)
    current_app.logger.info(f"Checkout session {session.id} issued for registration {registration.id}")
    return session.url


def join_waitlist(payload: Mapping[str, Any] | None) -> Registration:
    """Record interest without payment; no checkout session is ever issued."""
    form = load_form(RegistrationForm, payload)
    team = get_team(form.team_id.data.strip())

    registration = records.create_registration(team, form.registration_fields(), waitlist=True)
    current_app.logger.info(f"Registration {registration.id} waitlisted for team {team.id}")
    return registration


def confirm_registration(registration_id: str, outcome: SessionOutcome) -> Registration | None:
    """Apply a paid session to its registration; safe to call repeatedly."""
    applied = records.mark_registration_paid(registration_id, outcome.id, outcome.payment_intent_id)
    registration = db.session.get(Registration, registration_id)

    if applied:
        current_app.logger.info(f"Registration {registration_id} paid via session {outcome.id}")
    elif registration is None:
        current_app.logger.warning(f"Session {outcome.id} references unknown registration {registration_id}")
    elif not registration.is_paid:
        current_app.logger.warning(
            f"Session {outcome.id} not applied to registration {registration_id} "
            f"(waitlist={registration.is_waitlist}, session={registration.checkout_session_id})"
        )
    return registration


def verify_registration(payload: Mapping[str, Any] | None) -> dict:
    """Check a returning payer's session and mark the registration paid."""
    session_id = _session_id_from(payload)
    outcome = get_gateway().retrieve_session(session_id)

    registration_id = outcome.metadata.get(REGISTRATION_KEY)
    if outcome.is_paid and registration_id:
        registration = confirm_registration(registration_id, outcome)
        if registration is not None and registration.is_paid:
            return {
                'status': 'paid',
                'registration': records.serialize_registration(
                    registration, records.team_name_for(registration)
                ),
            }

    return {'status': outcome.payment_status}


# ---------------------------------------------------------------------------
# Donations and reimbursements
# ---------------------------------------------------------------------------

def start_donation_checkout(payload: Mapping[str, Any] | None) -> str:
    form = load_form(DonationForm, payload)

    amount_cents = form.amount_cents.data
    minimum = current_app.config.get('MIN_DONATION_CENTS', 100)
    if amount_cents is None or amount_cents < minimum:
        raise ValidationError(
            f"Minimum amount is ${minimum / 100:.2f}",
            fields={'amount_cents': [f'Must be at least {minimum}.']},
        )

    requested_type = (form.type.data or '').strip().lower()
    donation_type = DonationType.REIMBURSEMENT if requested_type == 'reimbursement' else DonationType.DONATION
    comment = (form.comment.data or '').strip() or None

    donation = records.create_donation(
        donation_type,
        amount_cents,
        donor_name=(form.donor_name.data or '').strip(),
        donor_email=(form.donor_email.data or '').strip().lower(),
        comment=comment,
    )
    current_app.logger.info(f"{donation_type.value.title()} {donation.id} created for {amount_cents} cents")

    club = current_app.config.get('CLUB_NAME', 'Cavalry FC')
    if donation.is_reimbursement:
        name = f"{club} Booster Club - Reimbursement"
        description = comment or 'Cash reimbursement payment'
        return_path = '/reimburse'
    else:
        name = f"Donation to {club} Booster Club"
        description = f"Message: {comment}" if comment else 'Thank you for your support!'
        return_path = '/donate'

    checkout = CheckoutRequest(
        amount_cents=amount_cents,
        name=name,
        description=description,
        metadata={DONATION_KEY: donation.id},
        success_url=_frontend_url(f'{return_path}?session_id={{CHECKOUT_SESSION_ID}}'),
        cancel_url=_frontend_url(f'{return_path}?canceled=true'),
        currency=donation.currency,
        customer_email=donation.donor_email,
    )
    try:
        session = get_gateway().create_session(checkout)
    except UpstreamFailure:
        current_app.logger.warning(f"Donation {donation.id} left pending: checkout session not created")
        raise

    records.attach_session(donation, session.id)
    current_app.logger.info(f"Checkout session {session.id} issued for donation {donation.id}")
    return session.url


def confirm_donation(donation_id: str, outcome: SessionOutcome) -> Donation | None:
    applied = records.mark_donation_paid(donation_id, outcome.id, outcome.payment_intent_id)
    donation = db.session.get(Donation, donation_id)

    if applied:
        current_app.logger.info(f"Donation {donation_id} paid via session {outcome.id}")
    elif donation is None:
        current_app.logger.warning(f"Session {outcome.id} references unknown donation {donation_id}")
    return donation


def verify_donation(payload: Mapping[str, Any] | None) -> dict:
    session_id = _session_id_from(payload)
    outcome = get_gateway().retrieve_session(session_id)

    donation_id = outcome.metadata.get(DONATION_KEY)
    if outcome.is_paid and donation_id:
        donation = confirm_donation(donation_id, outcome)
        if donation is not None and donation.payment_status == PaymentStatus.PAID:
            return {'status': 'paid', 'donation': records.serialize_donation(donation)}

    return {'status': outcome.payment_status}


# ---------------------------------------------------------------------------
# Webhook
# ---------------------------------------------------------------------------

def handle_webhook(payload: bytes, signature: str | None) -> str:
    """Verify and apply a provider notification; returns the event type.

    Raises SignatureInvalid before touching any record when the signature
    does not check out.
    """
    event = get_gateway().verify_webhook(payload, signature)
    outcome = event.session

    if event.type in PAID_EVENTS and outcome is not None:
        if not outcome.is_paid:
            current_app.logger.info(f"Session {outcome.id} completed with status {outcome.payment_status}")
        elif REGISTRATION_KEY in outcome.metadata:
            confirm_registration(outcome.metadata[REGISTRATION_KEY], outcome)
        elif DONATION_KEY in outcome.metadata:
            confirm_donation(outcome.metadata[DONATION_KEY], outcome)
        else:
            current_app.logger.warning(f"Session {outcome.id} carries no record id")
    elif event.type == EXPIRED_EVENT and outcome is not None:
        # Abandonment is derived from age; nothing to write
        current_app.logger.info(f"Checkout session {outcome.id} expired")
    else:
        current_app.logger.info(f"Unhandled event type {event.type}")

    return event.type


__all__ = [
    'DONATION_KEY',
    'REGISTRATION_KEY',
    'confirm_donation',
    'confirm_registration',
    'handle_webhook',
    'join_waitlist',
    'start_donation_checkout',
    'start_registration_checkout',
    'verify_donation',
    'verify_registration',
]
