"""Registration and donation records and their payment fields."""

from __future__ import annotations

from datetime import timedelta
from typing import Any, Iterable

from flask import current_app
from sqlalchemy import or_, select, update

from clubreg.errors import NotFound, ValidationError
from clubreg.extensions import db
from clubreg.models import Donation, DonationType, PaymentStatus, Registration, Team, utcnow

REGISTRATION_FILTERS = ('paid', 'unpaid', 'waitlist', 'abandoned')
EMAIL_FILTERS = ('all', 'paid', 'unpaid')


def _iso(value) -> str | None:
    return value.isoformat() if value else None


def _enum_value(value):
    return value.value if hasattr(value, 'value') else value


def serialize_registration(registration: Registration, team_name: str | None = None) -> dict:
    data: dict[str, Any] = {
        column.key: getattr(registration, column.key)
        for column in Registration.__table__.columns
    }
    data['experience_level'] = _enum_value(registration.experience_level)
    data['payment_status'] = _enum_value(registration.payment_status)
    data['paid_at'] = _iso(registration.paid_at)
    data['created_at'] = _iso(registration.created_at)
    data['updated_at'] = _iso(registration.updated_at)
    data['guardian1_name'] = registration.guardian1_name
    if team_name is not None:
        data['team_name'] = team_name
    return data


def serialize_donation(donation: Donation) -> dict:
    return {
        'id': donation.id,
        'type': _enum_value(donation.type),
        'donor_name': donation.donor_name,
        'donor_email': donation.donor_email,
        'comment': donation.comment,
        'amount_cents': donation.amount_cents,
        'currency': donation.currency,
        'payment_status': _enum_value(donation.payment_status),
        'checkout_session_id': donation.checkout_session_id,
        'payment_intent_id': donation.payment_intent_id,
        'paid_at': _iso(donation.paid_at),
        'created_at': _iso(donation.created_at),
    }


def team_names() -> dict[str, str]:
    return dict(db.session.execute(select(Team.id, Team.name)).all())


def team_name_for(registration: Registration, names: dict[str, str] | None = None) -> str:
    if registration.team_id is None:
        return 'Unknown'
    if names is not None:
        return names.get(registration.team_id, 'Unknown')
    team = db.session.get(Team, registration.team_id)
    return team.name if team else 'Unknown'


# ---------------------------------------------------------------------------
# Inserts
# ---------------------------------------------------------------------------

def create_registration(team: Team, fields: dict[str, Any], waitlist: bool = False) -> Registration:
    """Persist a pending registration priced from ``team`` as it is right now."""
    registration = Registration(
        **fields,
        team_id=team.id,
        amount_cents=team.price_cents,
        currency=current_app.config.get('CURRENCY', 'usd'),
        payment_status=PaymentStatus.UNPAID,
        is_waitlist=waitlist,
    )
    db.session.add(registration)
    db.session.commit()
    return registration


def create_donation(
    donation_type: DonationType,
    amount_cents: int,
    donor_name: str | None = None,
    donor_email: str | None = None,
    comment: str | None = None,
) -> Donation:
    donation = Donation(
        type=donation_type,
        amount_cents=amount_cents,
        donor_name=donor_name or None,
        donor_email=donor_email or None,
        comment=comment or None,
        currency=current_app.config.get('CURRENCY', 'usd'),
        payment_status=PaymentStatus.UNPAID,
    )
    db.session.add(donation)
    db.session.commit()
    return donation


def attach_session(record: Registration | Donation, session_id: str) -> None:
    record.checkout_session_id = session_id
    db.session.commit()


# ---------------------------------------------------------------------------
# Payment transitions
# ---------------------------------------------------------------------------

def _mark_paid(model, record_id: str, session_id: str, payment_intent_id: str | None, *criteria) -> bool:
    """Conditionally move ``unpaid -> paid``.

    Returns True only for the call that performed the transition; repeated
    deliveries match no row and leave ``paid_at`` untouched.
    """
    result = db.session.execute(
        update(model)
        .where(
            model.id == record_id,
            model.payment_status == PaymentStatus.UNPAID,
            or_(model.checkout_session_id.is_(None), model.checkout_session_id == session_id),
            *criteria,
        )
        .values(
            payment_status=PaymentStatus.PAID,
            payment_intent_id=payment_intent_id,
            checkout_session_id=session_id,
            paid_at=utcnow(),
        )
        .execution_options(synchronize_session=False)
    )
    db.session.commit()
    return result.rowcount == 1


def mark_registration_paid(registration_id: str, session_id: str, payment_intent_id: str | None) -> bool:
    # Waitlist records are charge-exempt and never become paid
    return _mark_paid(
        Registration,
        registration_id,
        session_id,
        payment_intent_id,
        Registration.is_waitlist.is_(False),
    )


def mark_donation_paid(donation_id: str, session_id: str, payment_intent_id: str | None) -> bool:
    return _mark_paid(Donation, donation_id, session_id, payment_intent_id)


# ---------------------------------------------------------------------------
# Listing
# ---------------------------------------------------------------------------

def abandoned_threshold() -> timedelta:
    return timedelta(hours=current_app.config.get('ABANDONED_AFTER_HOURS', 24))


def query_registrations(filter_name: str | None = None) -> list[Registration]:
    """Registrations newest-first, optionally narrowed by ``filter_name``."""
    if filter_name and filter_name not in REGISTRATION_FILTERS:
        raise ValidationError(
            f"Unknown filter '{filter_name}'",
            fields={'filter': [f"Use one of: {', '.join(REGISTRATION_FILTERS)}"]},
        )

    query = select(Registration).order_by(Registration.created_at.desc())
    if filter_name == 'paid':
        query = query.where(
            Registration.payment_status == PaymentStatus.PAID,
            Registration.is_waitlist.is_(False),
        )
    elif filter_name == 'unpaid':
        query = query.where(
            Registration.payment_status != PaymentStatus.PAID,
            Registration.is_waitlist.is_(False),
        )
    elif filter_name == 'waitlist':
        query = query.where(Registration.is_waitlist.is_(True))
    elif filter_name == 'abandoned':
        query = query.where(
            Registration.payment_status == PaymentStatus.UNPAID,
            Registration.is_waitlist.is_(False),
            Registration.created_at < utcnow() - abandoned_threshold(),
        )
    return list(db.session.scalars(query).all())


def list_registrations(filter_name: str | None = None) -> list[dict]:
    """Admin listing with the team name joined in."""
    names = team_names()
    return [
        serialize_registration(registration, team_name_for(registration, names))
        for registration in query_registrations(filter_name)
    ]


def guardian_emails(filter_name: str = 'all') -> list[str]:
    """Unique guardian-1 emails of non-waitlist registrations, newest first."""
    if filter_name not in EMAIL_FILTERS:
        raise ValidationError(
            f"Unknown filter '{filter_name}'",
            fields={'filter': [f"Use one of: {', '.join(EMAIL_FILTERS)}"]},
        )

    registrations: Iterable[Registration] = query_registrations(None if filter_name == 'all' else filter_name)
    emails: list[str] = []
    seen: set[str] = set()
    for registration in registrations:
        if registration.is_waitlist:
            continue
        email = registration.guardian1_email
        if email and email not in seen:
            seen.add(email)
            emails.append(email)
    return emails


def list_donations() -> list[dict]:
    donations = db.session.scalars(select(Donation).order_by(Donation.created_at.desc())).all()
    return [serialize_donation(donation) for donation in donations]


# ---------------------------------------------------------------------------
# Deletion
# ---------------------------------------------------------------------------

def delete_registration(registration_id: str, confirmation: str | None) -> Registration:
    """Delete a registration once the caller has typed the player's last name."""
    registration = db.session.get(Registration, registration_id)
    if registration is None:
        raise NotFound('Registration not found')

    expected = registration.player_last_name.strip().lower()
    if (confirmation or '').strip().lower() != expected:
        raise ValidationError('Confirmation does not match the player last name')

    summary = (
        f"{registration.player_name}, status {registration.payment_status.value}, "
        f"waitlist={registration.is_waitlist}"
    )
    db.session.delete(registration)
    db.session.commit()
    current_app.logger.info(f"Deleted registration {registration_id} ({summary})")
    return registration


__all__ = [
    'EMAIL_FILTERS',
    'REGISTRATION_FILTERS',
    'abandoned_threshold',
    'attach_session',
    'create_donation',
    'create_registration',
    'delete_registration',
    'guardian_emails',
    'list_donations',
    'list_registrations',
    'mark_donation_paid',
    'mark_registration_paid',
    'query_registrations',
    'serialize_donation',
    'serialize_registration',
    'team_name_for',
    'team_names',
]
