"""Team registry: teams and their live paid-registration counts."""

from __future__ import annotations

from typing import Any, Mapping

from flask import current_app
from sqlalchemy import func, select

from clubreg.errors import NotFound, ValidationError
from clubreg.extensions import db
from clubreg.models import PaymentStatus, Registration, Team


def paid_counts() -> dict[str, int]:
    """Map team id -> number of paid, non-waitlist registrations."""
    rows = db.session.execute(
        select(Registration.team_id, func.count(Registration.id))
        .where(
            Registration.team_id.is_not(None),
            Registration.payment_status == PaymentStatus.PAID,
            Registration.is_waitlist.is_(False),
        )
        .group_by(Registration.team_id)
    ).all()
    return {team_id: count for team_id, count in rows}


def paid_count(team_id: str) -> int:
    return db.session.scalar(
        select(func.count(Registration.id)).where(
            Registration.team_id == team_id,
            Registration.payment_status == PaymentStatus.PAID,
            Registration.is_waitlist.is_(False),
        )
    ) or 0


def spots_left(capacity: int, count: int) -> int:
    return max(0, capacity - count)


def serialize_team(team: Team, registration_count: int | None = None) -> dict:
    data = {
        'id': team.id,
        'name': team.name,
        'price_cents': team.price_cents,
        'capacity': team.capacity,
        'description': team.description,
        'open': team.open,
        'created_at': team.created_at.isoformat() if team.created_at else None,
    }
    if registration_count is not None:
        data['registration_count'] = registration_count
        data['spots_left'] = spots_left(team.capacity, registration_count)
    return data


def list_teams() -> list[dict]:
    """All teams, annotated with the paid count and spots left."""
    counts = paid_counts()
    teams = db.session.scalars(select(Team).order_by(Team.name)).all()
    return [serialize_team(team, counts.get(team.id, 0)) for team in teams]


def get_team(team_id: str) -> Team:
    team = db.session.get(Team, team_id)
    if team is None:
        raise NotFound('Team not found')
    return team


def _non_negative_int(value: Any, field: str) -> int:
    if isinstance(value, str) and value.strip().lstrip('-').isdigit():
        value = int(value)
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f'{field} must be a whole number', fields={field: ['Not a valid integer value.']})
    if value < 0:
        raise ValidationError(f'{field} cannot be negative', fields={field: ['Must be at least 0.']})
    return value


def _clean_fields(data: Mapping[str, Any]) -> dict[str, Any]:
    """Validate the mutable fields present in ``data``; others are ignored."""
    cleaned: dict[str, Any] = {}
    if 'name' in data:
        name = str(data['name'] or '').strip()
        if not name:
            raise ValidationError('Team name is required', fields={'name': ['This field is required.']})
        cleaned['name'] = name
    if 'description' in data:
        description = data['description']
        cleaned['description'] = str(description).strip() if description is not None else None
    if 'price_cents' in data:
        cleaned['price_cents'] = _non_negative_int(data['price_cents'], 'price_cents')
    if 'capacity' in data:
        cleaned['capacity'] = _non_negative_int(data['capacity'], 'capacity')
    if 'open' in data:
        if not isinstance(data['open'], bool):
            raise ValidationError('open must be true or false', fields={'open': ['Not a valid boolean.']})
        cleaned['open'] = data['open']
    return cleaned


def create_team(data: Mapping[str, Any] | None) -> Team:
    if not isinstance(data, Mapping):
        raise ValidationError('Expected a JSON object')

    fields = _clean_fields(data)
    missing = [field for field in ('name', 'price_cents', 'capacity') if field not in fields]
    if missing:
        raise ValidationError(
            'Missing or invalid fields',
            fields={field: ['This field is required.'] for field in missing},
        )

    team = Team(**fields)
    db.session.add(team)
    db.session.commit()
    current_app.logger.info(f"Created team {team.id} ({team.name})")
    return team


def update_team(team_id: str, data: Mapping[str, Any] | None) -> Team:
    """Partial update of the mutable team fields."""
    if not isinstance(data, Mapping):
        raise ValidationError('Expected a JSON object')

    team = get_team(team_id)
    fields = _clean_fields(data)
    for name, value in fields.items():
        setattr(team, name, value)
    db.session.commit()

    current_app.logger.info(f"Updated team {team.id}: {', '.join(sorted(fields)) or 'no changes'}")
    return team


__all__ = [
    'create_team',
    'get_team',
    'list_teams',
    'paid_count',
    'paid_counts',
    'serialize_team',
    'spots_left',
    'update_team',
]
