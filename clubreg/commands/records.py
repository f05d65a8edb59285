"""Record inspection CLI commands."""

from datetime import timedelta

import click
from flask.cli import with_appcontext
from sqlalchemy import select

from clubreg.extensions import db
from clubreg.models import Donation, PaymentStatus, Registration, utcnow
from clubreg.services.records import abandoned_threshold, team_name_for, team_names


@click.group('records')
def records_commands():
    """Registration and donation record commands."""
    pass


@records_commands.command('abandoned')
@click.option('--hours', type=int, default=None, help='Age threshold in hours (default: ABANDONED_AFTER_HOURS)')
@with_appcontext
def list_abandoned(hours):
    """List pending records that never completed checkout."""
    threshold = timedelta(hours=hours) if hours is not None else abandoned_threshold()
    now = utcnow()

    registrations = [
        registration
        for registration in db.session.scalars(
            select(Registration).where(Registration.payment_status == PaymentStatus.UNPAID)
        ).all()
        if registration.is_abandoned(threshold, now)
    ]
    donations = db.session.scalars(
        select(Donation).where(
            Donation.payment_status == PaymentStatus.UNPAID,
            Donation.created_at < now - threshold,
        )
    ).all()

    names = team_names()
    click.echo(f'Registrations abandoned for more than {threshold}: {len(registrations)}')
    for registration in registrations:
        click.echo(
            f"  {registration.id}  {registration.player_name}  {team_name_for(registration, names)}  "
            f"{registration.guardian1_email}  created {registration.created_at:%Y-%m-%d %H:%M}"
        )

    click.echo(f'Donations abandoned: {len(donations)}')
    for donation in donations:
        click.echo(
            f"  {donation.id}  {donation.type.value}  {donation.amount_cents / 100:.2f}  "
            f"{donation.donor_email or '-'}  created {donation.created_at:%Y-%m-%d %H:%M}"
        )


__all__ = ['records_commands']
