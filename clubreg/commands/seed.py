"""Data seeding CLI commands."""

import click
from flask.cli import with_appcontext
from sqlalchemy import delete, select

from clubreg.extensions import db
from clubreg.models import PaymentStatus, Registration, Team, utcnow
from clubreg.services.content import put_content

HOME_INFO_KEY = 'home_info'


def _age_group(name, first_year, last_year, gender, capacity, price_cents=16000, fmt='7v7', split=False):
    born = (
        f"between January 1st, {first_year} and December 31st, {last_year}"
    )
    lines = [f"• For {gender} born {born}", f"• {fmt} Format"]
    if split:
        lines.append(
            f"• If enough players register, we will split into separate {first_year} and {last_year} teams."
        )
    return {
        'name': name,
        'price_cents': price_cents,
        'capacity': capacity,
        'description': '\n\n'.join(lines),
    }


def default_teams():
    """The club's standard age groups, boys then girls."""
    teams = []
    for label, gender in (('Boys', 'boys'), ('Girls', 'girls')):
        teams.extend([
            _age_group(f'2018 {label}', 2018, 2018, gender, 12),
            # Low price kept for live end-to-end payment checks
            _age_group(f'2017 {label}', 2017, 2017, gender, 12, price_cents=300),
            _age_group(f'2016 {label}', 2016, 2016, gender, 12),
            _age_group(f'2014 & 2015 {label}', 2014, 2015, gender, 16, fmt='9v9', split=True),
            _age_group(f'2012 & 2013 {label}', 2012, 2013, gender, 22, fmt='11v11', split=True),
        ])
    return teams


DEFAULT_HOME_INFO = {
    'program_header': "About",
    'program_body': (
        "Cavalry FC is a youth soccer program where kids of all ages and experience levels play soccer "
        "with their South Arbor peers on organized teams. Cavalry FC competes in the recreational division "
        "of the WSSL, with an emphasis on development, teamwork, and enjoyment of the game."
    ),
    'seasonal_fee': "Seasonal Fee: $160 per player by January 31st, $200 after.",
    'schedule_header': "Schedule",
    'schedule_body': (
        "Practices begin the week of March 16th (weather permitting) and are held 1–2 times per week on "
        "weekday afternoons or evenings at South Arbor or Wall Park. Times are coordinated by coaches in "
        "partnership with parents.\n\nGames begin weekend of March 28th. Typically played on weekends "
        "(occasional weekday evenings). Teams play 8 games total. Final game date is Saturday, June 7th."
    ),
    'coaches_header': "Coaches & Info",
    'coaches_body': (
        "Coaches: Teams are led by volunteer parents. All coaches complete background checks and safety "
        "training as required by U.S. Soccer. Interested? Indicate it on the form!\n\nRefunds: If a team "
        "does not receive sufficient registrations, we will attempt to combine teams or process full refunds."
    ),
}


@click.group('seed')
def seed_commands():
    """Data seeding commands."""
    pass


@seed_commands.command('teams')
@click.option('--reset', is_flag=True, help='Delete all registrations and teams before seeding')
@with_appcontext
def seed_teams(reset):
    """Seed the default team list and the home page content.

    Existing teams with the same name are left alone unless --reset is given.

    Example:
        flask seed teams
        flask seed teams --reset
    """
    if reset:
        click.echo(click.style('Deleting all registrations and teams...', fg='yellow'))
        db.session.execute(delete(Registration))
        db.session.execute(delete(Team))
        db.session.commit()

    existing = set(db.session.scalars(select(Team.name)).all())
    created = 0
    for data in default_teams():
        if data['name'] in existing:
            click.echo(f"  Skipping {data['name']} (already exists)")
            continue
        db.session.add(Team(**data))
        created += 1
    db.session.commit()
    click.echo(f'Seeded {created} teams')

    put_content(HOME_INFO_KEY, DEFAULT_HOME_INFO)
    click.echo(f'Seeded site content ({HOME_INFO_KEY})')
    click.echo(click.style('✓ Seeding complete', fg='green'))


@seed_commands.command('registrations')
@click.option('--per-team', default=5, help='Paid registrations per team (default: 5)')
@with_appcontext
def seed_registrations(per_team):
    """Insert dummy paid registrations for the first four teams (demo data)."""
    teams = db.session.scalars(select(Team).order_by(Team.created_at, Team.name).limit(4)).all()
    if len(teams) < 4:
        click.echo(click.style('Error: Need at least 4 teams seeded to run this', fg='red'))
        raise SystemExit(1)

    now = utcnow()
    count = 0
    for team in teams:
        prefix = team.name.split(' ')[0]
        for i in range(1, per_team + 1):
            db.session.add(Registration(
                team_id=team.id,
                player_first_name=f'Player{i}',
                player_last_name=f'{prefix}_{i}',
                date_of_birth='2015-01-01',
                guardian1_first_name=f'ParentFirst{i}',
                guardian1_last_name=f'ParentLast{i}',
                guardian1_email=f'parent{i}@example.com',
                guardian1_phone='555-0000',
                street1='123 Seed St',
                city='Seed City',
                state='VA',
                zip='20120',
                amount_cents=team.price_cents,
                payment_status=PaymentStatus.PAID,
                checkout_session_id=f'sess_seed_{team.id}_{i}',
                payment_intent_id=f'pi_seed_{team.id}_{i}',
                paid_at=now,
                waiver_accepted=True,
                photo_release_accepted=True,
                code_of_conduct_accepted=True,
                age_verification_accepted=True,
            ))
            count += 1
    db.session.commit()
    click.echo(click.style(f'✓ Seeded {count} dummy registrations', fg='green'))


__all__ = ['DEFAULT_HOME_INFO', 'default_teams', 'seed_commands']
