"""CSV export of registrants."""
from __future__ import annotations

import csv
import io
from datetime import datetime
from typing import Iterable

from clubreg.models import Registration
from clubreg.services.records import query_registrations, team_name_for, team_names

REGISTRATION_COLUMNS = [
    'Player Name',
    'Team',
    'Status',
    'DOB',
    'Guardian 1 First',
    'Guardian 1 Last',
    'Guardian 1 Email',
    'Guardian 1 Phone',
    'Guardian 2 First',
    'Guardian 2 Last',
    'Guardian 2 Email',
    'Guardian 2 Phone',
    'Address',
    'Amount',
    'Date',
    'Jersey Size',
    'Short Size',
    'Medical Notes',
    'Age Verified',
]


def _address(registration: Registration) -> str:
    street = ' '.join(part for part in (registration.street1, registration.street2) if part)
    return f"{street}, {registration.city}, {registration.state} {registration.zip}"


def registration_row(registration: Registration, team_name: str) -> dict[str, str]:
    return {
        'Player Name': f"{registration.player_last_name}, {registration.player_first_name}",
        'Team': team_name,
        'Status': 'WAITLIST' if registration.is_waitlist else registration.payment_status.value,
        'DOB': registration.date_of_birth,
        'Guardian 1 First': registration.guardian1_first_name,
        'Guardian 1 Last': registration.guardian1_last_name,
        'Guardian 1 Email': registration.guardian1_email,
        'Guardian 1 Phone': registration.guardian1_phone,
        'Guardian 2 First': registration.guardian2_first_name or '',
        'Guardian 2 Last': registration.guardian2_last_name or '',
        'Guardian 2 Email': registration.guardian2_email or '',
        'Guardian 2 Phone': registration.guardian2_phone or '',
        'Address': _address(registration),
        'Amount': f"{registration.amount_cents / 100:.2f}",
        'Date': registration.created_at.strftime('%Y-%m-%d') if registration.created_at else '',
        'Jersey Size': registration.jersey_size or '',
        'Short Size': registration.short_size or '',
        'Medical Notes': registration.medical_notes or '',
        'Age Verified': 'Yes' if registration.age_verification_accepted else 'No',
    }


def export_registrations_csv(registrations: Iterable[Registration] | None = None) -> str:
    """Render registrations (all of them, newest first, by default) as CSV."""
    if registrations is None:
        registrations = query_registrations()
    names = team_names()

    output = io.StringIO()
    writer = csv.DictWriter(output, fieldnames=REGISTRATION_COLUMNS)
    writer.writeheader()
    for registration in registrations:
        writer.writerow(registration_row(registration, team_name_for(registration, names)))
    return output.getvalue()


def export_filename(now: datetime | None = None) -> str:
    return f"registrations-{(now or datetime.now()).strftime('%Y-%m-%d')}.csv"


__all__ = ['REGISTRATION_COLUMNS', 'export_filename', 'export_registrations_csv', 'registration_row']
