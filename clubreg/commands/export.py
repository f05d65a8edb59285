"""CSV export CLI commands."""

from pathlib import Path

import click
from flask.cli import with_appcontext

from clubreg.services.export import export_filename, export_registrations_csv


@click.group('export')
def export_commands():
    """CSV export commands."""
    pass


@export_commands.command('registrations')
@click.option('--output-dir', default='exports', show_default=True, help='Directory to write the CSV into')
@with_appcontext
def export_registrations(output_dir):
    """Write every registration to a dated CSV file.

    Example:
        flask export registrations --output-dir /tmp/exports
    """
    export_dir = Path(output_dir)
    export_dir.mkdir(parents=True, exist_ok=True)

    filepath = export_dir / export_filename()
    with open(filepath, 'w', newline='', encoding='utf-8') as csvfile:
        csvfile.write(export_registrations_csv())

    click.echo(click.style(f'✓ Exported registrations to {filepath}', fg='green'))


__all__ = ['export_commands']
