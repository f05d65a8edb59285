"""CLI commands for clubreg."""

from .export import export_commands
from .records import records_commands
from .seed import seed_commands


def register_commands(app):
    """Register all CLI command groups with the Flask app."""
    app.cli.add_command(seed_commands)
    app.cli.add_command(export_commands)
    app.cli.add_command(records_commands)
