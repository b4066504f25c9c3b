"""Subcommand modules for schedctl.

Provides register_commands() which uses deferred imports to keep
``schedctl --help`` fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register the command group and standalone commands on the root CLI group."""
    # --- Groups ---
    from schedctl.commands.schedule import schedule

    cli.add_command(schedule)

    # --- Standalone commands ---
    from schedctl.commands.expand import expand
    from schedctl.commands.profiles import profiles

    cli.add_command(expand)
    cli.add_command(profiles)
