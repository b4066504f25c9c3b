"""Command: list configured profiles."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from schedctl.commands._base import SchedCommand

if TYPE_CHECKING:
    from schedctl.commands._context import AppContext


@click.command(
    cls=SchedCommand,
    examples="""\
  schedctl profiles
  schedctl -c ~/backup/profiles.toml profiles
  schedctl -q profiles""",
)
@click.pass_obj
def profiles(app: AppContext) -> None:
    """List the profiles of the profiles file."""
    from schedctl.services.profiles import ProfileService

    app.emit(ProfileService(app.settings).list_profiles())
