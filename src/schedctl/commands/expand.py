"""Command: expand calendar expressions without touching any scheduler."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from schedctl.commands._base import SchedCommand
from schedctl.services.schedule import EXPAND_TARGETS

if TYPE_CHECKING:
    from schedctl.commands._context import AppContext


@click.command(
    cls=SchedCommand,
    examples="""\
  schedctl expand "Mon..Fri *-*-* *:0,30:00"
  schedctl expand daily "Sun *-*-01..06 03:30"
  schedctl expand --target launchd "*:0/15"
  schedctl expand --target windows "Mon,Wed 08,17:00"
  schedctl --json expand '*-*-1 4:00'""",
)
@click.argument("expressions", nargs=-1, required=True)
@click.option(
    "--target",
    type=click.Choice(EXPAND_TARGETS),
    default="intervals",
    help="Render as raw intervals or native scheduler triggers.",
)
@click.pass_obj
def expand(app: AppContext, expressions: tuple[str, ...], target: str) -> None:
    """Expand calendar expressions into the instants they match."""
    from schedctl.services.schedule import ScheduleService

    app.emit(ScheduleService(app.settings).expand(list(expressions), target=target))
