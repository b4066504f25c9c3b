"""Command group: install and manage scheduled jobs for profiles."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from schedctl.commands._base import SchedGroup
from schedctl.services.schedule import ScheduleService

if TYPE_CHECKING:
    from schedctl.commands._context import AppContext

_SCHEDULE_EXAMPLES = """\
  schedctl schedule show backup
  schedctl schedule install backup
  schedctl schedule install backup --permission system
  schedctl schedule status backup
  schedctl schedule remove backup"""

_permission_option = click.option(
    "--permission",
    type=click.Choice(["auto", "user", "system"]),
    default="auto",
    help="Run as a user job or a system job.",
)


@click.group(cls=SchedGroup, examples=_SCHEDULE_EXAMPLES)
@click.pass_obj
def schedule(app: AppContext) -> None:
    """Install, inspect, and remove scheduled jobs."""


@schedule.command(
    examples="""\
  schedctl schedule show backup
  schedctl --json schedule show backup"""
)
@click.argument("profile")
@_permission_option
@click.pass_obj
def show(app: AppContext, profile: str, permission: str) -> None:
    """Print the native job definition without installing it."""
    app.emit(ScheduleService(app.settings).show(profile, permission=permission))


@schedule.command(
    examples="""\
  schedctl schedule install backup
  schedctl --no-interact schedule install backup
  sudo schedctl schedule install backup --permission system"""
)
@click.argument("profile")
@_permission_option
@click.pass_obj
def install(app: AppContext, profile: str, permission: str) -> None:
    """Validate the profile's schedules and register the job."""
    permission = app.resolve_permission(permission, profile, action="install")
    app.emit(ScheduleService(app.settings).install(profile, permission=permission))


@schedule.command(
    examples="""\
  schedctl schedule remove backup
  schedctl schedule remove backup --permission system"""
)
@click.argument("profile")
@_permission_option
@click.pass_obj
def remove(app: AppContext, profile: str, permission: str) -> None:
    """Unregister the job and delete its definition."""
    permission = app.resolve_permission(permission, profile, action="remove")
    app.emit(ScheduleService(app.settings).remove(profile, permission=permission))


@schedule.command(
    examples="""\
  schedctl schedule status backup
  schedctl --json schedule status backup"""
)
@click.argument("profile")
@_permission_option
@click.pass_obj
def status(app: AppContext, profile: str, permission: str) -> None:
    """Ask the OS scheduler about the job."""
    app.emit(ScheduleService(app.settings).status(profile, permission=permission))
