"""AppContext — shared Click context for all commands.

Created once by the root CLI group and flows to all subcommands via
``@click.pass_obj``. Holds the merged settings and centralizes result
emission (stdout/stderr routing + exit codes).
"""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

import click

from schedctl.config.logging import configure_logging
from schedctl.output.formatters import OutputSettings, format_result

if TYPE_CHECKING:
    from schedctl.config.settings import SchedSettings
    from schedctl.services.result import ServiceResult


class AppContext:
    """Shared context flowing through Click's command hierarchy."""

    def __init__(self, settings: SchedSettings) -> None:
        self.settings = settings
        configure_logging(
            verbose=settings.verbose,
            quiet=settings.quiet,
            log_json=settings.log_json,
        )

    def resolve_permission(self, requested: str, profile: str, *, action: str) -> str:
        """Settle ``auto`` before the job operation *action*.

        Root gets a system job. Anyone else is asked whether a user job is
        acceptable, unless prompts are disabled (then it is a user job).
        Unknown profiles are left ``auto`` for the service to reject.
        """
        if requested != "auto":
            return requested
        configured = self.settings.profiles.get(profile)
        if configured is None:
            return requested
        if configured.permission not in (None, "auto"):
            return configured.permission
        if self.settings.scheduler.permission != "auto":
            return self.settings.scheduler.permission

        geteuid = getattr(os, "geteuid", None)
        if geteuid is not None and geteuid() == 0:
            return "system"
        if self.settings.no_interact:
            return "user"
        if not click.confirm(
            f"Not running as root: {action} {profile!r} as a user job?",
            default=True,
            err=True,
        ):
            raise click.Abort
        return "user"

    def emit(self, result: ServiceResult) -> None:
        """Format and output a ServiceResult with correct exit semantics.

        * Success (``result.ok``): writes to stdout, returns normally.
          Warnings go to stderr so they don't pollute piped output.
        * Failure: writes to stderr, exits with code 1.
        """
        settings = OutputSettings(
            json_output=self.settings.json_output,
            quiet=self.settings.quiet,
            verbose=self.settings.verbose,
        )
        output = format_result(result, settings=settings)
        if result.ok:
            click.echo(output)
            # In JSON mode, warnings are already in the serialized payload.
            if not settings.json_output:
                for warning in result.warnings:
                    click.echo(f"WARNING: {warning}", err=True)
        else:
            click.echo(output, err=True)
            raise SystemExit(1)
