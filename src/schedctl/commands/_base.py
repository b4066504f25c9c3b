"""Click base classes with an eager ``--examples`` flag.

``SchedCommand`` prints its examples and exits before arguments are
validated, so ``schedctl schedule remove --examples`` works without a
PROFILE. ``SchedGroup`` prints its own examples followed by the
subcommands that have examples of their own.
"""

from __future__ import annotations

import textwrap
from typing import Any

import click


def format_examples(examples: str) -> str:
    """Normalize an examples block to a two-space indent."""
    return textwrap.indent(textwrap.dedent(examples).strip("\n"), "  ")


def _see_also(ctx: click.Context) -> list[str]:
    group = ctx.command
    if not isinstance(group, click.Group):
        return []
    return [
        f"  {ctx.command_path} {name} --examples"
        for name in group.list_commands(ctx)
        if getattr(group.get_command(ctx, name), "examples", None)
    ]


def _add_examples_option(cmd: click.Command, examples: str) -> None:
    def show_examples(ctx: click.Context, _param: click.Parameter, value: bool) -> None:
        if not value or ctx.resilient_parsing:
            return
        click.echo(f"Examples for '{ctx.command_path}':\n")
        click.echo(format_examples(examples))
        see_also = _see_also(ctx)
        if see_also:
            click.echo("\nMore examples:")
            click.echo("\n".join(see_also))
        ctx.exit(0)

    cmd.params.append(
        click.Option(
            ["--examples"],
            is_flag=True,
            expose_value=False,
            is_eager=True,
            callback=show_examples,
            help="Show usage examples and exit.",
        )
    )


class SchedCommand(click.Command):
    """Command with an optional ``examples`` block."""

    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.examples = examples
        if examples:
            _add_examples_option(self, examples)


class SchedGroup(click.Group):
    """Group with an optional ``examples`` block; subcommands are :class:`SchedCommand`."""

    command_class = SchedCommand

    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.examples = examples
        if examples:
            _add_examples_option(self, examples)
