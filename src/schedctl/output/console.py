"""Rich Console factory and theme for schedctl output.

Creates Console instances that render to a StringIO buffer, preserving
the ``format_result() -> str`` contract. In non-TTY environments
(tests, pipes) Rich automatically disables color codes.
"""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.theme import Theme

SCHED_THEME = Theme(
    {
        "sched.ok": "bold green",
        "sched.error": "bold red",
        "sched.warning": "bold yellow",
        "sched.op": "bold cyan",
        "sched.key": "dim",
        "sched.profile": "bold blue",
        "sched.path": "dim",
        "sched.expr": "bold",
        "sched.field.date": "green",
        "sched.field.time": "magenta",
    }
)

_FIELD_STYLES: dict[str, str] = {
    "weekday": "sched.field.date",
    "year": "sched.field.date",
    "month": "sched.field.date",
    "day": "sched.field.date",
    "hour": "sched.field.time",
    "minute": "sched.field.time",
    "second": "sched.field.time",
}


def create_console(*, no_color: bool = False, width: int | None = None) -> Console:
    """Create a Console that renders to a StringIO buffer.

    Args:
        no_color: Disable ANSI escape codes (used in tests).
        width: Override terminal width (useful for consistent test output).
    """
    return Console(
        file=StringIO(),
        theme=SCHED_THEME,
        no_color=no_color,
        highlight=False,
        width=width or 120,
    )


def get_output(console: Console) -> str:
    """Extract rendered text from a StringIO-backed Console."""
    assert isinstance(console.file, StringIO)
    return console.file.getvalue()


def style_for_field(field: str) -> str:
    """Return the Rich style name for a calendar field column."""
    return _FIELD_STYLES.get(field, "")
