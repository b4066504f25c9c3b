"""Allow ``python -m schedctl``."""

from schedctl.cli import cli

cli()
