"""Shared Jinja2 template loading with per-config override support."""

from __future__ import annotations

from pathlib import Path

from jinja2 import BaseLoader, ChoiceLoader, Environment, FileSystemLoader, PackageLoader


def build_template_environment(group: str, *, config_dir: Path | None = None) -> Environment:
    """Build a Jinja2 environment with user overrides before packaged defaults.

    User overrides are loaded from ``templates/<group>/`` next to the
    profiles file, so a unit template can be replaced without touching
    the installed package.
    """

    loaders: list[BaseLoader] = []
    if config_dir is not None:
        loaders.append(FileSystemLoader(str(config_dir / "templates" / group)))

    loaders.append(PackageLoader("schedctl", f"templates/{group}"))
    return Environment(loader=ChoiceLoader(loaders), keep_trailing_newline=True)
