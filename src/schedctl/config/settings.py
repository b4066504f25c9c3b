"""Unified settings — CLI flags, env vars, and the profiles file in one object.

Priority chain (highest to lowest):
  1. Init kwargs  — CLI flags passed by Click
  2. Env vars     — ``SCHEDCTL_*`` prefix
  3. Profiles file — discovered via :func:`schedctl.config.discovery.find_config`
  4. Code defaults — baked into the section models

Uses Pydantic Settings v2 with a custom :class:`ProfilesFileSource` that
reads TOML, YAML or JSON and merges include files.
"""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from schedctl.config.discovery import ConfigError, find_config, load_profiles_file
from schedctl.config.models import ProfileConfig, SchedulerConfig


class ProfilesFileSource(PydanticBaseSettingsSource):
    """Read settings from the discovered profiles file."""

    def __init__(self, settings_cls: type[BaseSettings], config_path: Path | None) -> None:
        super().__init__(settings_cls)
        self._data: dict[str, Any] = {}
        if config_path and config_path.is_file():
            try:
                self._data = load_profiles_file(config_path)
            except ConfigError as exc:
                import click

                raise click.ClickException(str(exc)) from exc

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        """Return ``(value, field_name, value_is_complex)``."""
        val = self._data.get(field_name)
        return val, field_name, field_name in self._data

    def __call__(self) -> dict[str, Any]:
        """Return the full file data dict for Pydantic to merge."""
        return self._data


# Thread-local storage for the profiles path during construction.
_tls = threading.local()


class SchedSettings(BaseSettings):
    """Unified settings for the entire schedctl CLI.

    Merges CLI flags, environment variables, the profiles file, and
    code-baked defaults into a single frozen object. Stored on the
    :class:`~schedctl.commands._context.AppContext` at the CLI root.

    Attributes:
        config_path: The profiles file in use, or None when none was found.
    """

    model_config = {
        "frozen": True,
        "env_prefix": "SCHEDCTL_",
        "env_nested_delimiter": "__",
    }

    config_path: Path | None = None

    # --- CLI flags ---
    json_output: bool = False
    quiet: bool = False
    verbose: bool = False
    log_json: bool = False
    no_interact: bool = False

    # --- Profiles file sections ---
    scheduler: SchedulerConfig = Field(default_factory=SchedulerConfig)
    profiles: dict[str, ProfileConfig] = Field(default_factory=dict)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Insert the profiles file source between env vars and defaults."""
        config_path = getattr(_tls, "config_path", None)
        return (
            init_settings,
            env_settings,
            ProfilesFileSource(settings_cls, config_path),
        )

    @classmethod
    def from_cli(
        cls,
        *,
        config_path: str | Path | None = None,
        **cli_flags: Any,
    ) -> SchedSettings:
        """Construct settings from a CLI invocation.

        Discovers the profiles file (or uses the explicit *config_path*)
        and merges CLI flags as highest-priority overrides.
        """
        resolved = find_config(config_path)

        _tls.config_path = resolved
        try:
            return cls(config_path=resolved, **cli_flags)
        finally:
            _tls.config_path = None

    @property
    def config_dir(self) -> Path:
        """Directory of the profiles file, or the working directory."""
        return self.config_path.parent if self.config_path else Path.cwd()
