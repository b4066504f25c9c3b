"""Pydantic configuration models with code-baked defaults.

Sparse profiles contract: defaults baked here, the profiles file only
contains overrides. A minimal profile needs only ``command`` and
``schedule``.
"""

from __future__ import annotations

import re
from typing import Literal

from pydantic import BaseModel, Field, field_validator

Backend = Literal["auto", "launchd", "systemd", "windows"]
Permission = Literal["auto", "user", "system"]
Priority = Literal["background", "standard"]

PROFILE_NAME_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.-]*$")


class SchedulerConfig(BaseModel):
    """[scheduler] section."""

    model_config = {"frozen": True}

    backend: Backend = "auto"
    permission: Permission = "auto"
    priority: Priority = "background"
    label_prefix: str = "local.schedctl"


class ProfileConfig(BaseModel):
    """[profiles.<name>] section."""

    model_config = {"frozen": True}

    command: str
    args: list[str] = Field(default_factory=list)
    schedule: list[str] = Field(default_factory=list)
    permission: Permission | None = None
    log: str = ""
    priority: Priority | None = None
    working_directory: str | None = None
    environment: dict[str, str] = Field(default_factory=dict)

    @field_validator("schedule", mode="before")
    @classmethod
    def _single_schedule(cls, value: object) -> object:
        """Accept ``schedule = "daily"`` as shorthand for a one-item list."""
        if isinstance(value, str):
            return [value]
        return value


def validate_profile_name(name: str) -> bool:
    """Profile names end up in job labels and unit file names."""
    return PROFILE_NAME_PATTERN.match(name) is not None
