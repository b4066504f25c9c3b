"""Scheduler handler contract and shared subprocess plumbing.

A handler turns a :class:`Job` into the native job definition of one OS
scheduler and drives the native tool (``launchctl``, ``systemctl``,
``schtasks``) to install, remove, and query it.

INVARIANT: every schedule of a job is validated before anything is
written or registered. A job is never installed half-expanded.
"""

from __future__ import annotations

import logging
import subprocess
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, ClassVar

logger = logging.getLogger(__name__)


class SchedulerError(RuntimeError):
    """A native scheduler tool failed or is missing."""

    def __init__(self, message: str, *, detail: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.detail = detail or {}


@dataclass(frozen=True)
class Job:
    """Everything a handler needs to define one scheduled job."""

    profile: str
    program: Path
    arguments: tuple[str, ...] = ()
    schedules: tuple[str, ...] = ()
    permission: str = "user"
    working_directory: Path = field(default_factory=Path.cwd)
    log: str = ""
    priority: str = "background"
    environment: dict[str, str] = field(default_factory=dict)
    label_prefix: str = "local.schedctl"

    @property
    def system(self) -> bool:
        return self.permission == "system"


class SchedulerHandler(ABC):
    """Base class for OS scheduler integrations."""

    name: ClassVar[str]

    @abstractmethod
    def validate(self, schedules: tuple[str, ...]) -> list[Any]:
        """Check every schedule; return the native trigger data.

        Raises:
            ScheduleError: a schedule is invalid or unrepresentable.
            SchedulerError: the native validator failed.
        """

    @abstractmethod
    def render(self, job: Job) -> dict[str, str]:
        """Render the job definition files as ``{name: content}``."""

    @abstractmethod
    def install(self, job: Job) -> dict[str, Any]:
        """Write the job definition and register it with the OS."""

    @abstractmethod
    def remove(self, job: Job) -> dict[str, Any]:
        """Unregister the job and delete its definition."""

    @abstractmethod
    def status(self, job: Job) -> dict[str, Any]:
        """Query the OS for the job's state."""

    def _run(self, *args: str, check: bool = True) -> subprocess.CompletedProcess[str]:
        """Run a native tool, raising :class:`SchedulerError` on failure."""
        logger.debug("Running %s", " ".join(args))
        try:
            return subprocess.run(
                list(args),
                capture_output=True,
                text=True,
                check=check,
            )
        except FileNotFoundError as exc:
            msg = f"{args[0]} not found"
            raise SchedulerError(msg, detail={"command": list(args)}) from exc
        except subprocess.CalledProcessError as exc:
            output = (exc.stderr or exc.stdout or "").strip()
            msg = f"{' '.join(args)} failed (exit {exc.returncode})"
            if output:
                msg = f"{msg}: {output}"
            raise SchedulerError(
                msg,
                detail={"command": list(args), "returncode": exc.returncode},
            ) from exc
