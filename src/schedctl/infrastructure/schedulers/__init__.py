"""Scheduler handlers, one per OS scheduler.

``get_handler("auto")`` picks the handler for the running platform.
"""

from __future__ import annotations

import sys
from pathlib import Path

from schedctl.infrastructure.schedulers.base import Job, SchedulerError, SchedulerHandler
from schedctl.infrastructure.schedulers.launchd import LaunchdHandler
from schedctl.infrastructure.schedulers.systemd import SystemdHandler
from schedctl.infrastructure.schedulers.windows import WindowsHandler

__all__ = [
    "Job",
    "LaunchdHandler",
    "SchedulerError",
    "SchedulerHandler",
    "SystemdHandler",
    "WindowsHandler",
    "get_handler",
    "platform_backend",
]


def platform_backend(platform: str | None = None) -> str:
    """Name of the native scheduler for *platform* (default: this one)."""
    platform = platform or sys.platform
    if platform == "darwin":
        return "launchd"
    if platform == "win32":
        return "windows"
    return "systemd"


def get_handler(backend: str = "auto", *, config_dir: Path | None = None) -> SchedulerHandler:
    """Build the handler for *backend*.

    Raises:
        ValueError: unknown backend name.
    """
    if backend == "auto":
        backend = platform_backend()
    if backend == "launchd":
        return LaunchdHandler()
    if backend == "systemd":
        return SystemdHandler(config_dir=config_dir)
    if backend == "windows":
        return WindowsHandler()
    msg = f"unknown scheduler backend {backend!r}"
    raise ValueError(msg)
