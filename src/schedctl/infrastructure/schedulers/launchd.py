"""launchd (macOS) handler.

Each calendar interval becomes one ``StartCalendarInterval`` dict keyed by
capitalized field names, present fields only. The job definition is
written as a property list with :mod:`plistlib` and loaded through
``launchctl``.
"""

from __future__ import annotations

import logging
import plistlib
import re
from collections.abc import Iterable
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

from schedctl.domain.errors import UnsupportedTriggerError
from schedctl.domain.fields import Field
from schedctl.domain.intervals import CalendarInterval, expand
from schedctl.infrastructure.schedulers.base import Job, SchedulerError, SchedulerHandler

logger = logging.getLogger(__name__)

LAUNCHD_KEYS: dict[Field, str] = {
    Field.WEEKDAY: "Weekday",
    Field.MONTH: "Month",
    Field.DAY: "Day",
    Field.HOUR: "Hour",
    Field.MINUTE: "Minute",
    Field.SECOND: "Second",
}

# Log targets launchd cannot write to directly.
_REMOTE_LOG_SCHEMES = frozenset({"udp", "tcp"})

_STATUS_LINE = re.compile(r'^"(?P<key>[^"]+)"\s*=\s*(?P<value>.*?);$')


def to_launchd_intervals(intervals: Iterable[CalendarInterval]) -> list[dict[str, int]]:
    """Render intervals as ``StartCalendarInterval`` entries.

    Raises:
        UnsupportedTriggerError: an interval restricts the year.
    """
    entries: list[dict[str, int]] = []
    for interval in intervals:
        if interval.has(Field.YEAR):
            msg = "launchd calendar intervals cannot restrict the year"
            raise UnsupportedTriggerError(msg)
        entries.append({LAUNCHD_KEYS[f]: interval.get(f) for f in interval.present_fields})
    return entries


def parse_status(output: str) -> dict[str, str]:
    """Flatten ``launchctl list <label>`` output into ``{key: value}``.

    Nested arrays and dicts (e.g. ``ProgramArguments``) are skipped.
    """
    status: dict[str, str] = {}
    depth = 0
    for raw in output.splitlines():
        line = raw.strip()
        if line.endswith(("= (", "= {")):
            depth += 1
            continue
        if depth and line.startswith((")", "}")):
            depth -= 1
            continue
        if depth:
            continue
        match = _STATUS_LINE.match(line)
        if match:
            status[match["key"]] = match["value"].strip('"')
    return status


class LaunchdHandler(SchedulerHandler):
    """Install jobs as user agents or system daemons."""

    name = "launchd"

    def __init__(
        self,
        *,
        agents_dir: Path | None = None,
        daemons_dir: Path | None = None,
    ) -> None:
        self._agents_dir = agents_dir or Path.home() / "Library" / "LaunchAgents"
        self._daemons_dir = daemons_dir or Path("/Library/LaunchDaemons")

    def label(self, job: Job) -> str:
        return f"{job.label_prefix}.{job.profile}"

    def log_path(self, job: Job) -> str:
        """The profile log, or ``<label>.log`` when unset or a network URL."""
        if not job.log or urlparse(job.log).scheme in _REMOTE_LOG_SCHEMES:
            return f"{self.label(job)}.log"
        return job.log

    def plist_path(self, job: Job) -> Path:
        directory = self._daemons_dir if job.system else self._agents_dir
        return directory / f"{self.label(job)}.plist"

    def validate(self, schedules: tuple[str, ...]) -> list[dict[str, int]]:
        entries: list[dict[str, int]] = []
        for schedule in schedules:
            entries.extend(to_launchd_intervals(expand(schedule)))
        return entries

    def job_definition(self, job: Job, intervals: list[dict[str, int]]) -> dict[str, Any]:
        log = self.log_path(job)
        definition: dict[str, Any] = {
            "Label": self.label(job),
            "Program": str(job.program),
            "ProgramArguments": [str(job.program), *job.arguments],
            "WorkingDirectory": str(job.working_directory),
            "StandardOutPath": log,
            "StandardErrorPath": log,
            "StartCalendarInterval": intervals,
        }
        if job.environment:
            definition["EnvironmentVariables"] = dict(job.environment)
        if job.priority == "background":
            definition["ProcessType"] = "Background"
            definition["LowPriorityIO"] = True
        else:
            definition["ProcessType"] = "Standard"
        if not job.system:
            definition["LimitLoadToSessionType"] = "Aqua"
        return definition

    def render(self, job: Job) -> dict[str, str]:
        definition = self.job_definition(job, self.validate(job.schedules))
        return {self.plist_path(job).name: plistlib.dumps(definition).decode("utf-8")}

    def install(self, job: Job) -> dict[str, Any]:
        intervals = self.validate(job.schedules)
        path = self.plist_path(job)
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("wb") as fh:
            plistlib.dump(self.job_definition(job, intervals), fh)
        logger.info("Wrote %s", path)

        self._run("launchctl", "load", "-w", str(path))
        return {
            "label": self.label(job),
            "path": str(path),
            "triggers": len(intervals),
        }

    def remove(self, job: Job) -> dict[str, Any]:
        path = self.plist_path(job)
        if not path.exists():
            msg = f"no launchd job installed for profile {job.profile!r}"
            raise SchedulerError(msg, detail={"path": str(path)})
        self._run("launchctl", "unload", str(path))
        path.unlink()
        logger.info("Removed %s", path)
        return {"label": self.label(job), "path": str(path)}

    def status(self, job: Job) -> dict[str, Any]:
        result = self._run("launchctl", "list", self.label(job))
        return parse_status(result.stdout)
