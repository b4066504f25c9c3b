"""systemd (Linux) handler.

systemd understands calendar expressions natively, so this handler never
expands them: each expression is forwarded unchanged to
``systemd-analyze calendar`` and the tool's verdict is final. Accepted
expressions become ``OnCalendar=`` lines of a timer unit.
"""

from __future__ import annotations

import logging
import os
import shlex
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

from schedctl.domain.errors import EmptySpecError, ScheduleSyntaxError
from schedctl.infrastructure.schedulers.base import Job, SchedulerError, SchedulerHandler
from schedctl.infrastructure.templates import build_template_environment

logger = logging.getLogger(__name__)


def _user_unit_dir() -> Path:
    config_home = os.environ.get("XDG_CONFIG_HOME") or str(Path.home() / ".config")
    return Path(config_home) / "systemd" / "user"


def systemd_escape(value: str) -> str:
    """Escape *value* for a double-quoted unit file assignment."""
    for raw, escaped in (('\\', '\\\\'), ('"', '\\"'), ("\n", "\\n"), ("%", "%%")):
        value = value.replace(raw, escaped)
    return value


def _parse_analyze(output: str) -> dict[str, str]:
    """Pick ``Normalized form`` and ``Next elapse`` from systemd-analyze output."""
    info: dict[str, str] = {}
    for line in output.splitlines():
        key, sep, value = line.partition(":")
        if not sep:
            continue
        key = key.strip()
        if key == "Normalized form":
            info["normalized"] = value.strip()
        elif key == "Next elapse":
            info["next"] = value.strip()
    return info


class SystemdHandler(SchedulerHandler):
    """Install jobs as a service + timer unit pair."""

    name = "systemd"

    def __init__(
        self,
        *,
        user_dir: Path | None = None,
        system_dir: Path | None = None,
        config_dir: Path | None = None,
    ) -> None:
        self._user_dir = user_dir
        self._system_dir = system_dir or Path("/etc/systemd/system")
        self._templates = build_template_environment("systemd", config_dir=config_dir)
        self._templates.filters["systemd_escape"] = systemd_escape

    def unit_name(self, job: Job) -> str:
        return f"schedctl-{job.profile}"

    def unit_dir(self, job: Job) -> Path:
        if job.system:
            return self._system_dir
        return self._user_dir or _user_unit_dir()

    def validate(self, schedules: tuple[str, ...]) -> list[dict[str, str]]:
        """Ask ``systemd-analyze calendar`` about every schedule.

        Raises:
            EmptySpecError: a schedule is blank.
            ScheduleSyntaxError: systemd rejected a schedule.
        """
        checked: list[dict[str, str]] = []
        for schedule in schedules:
            if not schedule.strip():
                raise EmptySpecError("empty schedule", expression=schedule)
            result = self._run("systemd-analyze", "calendar", schedule, check=False)
            if result.returncode != 0:
                reason = (result.stderr or result.stdout).strip()
                msg = f"systemd rejected schedule {schedule!r}: {reason}"
                raise ScheduleSyntaxError(msg, expression=schedule)
            checked.append({"schedule": schedule, **_parse_analyze(result.stdout)})
        return checked

    def render(self, job: Job) -> dict[str, str]:
        name = self.unit_name(job)
        service = self._templates.get_template("service.j2").render(
            profile=job.profile,
            working_directory=str(job.working_directory),
            exec_start=shlex.join([str(job.program), *job.arguments]),
            environment=job.environment,
            log="" if urlparse(job.log).scheme else job.log,
            priority=job.priority,
        )
        timer = self._templates.get_template("timer.j2").render(
            profile=job.profile,
            schedules=job.schedules,
            service=f"{name}.service",
        )
        return {f"{name}.service": service, f"{name}.timer": timer}

    def install(self, job: Job) -> dict[str, Any]:
        checked = self.validate(job.schedules)
        units = self.render(job)
        directory = self.unit_dir(job)
        directory.mkdir(parents=True, exist_ok=True)
        for filename, content in units.items():
            (directory / filename).write_text(content, encoding="utf-8")
            logger.info("Wrote %s", directory / filename)

        timer = f"{self.unit_name(job)}.timer"
        self._systemctl(job, "daemon-reload")
        self._systemctl(job, "enable", timer)
        self._systemctl(job, "start", timer)
        return {
            "timer": timer,
            "path": str(directory),
            "schedules": checked,
        }

    def remove(self, job: Job) -> dict[str, Any]:
        directory = self.unit_dir(job)
        name = self.unit_name(job)
        files = [directory / f"{name}.timer", directory / f"{name}.service"]
        if not any(f.exists() for f in files):
            msg = f"no systemd timer installed for profile {job.profile!r}"
            raise SchedulerError(msg, detail={"path": str(directory)})

        timer = f"{name}.timer"
        self._systemctl(job, "stop", timer)
        self._systemctl(job, "disable", timer)
        removed = []
        for f in files:
            if f.exists():
                f.unlink()
                removed.append(str(f))
        self._systemctl(job, "daemon-reload")
        return {"timer": timer, "removed": removed}

    def status(self, job: Job) -> dict[str, Any]:
        timer = f"{self.unit_name(job)}.timer"
        result = self._run(*self._systemctl_args(job), "status", timer, check=False)
        return {
            "timer": timer,
            "active": result.returncode == 0,
            "output": result.stdout.strip(),
        }

    def _systemctl_args(self, job: Job) -> list[str]:
        return ["systemctl"] if job.system else ["systemctl", "--user"]

    def _systemctl(self, job: Job, *args: str) -> None:
        self._run(*self._systemctl_args(job), *args)
