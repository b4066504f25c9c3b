"""ScheduleService — expand expressions and manage scheduled jobs.

Pipeline for every job operation: RESOLVE profile → BUILD job →
VALIDATE schedules → ACT through the platform handler → RESPOND.
"""

from __future__ import annotations

import logging
import os
from dataclasses import asdict
from pathlib import Path
from typing import TYPE_CHECKING, Any
from urllib.parse import urlparse

from schedctl.config.discovery import find_binary, shell_expand
from schedctl.config.logging import job_log_context
from schedctl.config.models import validate_profile_name
from schedctl.domain.errors import ScheduleError
from schedctl.domain.intervals import expand
from schedctl.infrastructure.schedulers import get_handler
from schedctl.infrastructure.schedulers.base import Job, SchedulerError
from schedctl.infrastructure.schedulers.launchd import to_launchd_intervals
from schedctl.infrastructure.schedulers.windows import group_triggers
from schedctl.services.base import BaseService
from schedctl.services.result import ServiceResult

if TYPE_CHECKING:
    from schedctl.config.models import ProfileConfig
    from schedctl.config.settings import SchedSettings
    from schedctl.infrastructure.schedulers.base import SchedulerHandler

logger = logging.getLogger(__name__)

EXPAND_TARGETS = ("intervals", "launchd", "windows")


def resolve_permission(requested: str) -> str:
    """Turn ``auto`` into ``system`` for root and ``user`` otherwise."""
    if requested != "auto":
        return requested
    geteuid = getattr(os, "geteuid", None)
    return "system" if geteuid is not None and geteuid() == 0 else "user"


def _schedule_failure(op: str, exc: ScheduleError) -> ServiceResult:
    detail = {"expression": exc.expression} if exc.expression is not None else {}
    return ServiceResult.failure(op, exc.code, str(exc), detail=detail)


def _scheduler_failure(op: str, exc: SchedulerError) -> ServiceResult:
    return ServiceResult.failure(op, "SCHEDULER_FAILED", str(exc), detail=exc.detail)


class ScheduleService(BaseService):
    """Expand calendar expressions and drive the OS scheduler for profiles."""

    def __init__(
        self,
        settings: SchedSettings,
        *,
        handler: SchedulerHandler | None = None,
    ) -> None:
        super().__init__(settings)
        self._handler = handler

    @property
    def handler(self) -> SchedulerHandler:
        """The scheduler handler (created lazily from ``[scheduler] backend``)."""
        if self._handler is None:
            self._handler = get_handler(
                self._settings.scheduler.backend,
                config_dir=self._settings.config_dir,
            )
        return self._handler

    # ------------------------------------------------------------------
    # Expression expansion
    # ------------------------------------------------------------------

    def expand(self, expressions: list[str], *, target: str = "intervals") -> ServiceResult:
        """Expand each expression and render it for *target*.

        ``intervals`` returns the raw calendar intervals, ``launchd`` the
        ``StartCalendarInterval`` entries, ``windows`` the grouped triggers.
        """
        op = "expand"
        if target not in EXPAND_TARGETS:
            return ServiceResult.failure(
                op,
                "INVALID_TARGET",
                f"Unknown target {target!r}; expected one of {', '.join(EXPAND_TARGETS)}",
            )

        schedules: list[dict[str, Any]] = []
        total = 0
        for expression in expressions:
            try:
                intervals = expand(expression)
                if target == "launchd":
                    entries: list[dict[str, Any]] = to_launchd_intervals(intervals)
                elif target == "windows":
                    entries = [asdict(t) for t in group_triggers(intervals)]
                else:
                    entries = [i.to_dict() for i in intervals]
            except ScheduleError as exc:
                return _schedule_failure(op, exc)
            total += len(entries)
            schedules.append({"expression": expression, "entries": entries, "count": len(entries)})

        return ServiceResult(
            ok=True,
            op=op,
            data={"target": target, "schedules": schedules, "count": total},
        )

    # ------------------------------------------------------------------
    # Job operations
    # ------------------------------------------------------------------

    def show(self, name: str, *, permission: str = "auto") -> ServiceResult:
        """Render the native job definition without installing it."""
        op = "show"
        job = self._job(op, name, permission)
        if isinstance(job, ServiceResult):
            return job
        handler = self.handler
        with job_log_context(name, handler.name):
            try:
                files = handler.render(job)
            except ScheduleError as exc:
                return _schedule_failure(op, exc)
            except SchedulerError as exc:
                return _scheduler_failure(op, exc)
        return ServiceResult(
            ok=True,
            op=op,
            data={"profile": name, "backend": handler.name, "files": files},
        )

    def install(self, name: str, *, permission: str = "auto") -> ServiceResult:
        """Validate every schedule of *name*, then register the job."""
        return self._act("install", name, permission)

    def remove(self, name: str, *, permission: str = "auto") -> ServiceResult:
        """Unregister the job of *name* and delete its definition."""
        return self._act("remove", name, permission)

    def status(self, name: str, *, permission: str = "auto") -> ServiceResult:
        """Query the OS scheduler about the job of *name*."""
        return self._act("status", name, permission)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _act(self, op: str, name: str, permission: str) -> ServiceResult:
        job = self._job(op, name, permission, need_schedule=op == "install")
        if isinstance(job, ServiceResult):
            return job
        handler = self.handler
        action = getattr(handler, op)
        with job_log_context(name, handler.name):
            try:
                outcome = action(job)
            except ScheduleError as exc:
                return _schedule_failure(op, exc)
            except SchedulerError as exc:
                logger.error("%s failed: %s", op, exc)
                return _scheduler_failure(op, exc)
            logger.info("%s done", op)
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "profile": name,
                "backend": handler.name,
                "permission": job.permission,
                **outcome,
            },
        )

    def _job(
        self,
        op: str,
        name: str,
        permission: str,
        *,
        need_schedule: bool = True,
    ) -> Job | ServiceResult:
        if not validate_profile_name(name):
            return ServiceResult.failure(
                op,
                "INVALID_PROFILE",
                f"Invalid profile name {name!r}: use letters, digits, '.', '_' or '-'",
            )
        profile = self._profile(op, name)
        if isinstance(profile, ServiceResult):
            return profile
        if need_schedule and not profile.schedule:
            return ServiceResult.failure(
                op,
                "NO_SCHEDULE",
                f"Profile {name!r} has no schedule",
            )
        try:
            program = find_binary(profile.command)
        except FileNotFoundError as exc:
            if not need_schedule:
                # remove/status only need the job's identity
                return self._build_job(name, profile, Path(profile.command), permission)
            return ServiceResult.failure(
                op,
                "BINARY_NOT_FOUND",
                str(exc),
                detail={"command": profile.command},
            )
        return self._build_job(name, profile, program, permission)

    def _build_job(
        self,
        name: str,
        profile: ProfileConfig,
        program: Path,
        permission: str,
    ) -> Job:
        scheduler = self._settings.scheduler
        if permission == "auto":
            permission = profile.permission or scheduler.permission
        if profile.working_directory:
            working_directory = Path(shell_expand(profile.working_directory))
        else:
            working_directory = self._settings.config_dir
        log = profile.log
        if log and not urlparse(log).scheme:
            log = shell_expand(log)
        return Job(
            profile=name,
            program=program,
            arguments=tuple(profile.args),
            schedules=tuple(profile.schedule),
            permission=resolve_permission(permission),
            working_directory=working_directory,
            log=log,
            priority=profile.priority or scheduler.priority,
            environment=dict(profile.environment),
            label_prefix=scheduler.label_prefix,
        )
