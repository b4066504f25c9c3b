"""Windows Task Scheduler handler.

Task Scheduler triggers are coarser than calendar intervals: one
``CalendarTrigger`` has a single start time plus a day-of-week,
day-of-month or daily pattern. :func:`group_triggers` folds intervals
that share everything but the minute into one :class:`WindowsTrigger`
with a minute list, then merges triggers with the same time of day when
their date sets still form a complete product.
"""

from __future__ import annotations

import logging
import itertools
import subprocess
import tempfile
import xml.etree.ElementTree as ET
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from schedctl.domain.errors import UnsupportedTriggerError
from schedctl.domain.fields import Field
from schedctl.domain.intervals import CalendarInterval, expand
from schedctl.infrastructure.schedulers.base import Job, SchedulerHandler

logger = logging.getLogger(__name__)

TASK_NAMESPACE = "http://schemas.microsoft.com/windows/2004/02/mit/task"
TASK_FOLDER = "\\schedctl\\"
# Fixed anchor date keeps the rendered XML deterministic.
START_DATE = "2020-01-01"
SYSTEM_SID = "S-1-5-18"

DAY_NAMES = ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")
MONTH_NAMES = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)


@dataclass(frozen=True)
class WindowsTrigger:
    """One native trigger; ``None`` time components mean "every"."""

    hour: int | None = None
    minutes: tuple[int, ...] | None = None
    second: int | None = None
    weekdays: tuple[int, ...] = ()
    days: tuple[int, ...] = ()
    months: tuple[int, ...] = ()

    @property
    def kind(self) -> str:
        if self.days or (self.months and not self.weekdays):
            return "monthly"
        if self.weekdays and self.months:
            return "monthly_dow"
        if self.weekdays:
            return "weekly"
        return "daily"


def group_triggers(intervals: Iterable[CalendarInterval]) -> list[WindowsTrigger]:
    """Fold calendar intervals into Task Scheduler triggers.

    Raises:
        UnsupportedTriggerError: an interval restricts the year, or combines
            a weekday with a day of month.
    """
    # (weekday, month, day, hour, second) -> minutes; None = every minute
    by_time: dict[tuple[int | None, ...], list[int] | None] = {}
    for interval in intervals:
        if interval.has(Field.YEAR):
            msg = "Task Scheduler triggers cannot restrict the year"
            raise UnsupportedTriggerError(msg)
        if interval.has(Field.WEEKDAY) and interval.has(Field.DAY):
            msg = "Task Scheduler triggers cannot combine a weekday with a day of month"
            raise UnsupportedTriggerError(msg)

        key = (interval.weekday, interval.month, interval.day, interval.hour, interval.second)
        minutes = by_time.setdefault(key, [])
        if interval.minute is None:
            by_time[key] = None
        elif minutes is not None:
            minutes.append(interval.minute)

    # (hour, second, minutes) -> date keys sharing that time of day
    by_clock: dict[tuple[Any, ...], list[tuple[int | None, ...]]] = {}
    for (weekday, month, day, hour, second), minutes in by_time.items():
        clock = (hour, second, tuple(sorted(set(minutes))) if minutes is not None else None)
        by_clock.setdefault(clock, []).append((weekday, month, day))

    triggers: list[WindowsTrigger] = []
    for (hour, second, minutes), dates in by_clock.items():
        triggers.extend(_merge_dates(hour, second, minutes, dates))
    return triggers


def _merge_dates(
    hour: int | None,
    second: int | None,
    minutes: tuple[int, ...] | None,
    dates: list[tuple[int | None, ...]],
) -> list[WindowsTrigger]:
    weekdays, months, days = (
        tuple(sorted({d[i] for d in dates if d[i] is not None})) for i in range(3)
    )
    # merge only when the dates are exactly the product of their field values
    product = itertools.product(*(s or (None,) for s in (weekdays, months, days)))
    if set(product) == set(dates):
        return [WindowsTrigger(hour, minutes, second, weekdays, days, months)]
    return [
        WindowsTrigger(
            hour,
            minutes,
            second,
            (weekday,) if weekday is not None else (),
            (day,) if day is not None else (),
            (month,) if month is not None else (),
        )
        for weekday, month, day in dates
    ]


def _minute_step(minutes: tuple[int, ...]) -> int | None:
    """Step of an evenly spaced minute list that repeats every hour, else None."""
    if len(minutes) < 2:
        return None
    step = minutes[1] - minutes[0]
    if 60 % step or len(minutes) != 60 // step or minutes[0] >= step:
        return None
    if any(b - a != step for a, b in zip(minutes, minutes[1:])):
        return None
    return step


def _starts(trigger: WindowsTrigger) -> list[tuple[int, int, tuple[int, int] | None]]:
    """``(hour, minute, repetition)`` start points; repetition is ``(every, count)`` in minutes."""
    if trigger.hour is None:
        if trigger.minutes is None:
            return [(0, 0, (1, 24 * 60))]
        step = _minute_step(trigger.minutes)
        if step is not None:
            return [(0, trigger.minutes[0], (step, 24 * 60 // step))]
        return [(0, m, (60, 24)) for m in trigger.minutes]

    if trigger.minutes is None:
        return [(trigger.hour, 0, (1, 60))]
    step = _minute_step(trigger.minutes)
    if step is not None:
        return [(trigger.hour, trigger.minutes[0], (step, 60 // step))]
    return [(trigger.hour, m, None) for m in trigger.minutes]


def _sub(parent: ET.Element, tag: str, text: str | None = None) -> ET.Element:
    element = ET.SubElement(parent, tag)
    if text is not None:
        element.text = text
    return element


def _calendar_trigger(parent: ET.Element, trigger: WindowsTrigger) -> None:
    for hour, minute, repetition in _starts(trigger):
        element = _sub(parent, "CalendarTrigger")
        if repetition is not None:
            every, count = repetition
            rep = _sub(element, "Repetition")
            _sub(rep, "Interval", f"PT{every}M")
            _sub(rep, "Duration", f"PT{(count - 1) * every + 1}M")
        second = trigger.second or 0
        _sub(element, "StartBoundary", f"{START_DATE}T{hour:02d}:{minute:02d}:{second:02d}")
        _sub(element, "Enabled", "true")
        _schedule(element, trigger)


def _schedule(element: ET.Element, trigger: WindowsTrigger) -> None:
    kind = trigger.kind
    if kind == "daily":
        by_day = _sub(element, "ScheduleByDay")
        _sub(by_day, "DaysInterval", "1")
    elif kind == "weekly":
        by_week = _sub(element, "ScheduleByWeek")
        _sub(by_week, "WeeksInterval", "1")
        _days_of_week(by_week, trigger.weekdays)
    elif kind == "monthly_dow":
        by_dow = _sub(element, "ScheduleByMonthDayOfWeek")
        weeks = _sub(by_dow, "Weeks")
        for week in ("1", "2", "3", "4", "Last"):
            _sub(weeks, "Week", week)
        _days_of_week(by_dow, trigger.weekdays)
        _months(by_dow, trigger.months)
    else:
        by_month = _sub(element, "ScheduleByMonth")
        days_el = _sub(by_month, "DaysOfMonth")
        for day in trigger.days or range(1, 32):
            _sub(days_el, "Day", str(day))
        _months(by_month, trigger.months)


def _days_of_week(parent: ET.Element, weekdays: tuple[int, ...]) -> None:
    days = _sub(parent, "DaysOfWeek")
    for weekday in weekdays:
        _sub(days, DAY_NAMES[weekday])


def _months(parent: ET.Element, months: tuple[int, ...]) -> None:
    months_el = _sub(parent, "Months")
    for month in months or range(1, 13):
        _sub(months_el, MONTH_NAMES[month - 1])


def _parse_query(output: str) -> dict[str, str]:
    """Flatten ``schtasks /Query /V /FO LIST`` output into ``{key: value}``."""
    info: dict[str, str] = {}
    for line in output.splitlines():
        key, sep, value = line.partition(":")
        if sep and key.strip():
            info.setdefault(key.strip(), value.strip())
    return info


class WindowsHandler(SchedulerHandler):
    """Register jobs with Task Scheduler through ``schtasks``."""

    name = "windows"

    def task_name(self, job: Job) -> str:
        return f"{TASK_FOLDER}{job.profile}"

    def validate(self, schedules: tuple[str, ...]) -> list[WindowsTrigger]:
        intervals: list[CalendarInterval] = []
        for schedule in schedules:
            intervals.extend(expand(schedule))
        return group_triggers(intervals)

    def task_xml(self, job: Job, triggers: list[WindowsTrigger]) -> str:
        task = ET.Element("Task", version="1.2", xmlns=TASK_NAMESPACE)

        reg_info = _sub(task, "RegistrationInfo")
        _sub(reg_info, "Description", f"schedctl job for profile {job.profile}")
        _sub(reg_info, "URI", self.task_name(job))

        triggers_el = _sub(task, "Triggers")
        for trigger in triggers:
            _calendar_trigger(triggers_el, trigger)

        principal = _sub(_sub(task, "Principals"), "Principal", None)
        principal.set("id", "Author")
        if job.system:
            _sub(principal, "UserId", SYSTEM_SID)
            _sub(principal, "RunLevel", "HighestAvailable")
        else:
            _sub(principal, "LogonType", "InteractiveToken")
            _sub(principal, "RunLevel", "LeastPrivilege")

        settings = _sub(task, "Settings")
        _sub(settings, "MultipleInstancesPolicy", "IgnoreNew")
        _sub(settings, "StartWhenAvailable", "true")
        _sub(settings, "ExecutionTimeLimit", "PT0S")
        _sub(settings, "Enabled", "true")
        _sub(settings, "Priority", "7" if job.priority == "background" else "5")

        actions = _sub(task, "Actions")
        actions.set("Context", "Author")
        exec_el = _sub(actions, "Exec")
        _sub(exec_el, "Command", str(job.program))
        if job.arguments:
            _sub(exec_el, "Arguments", subprocess.list2cmdline(job.arguments))
        _sub(exec_el, "WorkingDirectory", str(job.working_directory))

        ET.indent(task, space="  ")
        body = ET.tostring(task, encoding="unicode")
        return f'<?xml version="1.0" encoding="UTF-16"?>\n{body}\n'

    def render(self, job: Job) -> dict[str, str]:
        xml = self.task_xml(job, self.validate(job.schedules))
        return {f"{job.profile}.xml": xml}

    def install(self, job: Job) -> dict[str, Any]:
        triggers = self.validate(job.schedules)
        xml = self.task_xml(job, triggers)
        name = self.task_name(job)
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / f"{job.profile}.xml"
            path.write_text(xml, encoding="utf-16")
            self._run("schtasks", "/Create", "/TN", name, "/XML", str(path), "/F")
        logger.info("Registered task %s", name)
        return {"task": name, "triggers": len(triggers)}

    def remove(self, job: Job) -> dict[str, Any]:
        name = self.task_name(job)
        self._run("schtasks", "/Delete", "/TN", name, "/F")
        return {"task": name}

    def status(self, job: Job) -> dict[str, Any]:
        result = self._run("schtasks", "/Query", "/TN", self.task_name(job), "/V", "/FO", "LIST")
        return _parse_query(result.stdout)
