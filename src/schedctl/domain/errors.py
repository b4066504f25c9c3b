"""Schedule error taxonomy.

Every failure of the parse/expand pipeline is a :class:`ScheduleError`.
No error is downgraded: a failed parse never yields a partial sequence.
"""

from __future__ import annotations


class ScheduleError(ValueError):
    """Base class for schedule expression errors."""

    code = "INVALID_SCHEDULE"

    def __init__(self, message: str, *, expression: str | None = None) -> None:
        super().__init__(message)
        self.expression = expression


class EmptySpecError(ScheduleError):
    """The expression is empty or blank."""

    code = "EMPTY_SCHEDULE"


class ScheduleSyntaxError(ScheduleError):
    """A clause of the expression cannot be tokenized."""

    code = "INVALID_SCHEDULE"


class RangeError(ScheduleError):
    """A value or range lies outside its field bounds, or is inverted."""

    code = "OUT_OF_RANGE"


class UnsupportedTriggerError(ScheduleError):
    """The expansion cannot be represented by a target scheduler."""

    code = "UNSUPPORTED_TRIGGER"
