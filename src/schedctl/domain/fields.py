"""Time fields and their resolved value domains.

Canonical field order (outermost to innermost) is the declaration order
of :class:`Field`: weekday, year, month, day, hour, minute, second.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import StrEnum


class Field(StrEnum):
    """One time component of a schedule expression."""

    WEEKDAY = "weekday"
    YEAR = "year"
    MONTH = "month"
    DAY = "day"
    HOUR = "hour"
    MINUTE = "minute"
    SECOND = "second"

    @property
    def bounds(self) -> tuple[int, int]:
        """Inclusive ``(low, high)`` legal values."""
        return FIELD_BOUNDS[self]

    @property
    def bit(self) -> int:
        """Presence bit used by :class:`~schedctl.domain.intervals.CalendarInterval`."""
        return 1 << FIELD_ORDER.index(self)


FIELD_ORDER: tuple[Field, ...] = tuple(Field)

DATE_FIELDS: tuple[Field, ...] = (Field.YEAR, Field.MONTH, Field.DAY)
TIME_FIELDS: tuple[Field, ...] = (Field.HOUR, Field.MINUTE, Field.SECOND)

FIELD_BOUNDS: dict[Field, tuple[int, int]] = {
    Field.WEEKDAY: (0, 6),
    Field.YEAR: (1970, 2199),
    Field.MONTH: (1, 12),
    Field.DAY: (1, 31),
    Field.HOUR: (0, 23),
    Field.MINUTE: (0, 59),
    Field.SECOND: (0, 59),
}

# Sun=0 ... Sat=6
WEEKDAY_NAMES: dict[str, int] = {
    "sun": 0,
    "sunday": 0,
    "mon": 1,
    "monday": 1,
    "tue": 2,
    "tuesday": 2,
    "wed": 3,
    "wednesday": 3,
    "thu": 4,
    "thursday": 4,
    "fri": 5,
    "friday": 5,
    "sat": 6,
    "saturday": 6,
}


@dataclass(frozen=True)
class FieldDomain:
    """Resolved set of acceptable values for one field.

    ``values`` is a sorted tuple of unique integers, or ``None`` when the
    field is unconstrained (wildcard).
    """

    field: Field
    values: tuple[int, ...] | None = None

    @classmethod
    def wildcard(cls, field: Field) -> FieldDomain:
        return cls(field, None)

    @classmethod
    def of(cls, field: Field, values: Iterable[int]) -> FieldDomain:
        """Build a constrained domain, de-duplicating and sorting *values*."""
        return cls(field, tuple(sorted(set(values))))

    @property
    def constrained(self) -> bool:
        return self.values is not None

    @property
    def size(self) -> int:
        """Number of values; 0 for a wildcard."""
        return len(self.values) if self.values is not None else 0
