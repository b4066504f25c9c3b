"""Interval tree builder.

Stages the constrained domains of a :class:`ScheduleSpec` in canonical
field order.  No values are computed here; the tree can be inspected
(fields, expected size) without materializing the expansion.
"""

from __future__ import annotations

import math
from collections.abc import Iterator
from dataclasses import dataclass

from schedctl.domain.fields import Field, FieldDomain
from schedctl.domain.normalizer import ScheduleSpec


@dataclass(frozen=True)
class ScheduleTree:
    """Constrained field domains, outermost (weekday) first."""

    levels: tuple[FieldDomain, ...]

    @property
    def fields(self) -> tuple[Field, ...]:
        return tuple(level.field for level in self.levels)

    @property
    def size(self) -> int:
        """Number of intervals the expansion will produce."""
        return math.prod(level.size for level in self.levels)

    def __iter__(self) -> Iterator[FieldDomain]:
        return iter(self.levels)


def build_tree(spec: ScheduleSpec) -> ScheduleTree:
    """Keep only the constrained domains of *spec*, in canonical order."""
    return ScheduleTree(levels=tuple(d for d in spec.domains if d.constrained))
