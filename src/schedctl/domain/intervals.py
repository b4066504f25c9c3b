"""Calendar interval records and the expansion entry point.

:func:`expand` is the single public entry point of the engine::

    parse_expression -> normalize -> apply_midnight_default -> build_tree -> expand_tree

INVARIANT: a record carries exactly the fields the expression constrained
(directly or through the midnight default). Unconstrained fields are
absent, never present with a wildcard marker.
"""

from __future__ import annotations

import itertools
import logging
from collections.abc import Iterable
from dataclasses import dataclass

from schedctl.domain.fields import FIELD_ORDER, Field
from schedctl.domain.normalizer import apply_midnight_default, normalize
from schedctl.domain.parser import parse_expression
from schedctl.domain.tree import ScheduleTree, build_tree

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CalendarInterval:
    """One concrete recurrence pattern; ``None`` means the field is absent."""

    weekday: int | None = None
    year: int | None = None
    month: int | None = None
    day: int | None = None
    hour: int | None = None
    minute: int | None = None
    second: int | None = None

    @classmethod
    def from_pairs(cls, pairs: Iterable[tuple[Field, int]]) -> CalendarInterval:
        return cls(**{field.value: value for field, value in pairs})

    @property
    def present(self) -> int:
        """Bitmask of present fields (see :attr:`Field.bit`)."""
        mask = 0
        for field in FIELD_ORDER:
            if getattr(self, field.value) is not None:
                mask |= field.bit
        return mask

    @property
    def present_fields(self) -> tuple[Field, ...]:
        return tuple(f for f in FIELD_ORDER if getattr(self, f.value) is not None)

    def has(self, field: Field) -> bool:
        return bool(self.present & field.bit)

    def get(self, field: Field) -> int | None:
        return getattr(self, field.value)

    def to_dict(self) -> dict[str, int]:
        """Present fields only, keyed by lower-case field name, canonical order."""
        return {f.value: getattr(self, f.value) for f in self.present_fields}


def expand_tree(tree: ScheduleTree) -> list[CalendarInterval]:
    """Cartesian product over the tree's levels.

    The outermost level varies slowest; values ascend within each level.
    A tree without levels yields a single empty record ("every instant").
    """
    fields = tree.fields
    domains = [level.values or () for level in tree.levels]
    return [
        CalendarInterval.from_pairs(zip(fields, combo, strict=True))
        for combo in itertools.product(*domains)
    ]


def expand(expression: str) -> list[CalendarInterval]:
    """Parse and expand *expression* into ordered calendar intervals.

    Raises:
        EmptySpecError: blank expression.
        ScheduleSyntaxError: a clause cannot be tokenized.
        RangeError: out-of-bound value, inverted range, or zero step.
    """
    spec = apply_midnight_default(normalize(parse_expression(expression)))
    tree = build_tree(spec)
    logger.debug(
        "Expanding %r over %s (%d intervals)",
        expression,
        ",".join(tree.fields) or "-",
        tree.size,
    )
    return expand_tree(tree)
