"""Constraint normalizer — raw terms to discrete integer domains.

The midnight-fill rule is a separate step (:func:`apply_midnight_default`)
applied to the immutable :class:`ScheduleSpec`, driven by its explicit
``has_time`` flag.
"""

from __future__ import annotations

from dataclasses import dataclass

from schedctl.domain.errors import RangeError
from schedctl.domain.fields import FIELD_ORDER, WEEKDAY_NAMES, Field, FieldDomain
from schedctl.domain.parser import FieldTokens, ParsedExpression, Term


@dataclass(frozen=True)
class ScheduleSpec:
    """Normalized expression: one :class:`FieldDomain` per field, canonical order."""

    domains: tuple[FieldDomain, ...]
    has_time: bool

    def domain(self, field: Field) -> FieldDomain:
        return self.domains[FIELD_ORDER.index(field)]

    @property
    def constrained_fields(self) -> tuple[Field, ...]:
        return tuple(d.field for d in self.domains if d.constrained)


def normalize(parsed: ParsedExpression) -> ScheduleSpec:
    """Resolve every field's terms into a :class:`FieldDomain`.

    A second domain of exactly ``{0}`` is treated as unconstrained: every
    trigger already fires at second zero.

    Raises:
        RangeError: a value is out of bounds, a range is inverted, or a step is zero.
    """
    domains: list[FieldDomain] = []
    for tokens in parsed.tokens:
        domain = _resolve(tokens, parsed.text)
        if domain.field is Field.SECOND and domain.values == (0,):
            domain = FieldDomain.wildcard(Field.SECOND)
        domains.append(domain)
    return ScheduleSpec(domains=tuple(domains), has_time=parsed.has_time)


def apply_midnight_default(spec: ScheduleSpec) -> ScheduleSpec:
    """Inject hour=0 and minute=0 when the expression had no time clause.

    Second stays unconstrained. A spec with a time clause, even a partial
    one, is returned unchanged.
    """
    if spec.has_time:
        return spec
    defaults = {Field.HOUR: (0,), Field.MINUTE: (0,)}
    domains = tuple(
        FieldDomain(d.field, defaults[d.field]) if d.field in defaults else d for d in spec.domains
    )
    return ScheduleSpec(domains=domains, has_time=False)


def _resolve(tokens: FieldTokens, source: str) -> FieldDomain:
    if tokens.terms is None:
        return FieldDomain.wildcard(tokens.field)

    values: set[int] = set()
    for term in tokens.terms:
        if tokens.field is Field.WEEKDAY:
            values.update(_weekday_values(term))
        else:
            values.update(_numeric_values(tokens.field, term, source))
    return FieldDomain.of(tokens.field, values)


def _weekday_values(term: Term) -> list[int]:
    """Weekday ranges wrap around the week (``Sat..Mon`` = 6, 0, 1)."""
    first = WEEKDAY_NAMES[term.start]
    if term.end is None:
        return [first]
    last = WEEKDAY_NAMES[term.end]
    days = [first]
    day = first
    while day != last:
        day = (day + 1) % 7
        days.append(day)
    return days


def _numeric_values(field: Field, term: Term, source: str) -> range:
    low, high = field.bounds

    if term.step is not None and term.step == 0:
        msg = f"{field} step must be positive in {source!r}"
        raise RangeError(msg, expression=source)
    step = term.step or 1

    if term.start == "*":
        return range(low, high + 1, step)

    start = _bounded(field, int(term.start), source)
    if term.end is not None:
        end = _bounded(field, int(term.end), source)
        if start > end:
            msg = f"inverted {field} range {term.start}..{term.end} in {source!r}"
            raise RangeError(msg, expression=source)
    elif term.step is not None:
        end = high
    else:
        end = start
    return range(start, end + 1, step)


def _bounded(field: Field, value: int, source: str) -> int:
    low, high = field.bounds
    if not low <= value <= high:
        msg = f"{field} value {value} outside {low}..{high} in {source!r}"
        raise RangeError(msg, expression=source)
    return value
