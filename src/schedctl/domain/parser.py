"""Field constraint parser for systemd-calendar-style expressions.

Grammar (clauses separated by whitespace, in this order, each optional
but at least one present)::

    [weekdays] [date] [time]

    weekdays  := item ("," item)*          item := NAME | NAME ".." NAME
    date      := [Y "-"] M "-" D
    time      := H ":" M [":" S]
    component := "*" | term ("," term)*
    term      := (INT | INT ".." INT | "*") ["/" INT]

The parser only checks shape: weekday names are known, numeric
components are digits.  Bounds and ranges are resolved by
:mod:`schedctl.domain.normalizer`.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from schedctl.domain.errors import EmptySpecError, ScheduleSyntaxError
from schedctl.domain.fields import FIELD_ORDER, WEEKDAY_NAMES, Field

_DIGITS = re.compile(r"[0-9]+")

# systemd shorthand keywords and their canonical form.
SHORTHANDS: dict[str, str] = {
    "minutely": "*-*-* *:*:00",
    "hourly": "*-*-* *:00:00",
    "daily": "*-*-* 00:00:00",
    "weekly": "Mon *-*-* 00:00:00",
    "monthly": "*-*-01 00:00:00",
    "quarterly": "*-01,04,07,10-01 00:00:00",
    "semiannually": "*-01,07-01 00:00:00",
    "yearly": "*-01-01 00:00:00",
    "annually": "*-01-01 00:00:00",
}

_CLAUSE_RANK = {"weekday": 0, "date": 1, "time": 2}


@dataclass(frozen=True)
class Term:
    """One comma-separated term: a value, an inclusive range, or ``*``, with an optional step."""

    start: str
    end: str | None = None
    step: int | None = None


@dataclass(frozen=True)
class FieldTokens:
    """Raw terms for one field; ``terms`` is None for a wildcard."""

    field: Field
    terms: tuple[Term, ...] | None = None

    @property
    def wildcard(self) -> bool:
        return self.terms is None


@dataclass(frozen=True)
class ParsedExpression:
    """Tokenized expression: one :class:`FieldTokens` per field in canonical order."""

    text: str
    tokens: tuple[FieldTokens, ...]
    has_date: bool
    has_time: bool

    def get(self, field: Field) -> FieldTokens:
        return self.tokens[FIELD_ORDER.index(field)]


def parse_expression(text: str) -> ParsedExpression:
    """Tokenize *text* into per-field terms.

    Raises:
        EmptySpecError: *text* is empty or blank.
        ScheduleSyntaxError: a clause cannot be tokenized.
    """
    if text is None or not text.strip():
        raise EmptySpecError("empty schedule", expression=text)

    source = text.strip()
    expanded = SHORTHANDS.get(source.lower(), source)

    found: dict[Field, FieldTokens] = {}
    has_date = False
    has_time = False
    last_rank = -1

    for clause in expanded.split():
        kind = _classify(clause, source)
        rank = _CLAUSE_RANK[kind]
        if rank <= last_rank:
            msg = f"unexpected {kind} clause {clause!r} in {source!r}"
            raise ScheduleSyntaxError(msg, expression=source)
        last_rank = rank

        if kind == "weekday":
            found[Field.WEEKDAY] = _parse_weekdays(clause, source)
        elif kind == "date":
            has_date = True
            found.update(_parse_date(clause, source))
        else:
            has_time = True
            found.update(_parse_time(clause, source))

    tokens = tuple(found.get(field, FieldTokens(field)) for field in FIELD_ORDER)
    return ParsedExpression(text=source, tokens=tokens, has_date=has_date, has_time=has_time)


def _classify(clause: str, source: str) -> str:
    if ":" in clause:
        return "time"
    if "-" in clause:
        return "date"
    if clause[0].isalpha():
        return "weekday"
    msg = f"cannot parse clause {clause!r} in {source!r}"
    raise ScheduleSyntaxError(msg, expression=source)


def _parse_weekdays(clause: str, source: str) -> FieldTokens:
    terms: list[Term] = []
    for item in clause.split(","):
        start, dots, end = item.partition("..")
        names = [start, end] if dots else [start]
        for name in names:
            if name.lower() not in WEEKDAY_NAMES:
                msg = f"unknown weekday {name!r} in {source!r}"
                raise ScheduleSyntaxError(msg, expression=source)
        terms.append(Term(start.lower(), end.lower() if dots else None))
    return FieldTokens(Field.WEEKDAY, tuple(terms))


def _parse_date(clause: str, source: str) -> dict[Field, FieldTokens]:
    parts = clause.split("-")
    if len(parts) == 3:
        fields = (Field.YEAR, Field.MONTH, Field.DAY)
    elif len(parts) == 2:
        fields = (Field.MONTH, Field.DAY)
    else:
        msg = f"date clause {clause!r} must be Y-M-D or M-D in {source!r}"
        raise ScheduleSyntaxError(msg, expression=source)
    return {f: _parse_component(f, p, source) for f, p in zip(fields, parts, strict=True)}


def _parse_time(clause: str, source: str) -> dict[Field, FieldTokens]:
    parts = clause.split(":")
    if len(parts) == 3:
        fields = (Field.HOUR, Field.MINUTE, Field.SECOND)
    elif len(parts) == 2:
        fields = (Field.HOUR, Field.MINUTE)
    else:
        msg = f"time clause {clause!r} must be H:M or H:M:S in {source!r}"
        raise ScheduleSyntaxError(msg, expression=source)
    return {f: _parse_component(f, p, source) for f, p in zip(fields, parts, strict=True)}


def _parse_component(field: Field, text: str, source: str) -> FieldTokens:
    if text == "*":
        return FieldTokens(field)

    terms: list[Term] = []
    for raw in text.split(","):
        body, slash, step_text = raw.partition("/")
        step: int | None = None
        if slash:
            if not _DIGITS.fullmatch(step_text):
                raise _bad_component(field, raw, source)
            step = int(step_text)

        if body == "*":
            if step is None:
                raise _bad_component(field, raw, source)
            terms.append(Term("*", None, step))
            continue

        start, dots, end = body.partition("..")
        if not _DIGITS.fullmatch(start) or (dots and not _DIGITS.fullmatch(end)):
            raise _bad_component(field, raw, source)
        terms.append(Term(start, end if dots else None, step))

    return FieldTokens(field, tuple(terms))


def _bad_component(field: Field, raw: str, source: str) -> ScheduleSyntaxError:
    msg = f"invalid {field} value {raw!r} in {source!r}"
    return ScheduleSyntaxError(msg, expression=source)
