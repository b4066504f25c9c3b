"""Tests for domain resolution and the midnight default."""

import pytest

from schedctl.domain.errors import RangeError
from schedctl.domain.fields import Field, FieldDomain
from schedctl.domain.normalizer import apply_midnight_default, normalize
from schedctl.domain.parser import parse_expression


def _spec(text: str):
    return normalize(parse_expression(text))


class TestNormalize:
    def test_values_sorted_and_unique(self) -> None:
        spec = _spec("*:30,0,30,15")
        assert spec.domain(Field.MINUTE).values == (0, 15, 30)

    def test_inclusive_range(self) -> None:
        assert _spec("*-*-01..06").domain(Field.DAY).values == (1, 2, 3, 4, 5, 6)

    def test_step_from_start_runs_to_bound(self) -> None:
        assert _spec("*:45/5").domain(Field.MINUTE).values == (45, 50, 55)

    def test_wildcard_step(self) -> None:
        assert _spec("*/6:00").domain(Field.HOUR).values == (0, 6, 12, 18)

    def test_range_with_step(self) -> None:
        assert _spec("8..17/3:00").domain(Field.HOUR).values == (8, 11, 14, 17)

    def test_weekday_names(self) -> None:
        assert _spec("Mon..Fri").domain(Field.WEEKDAY).values == (1, 2, 3, 4, 5)

    def test_weekday_range_wraps(self) -> None:
        assert _spec("Sat..Mon").domain(Field.WEEKDAY).values == (0, 1, 6)

    def test_second_zero_is_unconstrained(self) -> None:
        spec = _spec("*:0,30:00")
        assert spec.domain(Field.SECOND) == FieldDomain.wildcard(Field.SECOND)

    def test_nonzero_second_kept(self) -> None:
        assert _spec("*:00:15").domain(Field.SECOND).values == (15,)

    def test_constrained_fields(self) -> None:
        spec = _spec("Sun *-*-01..06 03:30:00")
        assert spec.constrained_fields == (Field.WEEKDAY, Field.DAY, Field.HOUR, Field.MINUTE)


class TestRangeErrors:
    @pytest.mark.parametrize(
        "text",
        [
            "*-13-01",
            "*-00-01",
            "*-*-32",
            "*-*-00",
            "24:00",
            "*:60",
            "*:00:60",
            "1969-*-*",
            "2200-*-*",
            "*-*-10..01",
            "*:0/0",
        ],
    )
    def test_out_of_range(self, text: str) -> None:
        with pytest.raises(RangeError) as exc_info:
            _spec(text)
        assert exc_info.value.code == "OUT_OF_RANGE"


class TestMidnightDefault:
    def test_date_only_gets_midnight(self) -> None:
        spec = apply_midnight_default(_spec("*-*-*"))
        assert spec.domain(Field.HOUR).values == (0,)
        assert spec.domain(Field.MINUTE).values == (0,)
        assert not spec.domain(Field.SECOND).constrained

    def test_weekday_only_gets_midnight(self) -> None:
        spec = apply_midnight_default(_spec("Mon"))
        assert spec.constrained_fields == (Field.WEEKDAY, Field.HOUR, Field.MINUTE)

    def test_partial_time_left_alone(self) -> None:
        spec = _spec("*:0,30")
        assert apply_midnight_default(spec) is spec
        assert not spec.domain(Field.HOUR).constrained

    def test_original_spec_not_mutated(self) -> None:
        spec = _spec("*-*-*")
        apply_midnight_default(spec)
        assert not spec.domain(Field.HOUR).constrained
