"""Tests for the calendar expression tokenizer."""

import pytest

from schedctl.domain.errors import EmptySpecError, ScheduleSyntaxError
from schedctl.domain.fields import Field
from schedctl.domain.parser import SHORTHANDS, Term, parse_expression


class TestClauses:
    def test_date_only(self) -> None:
        parsed = parse_expression("*-*-*")
        assert parsed.has_date is True
        assert parsed.has_time is False
        assert all(t.wildcard for t in parsed.tokens)

    def test_time_only(self) -> None:
        parsed = parse_expression("*:0,30")
        assert parsed.has_date is False
        assert parsed.has_time is True
        assert parsed.get(Field.HOUR).wildcard
        assert parsed.get(Field.MINUTE).terms == (Term("0"), Term("30"))
        assert parsed.get(Field.SECOND).wildcard

    def test_full_expression(self) -> None:
        parsed = parse_expression("Mon..Fri *-*-* *:0,30:00")
        assert parsed.get(Field.WEEKDAY).terms == (Term("mon", "fri"),)
        assert parsed.get(Field.SECOND).terms == (Term("00"),)

    def test_month_day_date(self) -> None:
        parsed = parse_expression("12-25")
        assert parsed.get(Field.YEAR).wildcard
        assert parsed.get(Field.MONTH).terms == (Term("12"),)
        assert parsed.get(Field.DAY).terms == (Term("25"),)

    def test_tokens_in_canonical_order(self) -> None:
        parsed = parse_expression("Sun *-*-01..06 03:30:00")
        assert [t.field for t in parsed.tokens] == list(Field)

    def test_surrounding_whitespace_ignored(self) -> None:
        assert parse_expression("  *:15  ").text == "*:15"


class TestComponents:
    def test_range(self) -> None:
        parsed = parse_expression("*-*-01..06")
        assert parsed.get(Field.DAY).terms == (Term("01", "06"),)

    def test_step(self) -> None:
        parsed = parse_expression("*:0/15")
        assert parsed.get(Field.MINUTE).terms == (Term("0", None, 15),)

    def test_wildcard_step(self) -> None:
        parsed = parse_expression("*/2:00")
        assert parsed.get(Field.HOUR).terms == (Term("*", None, 2),)

    def test_weekday_names_case_insensitive(self) -> None:
        parsed = parse_expression("MONDAY,sat")
        assert parsed.get(Field.WEEKDAY).terms == (Term("monday"), Term("sat"))


class TestShorthands:
    @pytest.mark.parametrize("keyword", sorted(SHORTHANDS))
    def test_keyword_expands(self, keyword: str) -> None:
        parsed = parse_expression(keyword)
        assert parsed.has_time is True
        assert parsed.text == keyword

    def test_keyword_case_insensitive(self) -> None:
        assert parse_expression("Daily").get(Field.HOUR).terms == (Term("00"),)


class TestErrors:
    @pytest.mark.parametrize("text", ["", "   ", "\t\n"])
    def test_blank_is_empty_spec(self, text: str) -> None:
        with pytest.raises(EmptySpecError):
            parse_expression(text)

    @pytest.mark.parametrize(
        "text",
        [
            "Funday",
            "Mon..Blursday",
            "*:xx",
            "1-2-3-4",
            "1:2:3:4",
            "*:*/",
            "*:5/x",
            "12:00 *-*-*",
            "*-*-* Mon",
            "Mon Tue",
            "5",
            "*:1..",
        ],
    )
    def test_malformed_raises_syntax_error(self, text: str) -> None:
        with pytest.raises(ScheduleSyntaxError) as exc_info:
            parse_expression(text)
        assert exc_info.value.expression == text

    @pytest.mark.parametrize("text", ["\u0663:00", "*-*-\uff11", "*:0/\u0665"])
    def test_non_ascii_digits_rejected(self, text: str) -> None:
        with pytest.raises(ScheduleSyntaxError):
            parse_expression(text)

    def test_syntax_error_is_value_error(self) -> None:
        with pytest.raises(ValueError):
            parse_expression("nonsense")

    def test_error_codes(self) -> None:
        assert EmptySpecError.code == "EMPTY_SCHEDULE"
        assert ScheduleSyntaxError.code == "INVALID_SCHEDULE"
