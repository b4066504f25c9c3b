"""Tests for the format_result dispatcher and OutputSettings."""

import json

from schedctl.output.formatters import OutputSettings, format_result
from schedctl.services.result import ServiceError, ServiceResult


def _ok(op: str = "test", **data: object) -> ServiceResult:
    return ServiceResult(ok=True, op=op, data=dict(data))


def _err(op: str = "test", msg: str = "fail") -> ServiceResult:
    return ServiceResult(ok=False, op=op, error=ServiceError(code="ERR", message=msg))


class TestOutputSettings:
    def test_defaults(self) -> None:
        s = OutputSettings()
        assert s.json_output is False
        assert s.quiet is False
        assert s.verbose is False


class TestFormatResultJSON:
    def test_json_mode(self) -> None:
        output = format_result(_ok("install", profile="backup"), settings=OutputSettings(True))
        data = json.loads(output)
        assert data["ok"] is True
        assert data["op"] == "install"
        assert data["data"]["profile"] == "backup"

    def test_json_mode_error(self) -> None:
        data = json.loads(format_result(_err("show", "Bad"), json_output=True))
        assert data["ok"] is False
        assert data["error"]["code"] == "ERR"
        assert data["error"]["message"] == "Bad"

    def test_settings_override_kwarg(self) -> None:
        output = format_result(_ok(), settings=OutputSettings(), json_output=True)
        assert output.startswith("OK")

    def test_json_wins_over_quiet(self) -> None:
        output = format_result(_ok(), settings=OutputSettings(json_output=True, quiet=True))
        assert json.loads(output)["ok"] is True


class TestFormatResultQuiet:
    def test_quiet_success(self) -> None:
        assert format_result(_ok("remove"), settings=OutputSettings(quiet=True)) == "OK: remove"

    def test_quiet_error(self) -> None:
        output = format_result(_err("remove", "gone"), settings=OutputSettings(quiet=True))
        assert output == "ERROR: remove: gone"

    def test_quiet_items(self) -> None:
        result = _ok("list_profiles", items=[{"name": "a"}, {"name": "b"}])
        assert format_result(result, settings=OutputSettings(quiet=True)) == "a\nb"


class TestFormatResultRich:
    def test_default_is_rich(self) -> None:
        output = format_result(_ok("status", timer="x.timer"))
        assert "OK" in output
        assert "timer: x.timer" in output
