"""Shared pytest fixtures and test helpers for schedctl tests."""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner

from schedctl.config.settings import SchedSettings

PROFILES_TOML = """\
[scheduler]
backend = "systemd"
label_prefix = "test.schedctl"

[profiles.backup]
command = "{command}"
args = ["--verbose", "backup"]
schedule = ["Mon..Fri *-*-* 02:30", "Sat 04:00"]
log = "backup.log"

[profiles.check]
command = "{command}"
schedule = "daily"
permission = "user"
priority = "standard"

[profiles.idle]
command = "{command}"
"""


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture(autouse=True)
def _isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Run every test from an empty directory with private XDG paths.

    Keeps a real ``~/.config/schedctl/profiles.toml`` out of the tests.
    """
    work = tmp_path / "work"
    work.mkdir()
    monkeypatch.chdir(work)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg-home"))
    monkeypatch.setenv("XDG_CONFIG_DIRS", str(tmp_path / "xdg-dirs"))
    for var in ("SCHEDCTL_CONFIG", "SCHEDCTL_JSON_OUTPUT", "SCHEDCTL_SCHEDULER__BACKEND"):
        monkeypatch.delenv(var, raising=False)
    return work


@pytest.fixture
def fake_binary(tmp_path: Path) -> Path:
    """An executable file standing in for the scheduled program."""
    binary = tmp_path / "bin" / "restic"
    binary.parent.mkdir()
    binary.write_text("#!/bin/sh\n")
    binary.chmod(0o755)
    return binary


@pytest.fixture
def profiles_file(tmp_path: Path, fake_binary: Path) -> Path:
    """A profiles.toml with three profiles, next to nothing else."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    path = config_dir / "profiles.toml"
    path.write_text(PROFILES_TOML.format(command=fake_binary))
    return path


@pytest.fixture
def settings(profiles_file: Path) -> SchedSettings:
    """Settings loaded from :func:`profiles_file`."""
    return SchedSettings.from_cli(config_path=profiles_file)


class FakeRun:
    """Records ``subprocess.run`` calls and answers from a script.

    ``responses`` maps the first two argv items (e.g. ``("launchctl", "list")``)
    or the program name to ``(returncode, stdout, stderr)``.
    """

    def __init__(self) -> None:
        self.calls: list[list[str]] = []
        self.responses: dict[Any, tuple[int, str, str]] = {}

    def __call__(self, args: list[str], **kwargs: Any) -> subprocess.CompletedProcess[str]:
        self.calls.append(list(args))
        code, out, err = self.responses.get(
            tuple(args[:2]), self.responses.get(args[0], (0, "", ""))
        )
        if kwargs.get("check") and code != 0:
            raise subprocess.CalledProcessError(code, args, output=out, stderr=err)
        return subprocess.CompletedProcess(args, code, stdout=out, stderr=err)

    def commands(self) -> list[str]:
        return [" ".join(call) for call in self.calls]


@pytest.fixture
def fake_run(monkeypatch: pytest.MonkeyPatch) -> FakeRun:
    """Replace ``subprocess.run`` for scheduler handlers."""
    runner = FakeRun()
    monkeypatch.setattr(subprocess, "run", runner)
    return runner


def write(path: Path, content: str) -> Path:
    """Write *content* to *path*, creating parents."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    return path

