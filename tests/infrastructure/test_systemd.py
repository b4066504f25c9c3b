"""Tests for the systemd handler."""

from pathlib import Path

import pytest

from schedctl.domain.errors import EmptySpecError, ScheduleSyntaxError
from schedctl.infrastructure.schedulers.base import Job, SchedulerError
from schedctl.infrastructure.schedulers.systemd import (
    SystemdHandler,
    _user_unit_dir,
    systemd_escape,
)

ANALYZE_OK = """\
  Original form: Mon..Fri 02:30
Normalized form: Mon..Fri *-*-* 02:30:00
    Next elapse: Tue 2026-10-20 02:30:00 UTC
       From now: 9h left
"""


@pytest.fixture
def handler(tmp_path: Path) -> SystemdHandler:
    return SystemdHandler(user_dir=tmp_path / "user", system_dir=tmp_path / "system")


def _job(**overrides) -> Job:
    values = {
        "profile": "backup",
        "program": Path("/usr/bin/restic"),
        "arguments": ("--verbose", "backup files"),
        "schedules": ("Mon..Fri 02:30", "Sat 04:00"),
        "working_directory": Path("/srv"),
    }
    values.update(overrides)
    return Job(**values)


class TestValidate:
    def test_forwards_raw_expression(self, handler: SystemdHandler, fake_run) -> None:
        fake_run.responses["systemd-analyze"] = (0, ANALYZE_OK, "")
        checked = handler.validate(("Mon..Fri 02:30",))
        assert fake_run.calls == [["systemd-analyze", "calendar", "Mon..Fri 02:30"]]
        assert checked == [
            {
                "schedule": "Mon..Fri 02:30",
                "normalized": "Mon..Fri *-*-* 02:30:00",
                "next": "Tue 2026-10-20 02:30:00 UTC",
            }
        ]

    def test_rejected(self, handler: SystemdHandler, fake_run) -> None:
        fake_run.responses["systemd-analyze"] = (1, "", "Failed to parse calendar specification")
        with pytest.raises(ScheduleSyntaxError, match="Failed to parse") as exc_info:
            handler.validate(("Mon..Fry",))
        assert exc_info.value.expression == "Mon..Fry"

    def test_blank(self, handler: SystemdHandler, fake_run) -> None:
        with pytest.raises(EmptySpecError):
            handler.validate(("  ",))
        assert fake_run.calls == []

    def test_tool_missing(self, handler: SystemdHandler, monkeypatch: pytest.MonkeyPatch) -> None:
        import subprocess

        def _missing(*args, **kwargs):
            raise FileNotFoundError("systemd-analyze")

        monkeypatch.setattr(subprocess, "run", _missing)
        with pytest.raises(SchedulerError, match="systemd-analyze not found"):
            handler.validate(("daily",))


class TestRender:
    def test_unit_names(self, handler: SystemdHandler) -> None:
        assert sorted(handler.render(_job())) == [
            "schedctl-backup.service",
            "schedctl-backup.timer",
        ]

    def test_timer_one_calendar_per_schedule(self, handler: SystemdHandler) -> None:
        timer = handler.render(_job())["schedctl-backup.timer"]
        assert "OnCalendar=Mon..Fri 02:30\n" in timer
        assert "OnCalendar=Sat 04:00\n" in timer
        assert "Unit=schedctl-backup.service" in timer
        assert "WantedBy=timers.target" in timer

    def test_service(self, handler: SystemdHandler) -> None:
        service = handler.render(_job(environment={"RESTIC_REPOSITORY": "/mnt/repo"}))[
            "schedctl-backup.service"
        ]
        assert "ExecStart=/usr/bin/restic --verbose 'backup files'" in service
        assert "WorkingDirectory=/srv" in service
        assert 'Environment="RESTIC_REPOSITORY=/mnt/repo"' in service
        assert "Nice=19" in service
        assert "StandardOutput" not in service

    def test_environment_escaped(self, handler: SystemdHandler) -> None:
        env = {"RESTIC_PASSWORD": 'a"b\\c 100%'}
        service = handler.render(_job(environment=env))["schedctl-backup.service"]
        assert 'Environment="RESTIC_PASSWORD=a\\"b\\\\c 100%%"' in service

    @pytest.mark.parametrize(
        "raw,escaped",
        [
            ("plain", "plain"),
            ('say "hi"', 'say \\"hi\\"'),
            ("C:\\dir", "C:\\\\dir"),
            ("a\nb", "a\\nb"),
        ],
    )
    def test_systemd_escape(self, raw: str, escaped: str) -> None:
        assert systemd_escape(raw) == escaped

    def test_log_file(self, handler: SystemdHandler) -> None:
        service = handler.render(_job(log="/var/log/backup.log", priority="standard"))[
            "schedctl-backup.service"
        ]
        assert "StandardOutput=append:/var/log/backup.log" in service
        assert "Nice=19" not in service

    def test_network_log_ignored(self, handler: SystemdHandler) -> None:
        service = handler.render(_job(log="udp://localhost:514"))["schedctl-backup.service"]
        assert "StandardOutput" not in service

    def test_template_override(self, tmp_path: Path) -> None:
        override = tmp_path / "cfg" / "templates" / "systemd" / "timer.j2"
        override.parent.mkdir(parents=True)
        override.write_text("custom {{ profile }}\n")
        handler = SystemdHandler(config_dir=tmp_path / "cfg")
        files = handler.render(_job())
        assert files["schedctl-backup.timer"] == "custom backup\n"
        assert "[Service]" in files["schedctl-backup.service"]


class TestSystemctl:
    def test_install_user(self, handler: SystemdHandler, fake_run, tmp_path: Path) -> None:
        fake_run.responses["systemd-analyze"] = (0, ANALYZE_OK, "")
        result = handler.install(_job())
        assert (tmp_path / "user" / "schedctl-backup.timer").is_file()
        assert (tmp_path / "user" / "schedctl-backup.service").is_file()
        assert fake_run.commands()[-3:] == [
            "systemctl --user daemon-reload",
            "systemctl --user enable schedctl-backup.timer",
            "systemctl --user start schedctl-backup.timer",
        ]
        assert result["timer"] == "schedctl-backup.timer"
        assert len(result["schedules"]) == 2

    def test_install_system(self, handler: SystemdHandler, fake_run, tmp_path: Path) -> None:
        handler.install(_job(permission="system"))
        assert (tmp_path / "system" / "schedctl-backup.timer").is_file()
        assert "systemctl enable schedctl-backup.timer" in fake_run.commands()

    def test_install_aborts_on_invalid_schedule(
        self, handler: SystemdHandler, fake_run, tmp_path: Path
    ) -> None:
        fake_run.responses["systemd-analyze"] = (1, "", "bad")
        with pytest.raises(ScheduleSyntaxError):
            handler.install(_job())
        assert not (tmp_path / "user").exists()
        assert all(not c.startswith("systemctl") for c in fake_run.commands())

    def test_remove(self, handler: SystemdHandler, fake_run, tmp_path: Path) -> None:
        handler.install(_job())
        fake_run.calls.clear()
        result = handler.remove(_job())
        assert not (tmp_path / "user" / "schedctl-backup.timer").exists()
        assert len(result["removed"]) == 2
        assert fake_run.commands() == [
            "systemctl --user stop schedctl-backup.timer",
            "systemctl --user disable schedctl-backup.timer",
            "systemctl --user daemon-reload",
        ]

    def test_remove_not_installed(self, handler: SystemdHandler, fake_run) -> None:
        with pytest.raises(SchedulerError, match="no systemd timer"):
            handler.remove(_job())

    def test_status_inactive(self, handler: SystemdHandler, fake_run) -> None:
        fake_run.responses[("systemctl", "--user")] = (3, "inactive (dead)\n", "")
        status = handler.status(_job())
        assert status == {
            "timer": "schedctl-backup.timer",
            "active": False,
            "output": "inactive (dead)",
        }


def test_user_unit_dir_follows_xdg(tmp_path: Path) -> None:
    assert _user_unit_dir() == tmp_path / "xdg-home" / "systemd" / "user"
