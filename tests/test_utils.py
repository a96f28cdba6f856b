"""
Tests for report rendering and the subprocess wrapper.
"""

import subprocess
from unittest.mock import patch

from hostfacts.config import Settings
from hostfacts.core import session_log
from hostfacts.core.session_log import SessionLogger
from hostfacts.core.utils import FactReport, Status, print_result, run_command


def test_print_result_renders_and_logs(capsys):
    report = FactReport(title="Routing Table", status=Status.PARTIAL, summary="2 route(s).", details=["eth0"])
    print_result(report)
    out = capsys.readouterr().out
    assert "Routing Table" in out
    assert "WARN" in out
    assert SessionLogger.get().reports[-1] is report


def test_empty_report_says_so(capsys):
    print_result(FactReport(title="Logged-in Users", status=Status.SUCCESS))
    assert "(no details)" in capsys.readouterr().out


def test_run_command_missing_binary():
    with patch("hostfacts.core.utils.subprocess.run", side_effect=FileNotFoundError):
        rc, out, err = run_command(["mount"])
    assert (rc, out) == (-1, "")
    assert err == "Command not found: mount"


def test_run_command_timeout():
    with patch("hostfacts.core.utils.subprocess.run", side_effect=subprocess.TimeoutExpired("mount", 10)):
        assert run_command(["mount"], timeout=10) == (-2, "", "Command timed out after 10s")


def test_run_command_decodes_output():
    done = subprocess.CompletedProcess(["mount"], 0, stdout=b"/dev/sda1 on / type ext4 (rw)\n\xff", stderr=b"")
    with patch("hostfacts.core.utils.subprocess.run", return_value=done):
        rc, out, err = run_command(["mount"])
    assert rc == 0
    assert out.startswith("/dev/sda1 on /")
    assert err == ""


def test_unusable_log_dir_does_not_break_rendering(tmp_path, monkeypatch, capsys):
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("")
    monkeypatch.setattr(session_log, "SETTINGS", Settings(log_dir=str(blocker / "logs")))
    print_result(FactReport(title="Filesystems", status=Status.SUCCESS, summary="3 mount(s)."))
    assert "3 mount(s)." in capsys.readouterr().out
    assert SessionLogger._instance is None
