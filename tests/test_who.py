"""
Tests for utmp parsing and who_list().
"""

import errno

import pytest

from hostfacts.config import PlatformInfo
from hostfacts.core import who
from hostfacts.core.errors import ErrorKind
from hostfacts.core.who import UTMP_RECORD, USER_PROCESS, parse_utmp, who_list

LOGIN_PROCESS = 6


def utmp(ut_type, user, line="pts/0", host="", when=1_700_000_000):
    return UTMP_RECORD.pack(
        ut_type, 1234, line.encode(), b"ts/0", user.encode(), host.encode(),
        0, 0, 0, when, 0, 0, 0, 0, 0,
    )


def test_record_size_matches_linux():
    assert UTMP_RECORD.size == 384


def test_only_user_processes_reported():
    data = (
        utmp(USER_PROCESS, "alice", "pts/0", "10.1.1.1")
        + utmp(LOGIN_PROCESS, "LOGIN", "tty1")
        + utmp(USER_PROCESS, "", "pts/3")
        + utmp(USER_PROCESS, "bob", "tty2", when=42)
    )
    entries = parse_utmp(data)
    assert entries.count == 2
    alice, bob = entries
    assert (alice.user, alice.device, alice.host) == ("alice", "pts/0", "10.1.1.1")
    assert (bob.user, bob.device, bob.host, bob.time) == ("bob", "tty2", "", 42)


def test_trailing_partial_record_ignored():
    data = utmp(USER_PROCESS, "alice") + b"\0" * 100
    assert parse_utmp(data).count == 1


def test_who_list_reads_file(tmp_path, monkeypatch):
    monkeypatch.setattr(who, "PLATFORM", PlatformInfo(system="Linux"))
    path = tmp_path / "utmp"
    path.write_bytes(utmp(USER_PROCESS, "carol", "pts/1"))
    result = who_list(str(path))
    assert result.ok
    assert [w.user for w in result.value] == ["carol"]


def test_who_list_empty_file(tmp_path, monkeypatch):
    monkeypatch.setattr(who, "PLATFORM", PlatformInfo(system="Linux"))
    path = tmp_path / "utmp"
    path.write_bytes(b"")
    result = who_list(str(path))
    assert result.ok
    assert result.value.count == 0


def test_who_list_missing_file(tmp_path, monkeypatch):
    monkeypatch.setattr(who, "PLATFORM", PlatformInfo(system="Linux"))
    result = who_list(str(tmp_path / "nope"))
    assert result.error.kind is ErrorKind.SYSTEM
    assert result.error.code == errno.ENOENT


@pytest.mark.parametrize("system", ["Windows", "Darwin"])
def test_who_list_unsupported(system, monkeypatch):
    monkeypatch.setattr(who, "PLATFORM", PlatformInfo(system=system))
    assert who_list().error.kind is ErrorKind.NOT_IMPLEMENTED
