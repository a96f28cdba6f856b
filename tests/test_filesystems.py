"""
Tests for mount-table parsing and filesystem type classification.
"""

from unittest.mock import patch

import pytest

from hostfacts.config import PlatformInfo
from hostfacts.core import filesystems
from hostfacts.core.errors import ErrorKind
from hostfacts.core.filesystems import (
    FileSystem,
    FileSystemType,
    file_system_list,
    fs_type_get,
    parse_mount_output,
    parse_proc_mounts,
)

PROC_MOUNTS = """\
/dev/sda1 / ext4 rw,relatime 0 0
proc /proc proc rw,nosuid,nodev,noexec 0 0
tmpfs /run tmpfs rw,nosuid,nodev,mode=755 0 0
server:/export /mnt/nfs nfs rw,vers=3 0 0
/dev/sr0 /media/My\\040Disc iso9660 ro 0 0
garbage
"""

MACOS_MOUNT = """\
/dev/disk3s1s1 on / (apfs, sealed, local, read-only, journaled)
devfs on /dev (devfs, local, nobrowse)
//user@nas/share on /Volumes/share (smbfs, nodev, nosuid, mounted by user)
"""

LINUX_MOUNT = """\
/dev/sda1 on / type ext4 (rw,relatime)
tmpfs on /run type tmpfs (rw,nosuid)
"""


@pytest.fixture
def linux(monkeypatch):
    monkeypatch.setattr(filesystems, "PLATFORM", PlatformInfo(system="Linux"))


@pytest.fixture
def macos(monkeypatch):
    monkeypatch.setattr(filesystems, "PLATFORM", PlatformInfo(system="Darwin"))


class TestTypes:
    @pytest.mark.parametrize(
        "name,expected,label",
        [
            ("ext4", FileSystemType.LOCAL_DISK, "local"),
            ("nfs", FileSystemType.NETWORK, "remote"),
            ("tmpfs", FileSystemType.RAM_DISK, "ram"),
            ("iso9660", FileSystemType.CDROM, "cdrom"),
            ("swap", FileSystemType.SWAP, "swap"),
            ("proc", FileSystemType.NONE, "none"),
        ],
    )
    def test_linux_classification(self, linux, name, expected, label):
        fsp = FileSystem(dir_name="/x", dev_name="d", sys_type_name=name)
        fs_type_get(fsp)
        assert fsp.type == expected
        assert fsp.type_name == label

    def test_preset_type_kept(self, linux):
        fsp = FileSystem(dir_name="/x", dev_name="d", sys_type_name="ext4", type=FileSystemType.NETWORK)
        fs_type_get(fsp)
        assert fsp.type_name == "remote"

    def test_out_of_range_type_becomes_none(self, linux):
        fsp = FileSystem(dir_name="/x", dev_name="d", sys_type_name="ext4", type=99)
        fs_type_get(fsp)
        assert fsp.type == FileSystemType.NONE
        assert fsp.type_name == "none"

    def test_os_table_consulted_first(self, macos):
        fsp = FileSystem(dir_name="/", dev_name="d", sys_type_name="apfs")
        fs_type_get(fsp)
        assert fsp.type == FileSystemType.LOCAL_DISK


class TestParsers:
    def test_proc_mounts(self, linux):
        fslist = parse_proc_mounts(PROC_MOUNTS)
        assert [f.dir_name for f in fslist] == ["/", "/proc", "/run", "/mnt/nfs", "/media/My Disc"]
        assert [f.type_name for f in fslist] == ["local", "none", "ram", "remote", "cdrom"]
        assert fslist[0].options == "rw,relatime"
        assert fslist[3].dev_name == "server:/export"

    def test_bsd_mount_output(self, macos):
        fslist = parse_mount_output(MACOS_MOUNT)
        assert [f.dir_name for f in fslist] == ["/", "/dev", "/Volumes/share"]
        assert [f.sys_type_name for f in fslist] == ["apfs", "devfs", "smbfs"]
        assert fslist[2].type == FileSystemType.NETWORK
        assert fslist[0].options.startswith("sealed,local")

    def test_sysv_mount_output(self, linux):
        fslist = parse_mount_output(LINUX_MOUNT)
        assert [(f.dir_name, f.sys_type_name, f.options) for f in fslist] == [
            ("/", "ext4", "rw,relatime"),
            ("/run", "tmpfs", "rw,nosuid"),
        ]


class TestList:
    def test_reads_given_mounts_file(self, linux, tmp_path):
        path = tmp_path / "mounts"
        path.write_text(PROC_MOUNTS)
        result = file_system_list(str(path))
        assert result.ok
        assert result.value.count == 5

    def test_missing_mounts_file(self, linux, tmp_path):
        result = file_system_list(str(tmp_path / "nope"))
        assert result.error.kind is ErrorKind.SYSTEM

    def test_runs_mount_elsewhere(self, macos):
        with patch("hostfacts.core.filesystems.run_command", return_value=(0, MACOS_MOUNT, "")) as run:
            result = file_system_list()
        run.assert_called_once()
        assert run.call_args[0][0] == ["mount"]
        assert result.value.count == 3

    def test_mount_failure(self, macos):
        with patch("hostfacts.core.filesystems.run_command", return_value=(-1, "", "Command not found: mount")):
            result = file_system_list()
        assert not result.ok
        assert result.error.message == "Command not found: mount"

    def test_windows_not_implemented(self, monkeypatch):
        monkeypatch.setattr(filesystems, "PLATFORM", PlatformInfo(system="Windows"))
        assert file_system_list().error.kind is ErrorKind.NOT_IMPLEMENTED
