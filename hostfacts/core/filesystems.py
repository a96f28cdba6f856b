"""
Mounted filesystems and their coarse type (local disk, remote, RAM, …).

Linux reads ``/proc/mounts``; other POSIX systems run ``mount`` and parse its
output.  The coarse type comes from an OS-specific table first and a table of
names common to every Unix second.
"""

from __future__ import annotations

import enum
import logging
import re
from dataclasses import dataclass
from typing import Optional

from hostfacts.config import FS_LIST_CHUNK, PLATFORM
from hostfacts.core.collection import GrowableCollection
from hostfacts.core.errors import FactError, FactResult
from hostfacts.core.utils import run_command

log = logging.getLogger(__name__)

PROC_MOUNTS = "/proc/mounts"


class FileSystemType(enum.IntEnum):
    UNKNOWN = 0
    NONE = 1
    LOCAL_DISK = 2
    NETWORK = 3
    RAM_DISK = 4
    CDROM = 5
    SWAP = 6


# indexed with FileSystemType
FSTYPE_NAMES = ("unknown", "none", "local", "remote", "ram", "cdrom", "swap")

_COMMON_TYPES = {
    "nfs": FileSystemType.NETWORK,
    "smbfs": FileSystemType.NETWORK,
    "afs": FileSystemType.NETWORK,
    "swap": FileSystemType.SWAP,
    "iso9660": FileSystemType.CDROM,
    "msdos": FileSystemType.LOCAL_DISK,
    "minix": FileSystemType.LOCAL_DISK,
    "hpfs": FileSystemType.LOCAL_DISK,
    "vfat": FileSystemType.LOCAL_DISK,
}

_LINUX_TYPES = {
    "ext2": FileSystemType.LOCAL_DISK,
    "ext3": FileSystemType.LOCAL_DISK,
    "ext4": FileSystemType.LOCAL_DISK,
    "btrfs": FileSystemType.LOCAL_DISK,
    "xfs": FileSystemType.LOCAL_DISK,
    "jfs": FileSystemType.LOCAL_DISK,
    "reiserfs": FileSystemType.LOCAL_DISK,
    "ocfs2": FileSystemType.LOCAL_DISK,
    "zfs": FileSystemType.LOCAL_DISK,
    "cifs": FileSystemType.NETWORK,
    "nfs4": FileSystemType.NETWORK,
    "gfs": FileSystemType.NETWORK,
    "gfs2": FileSystemType.NETWORK,
    "tmpfs": FileSystemType.RAM_DISK,
    "ramfs": FileSystemType.RAM_DISK,
}

_DARWIN_TYPES = {
    "apfs": FileSystemType.LOCAL_DISK,
    "hfs": FileSystemType.LOCAL_DISK,
    "ufs": FileSystemType.LOCAL_DISK,
    "cd9660": FileSystemType.CDROM,
    "smbfs": FileSystemType.NETWORK,
    "afpfs": FileSystemType.NETWORK,
}


@dataclass
class FileSystem:
    dir_name: str
    dev_name: str
    sys_type_name: str
    options: str = ""
    type: FileSystemType = FileSystemType.UNKNOWN
    type_name: str = ""


def _os_types() -> dict:
    if PLATFORM.is_linux:
        return _LINUX_TYPES
    if PLATFORM.is_macos or PLATFORM.is_bsd:
        return _DARWIN_TYPES
    return {}


def fs_type_get(fsp: FileSystem) -> None:
    """Fill in ``type`` and ``type_name`` unless ``type`` is already set."""
    if not fsp.type:
        fsp.type = (
            _os_types().get(fsp.sys_type_name)
            or _COMMON_TYPES.get(fsp.sys_type_name)
            or FileSystemType.NONE
        )

    if fsp.type >= len(FSTYPE_NAMES):
        fsp.type = FileSystemType.NONE

    fsp.type_name = FSTYPE_NAMES[fsp.type]


# ── Parsers ───────────────────────────────────────────────────────────────────


def _unescape(field: str) -> str:
    """Undo the octal escapes (``\\040`` etc.) used in /proc/mounts."""
    return re.sub(r"\\([0-7]{3})", lambda m: chr(int(m.group(1), 8)), field)


def parse_proc_mounts(text: str) -> GrowableCollection[FileSystem]:
    fslist: GrowableCollection[FileSystem] = GrowableCollection(FS_LIST_CHUNK)
    for line in text.splitlines():
        parts = line.split()
        if len(parts) < 4:
            continue
        fsp = FileSystem(
            dir_name=_unescape(parts[1]),
            dev_name=_unescape(parts[0]),
            sys_type_name=parts[2],
            options=parts[3],
        )
        fs_type_get(fsp)
        fslist.append(fsp)
    return fslist


# "dev on /dir (type, opt, opt)"  macOS / BSD
_MOUNT_BSD = re.compile(r"^(?P<dev>.+?) on (?P<dir>.+?) \((?P<type>[^,)]+)(?:,\s*(?P<opts>[^)]*))?\)$")
# "dev on /dir type fstype (opts)"  Linux / Solaris style
_MOUNT_SYSV = re.compile(r"^(?P<dev>.+?) on (?P<dir>.+?) type (?P<type>\S+)(?: \((?P<opts>[^)]*)\))?$")


def parse_mount_output(text: str) -> GrowableCollection[FileSystem]:
    fslist: GrowableCollection[FileSystem] = GrowableCollection(FS_LIST_CHUNK)
    for line in text.splitlines():
        line = line.strip()
        m = _MOUNT_SYSV.match(line) or _MOUNT_BSD.match(line)
        if not m:
            continue
        fsp = FileSystem(
            dir_name=m.group("dir"),
            dev_name=m.group("dev"),
            sys_type_name=m.group("type").strip(),
            options=(m.group("opts") or "").replace(" ", ""),
        )
        fs_type_get(fsp)
        fslist.append(fsp)
    return fslist


# ── Public API ────────────────────────────────────────────────────────────────


def file_system_list(mounts_path: Optional[str] = None) -> FactResult[GrowableCollection[FileSystem]]:
    """Return every mounted filesystem in mount-table order."""
    if PLATFORM.is_windows:
        return FactResult.not_implemented()

    if PLATFORM.is_linux or mounts_path:
        path = mounts_path or PROC_MOUNTS
        try:
            with open(path, "r", encoding="utf-8", errors="replace") as fh:
                return FactResult.success(parse_proc_mounts(fh.read()))
        except OSError as exc:
            log.debug("cannot read %s: %s", path, exc)
            return FactResult.failure(FactError.from_oserror(exc))

    rc, stdout, stderr = run_command(["mount"], timeout=10)
    if rc != 0:
        log.debug("mount exited with %d: %s", rc, stderr.strip())
        return FactResult.failure(FactError.system(None, stderr.strip() or f"mount exited with status {rc}"))
    return FactResult.success(parse_mount_output(stdout))
