"""
Logged-in users, read from the login-accounting (utmp) file.

The file is a flat array of fixed-size ``struct utmp`` records.  Only
records of type ``USER_PROCESS`` with a non-empty user name are reported.
"""

from __future__ import annotations

import logging
import struct
from dataclasses import dataclass

from hostfacts.config import PLATFORM, SETTINGS, WHO_LIST_CHUNK
from hostfacts.core.collection import GrowableCollection
from hostfacts.core.errors import FactError, FactResult

log = logging.getLogger(__name__)

# Linux struct utmp: type, pid, line, id, user, host, exit, session, tv, addr_v6, unused
UTMP_RECORD = struct.Struct("hi32s4s32s256shhiii4i20x")
USER_PROCESS = 7


@dataclass
class WhoEntry:
    user: str
    device: str
    host: str
    time: int


def _cstr(raw: bytes) -> str:
    return raw.split(b"\0", 1)[0].decode("utf-8", errors="replace")


def parse_utmp(data: bytes) -> GrowableCollection[WhoEntry]:
    """Decode user sessions from raw utmp bytes; a short trailing record is ignored."""
    entries: GrowableCollection[WhoEntry] = GrowableCollection(WHO_LIST_CHUNK)
    size = UTMP_RECORD.size
    for offset in range(0, len(data) - size + 1, size):
        (ut_type, _pid, line, _id, user, host,
         _term, _exit, _session, tv_sec, _tv_usec,
         *_addr) = UTMP_RECORD.unpack_from(data, offset)
        if not user.strip(b"\0"):
            continue
        if ut_type != USER_PROCESS:
            continue
        entries.append(WhoEntry(user=_cstr(user), device=_cstr(line), host=_cstr(host), time=tv_sec))
    return entries


def who_list(path: str = "") -> FactResult[GrowableCollection[WhoEntry]]:
    """Return the users currently logged in."""
    if not PLATFORM.is_linux:
        return FactResult.not_implemented()

    path = path or SETTINGS.utmp_file
    try:
        with open(path, "rb") as fh:
            data = fh.read()
    except OSError as exc:
        log.debug("cannot read %s: %s", path, exc)
        return FactResult.failure(FactError.from_oserror(exc))

    return FactResult.success(parse_utmp(data))
