"""
Network interface enumeration via ``SIOCGIFCONF``.

The kernel fills a caller-supplied buffer with fixed-size ``ifreq`` records
and reports how many bytes it used.  A completely full buffer is ambiguous
(everything fit exactly, or the answer was cut short), so the buffer is grown
one chunk at a time until the kernel reports less than it was offered, or
reports the same length twice in a row.  Some kernels signal a short buffer
with ``EINVAL`` instead; that is retried once with a bigger buffer, and a
second ``EINVAL`` ends the enumeration with an error.
"""

from __future__ import annotations

import errno
import logging

from hostfacts.config import NET_IFLIST_CHUNK
from hostfacts.core.collection import GrowableCollection
from hostfacts.core.errors import FactError, FactResult
from hostfacts.core.session import Session

log = logging.getLogger(__name__)


def _fill_ifconf(session: Session, sock) -> FactResult[int]:
    """Run the adaptive-buffer protocol; return the accepted byte length."""
    kernel = session.kernel
    lastlen = 0
    attempts = 0

    while True:
        if not session.ifconf_len or lastlen:
            session.grow_ifconf_buffer()

        buflen = session.ifconf_len
        reported, err = kernel.ifconf(sock, session.ifconf_buf)
        attempts += 1

        if err:
            # EINVAL is the overflow signal, but only once; a second one is fatal
            if err != errno.EINVAL or lastlen:
                log.debug("SIOCGIFCONF failed after %d attempt(s): errno %d", attempts, err)
                return FactResult.failure(FactError.system(err))
            lastlen = buflen
            continue

        if reported < buflen:
            break  # got them all

        if reported != lastlen:
            # might be more
            lastlen = reported
            continue

        break

    log.debug("SIOCGIFCONF returned %d of %d bytes after %d attempt(s)", reported, buflen, attempts)
    return FactResult.success(reported)


def net_interface_list(session: Session) -> FactResult[GrowableCollection[str]]:
    """Return the names of the current network interfaces, in kernel order."""
    kernel = session.kernel
    if kernel is None:
        return FactResult.not_implemented()

    try:
        with kernel.open_socket() as sock:
            filled = _fill_ifconf(session, sock)
    except OSError as exc:
        return FactResult.failure(FactError.from_oserror(exc))

    if not filled.ok:
        return FactResult.failure(filled.error)

    data = session.ifconf_buf.tobytes()[: filled.value]
    names: GrowableCollection[str] = GrowableCollection(NET_IFLIST_CHUNK)
    for name, family, _ in kernel.parse_records(data):
        if kernel.accepted_family is not None and family != kernel.accepted_family:
            continue
        names.append(name)

    return FactResult.success(names)
