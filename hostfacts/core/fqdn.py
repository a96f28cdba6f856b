"""
Fully-qualified hostname of the local machine.

Walks an ordered chain of sources and stops at the first one that yields a
dotted name:

    gethostname → forward lookup (canonical name, then aliases)
    → reverse lookup of every forward address → local domain suffix
    → address of the first non-loopback interface

Only a failing ``gethostname`` is an error; every other miss just moves on to
the next source, so a caller always gets *some* name back.
"""

from __future__ import annotations

import ctypes
import ctypes.util
import errno
import logging
import socket
from typing import List, Optional, Tuple

from hostfacts.config import DOMAIN_UNSET_PREFIX, FQDN_LEN, PLATFORM
from hostfacts.core.errors import FactError, FactResult, strerror
from hostfacts.core.ifconfig import inet_ntoa, net_interface_config_get
from hostfacts.core.interfaces import net_interface_list
from hostfacts.core.session import Session

log = logging.getLogger(__name__)

HostEntry = Tuple[str, List[str], List[str]]

_PROC_DOMAINNAME = "/proc/sys/kernel/domainname"


class SocketResolver:
    """Hostname and DNS lookups through :mod:`socket`; failures raise ``OSError``."""

    def gethostname(self) -> str:
        return socket.gethostname()

    def gethostbyname_ex(self, name: str) -> HostEntry:
        return socket.gethostbyname_ex(name)

    def gethostbyaddr(self, address: str) -> HostEntry:
        return socket.gethostbyaddr(address)

    def getdomainname(self) -> str:
        if PLATFORM.is_windows:
            raise OSError(errno.ENOSYS, "getdomainname is not available on Windows")
        if PLATFORM.is_linux:
            with open(_PROC_DOMAINNAME, "r", encoding="ascii", errors="replace") as fh:
                return fh.read().strip()
        libc = ctypes.CDLL(ctypes.util.find_library("c"), use_errno=True)
        buf = ctypes.create_string_buffer(FQDN_LEN + 1)
        if libc.getdomainname(buf, FQDN_LEN) != 0:
            err = ctypes.get_errno()
            raise OSError(err, strerror(err))
        return buf.value.decode("ascii", "replace")


# ── Helpers ───────────────────────────────────────────────────────────────────


def is_fqdn(name: Optional[str]) -> bool:
    return bool(name) and "." in name


def alias_matches(alias: str, hostname: str) -> bool:
    """True if *alias* is dotted and its first label is *hostname*'s."""
    if not is_fqdn(alias):
        return False
    return alias.split(".", 1)[0] == hostname.split(".", 1)[0]


def _first_matching_alias(aliases: List[str], hostname: str) -> Optional[str]:
    for alias in aliases or ():
        if alias_matches(alias, hostname):
            return alias
    return None


def _ip_address_name(session: Session) -> Optional[str]:
    """Dotted-decimal address of the first non-loopback interface."""
    iflist = net_interface_list(session)
    if not iflist.ok:
        log.debug("[fqdn] interface list failed: %s", strerror(iflist.error))
        return None

    found = None
    for ifname in iflist.value:
        ifconfig = net_interface_config_get(session, ifname)
        if not ifconfig.ok or ifconfig.value.is_loopback:
            continue
        found = inet_ntoa(ifconfig.value.address)
        log.debug("[fqdn] using ip address '%s' for fqdn", found)
        break

    iflist.value.destroy()
    return found


def _resolved(name: str, max_length: int) -> FactResult[str]:
    return FactResult.success(name[:max_length])


def _fallback(session: Session, name: str, max_length: int) -> FactResult[str]:
    ip = _ip_address_name(session)
    if ip:
        return FactResult(value=ip[:max_length], error=FactError.degraded(ip, "using interface ip address"))
    return FactResult(value=name[:max_length], error=FactError.degraded(name, "using unqualified hostname"))


def _domain_suffix(session: Session) -> Optional[str]:
    try:
        domain = session.resolver.getdomainname()
    except OSError as exc:
        log.debug("[fqdn] getdomainname failed: %s", exc)
        return None
    if not domain or domain.startswith(DOMAIN_UNSET_PREFIX):
        log.debug("[fqdn] getdomainname returned no domain (%r)", domain)
        return None
    return domain


# ── Public API ────────────────────────────────────────────────────────────────


def fqdn_get(session: Session, max_length: int = FQDN_LEN) -> FactResult[str]:
    """Return the best available fully-qualified name for this host."""
    resolver = session.resolver

    try:
        name = resolver.gethostname()
    except OSError as exc:
        log.error("[fqdn] gethostname failed: %s", exc.strerror or exc)
        return FactResult.failure(FactError.from_oserror(exc))
    log.debug("[fqdn] gethostname() returned: '%s'", name)

    try:
        canonical, aliases, addresses = resolver.gethostbyname_ex(name)
    except OSError as exc:
        log.debug("[fqdn] gethostbyname(%s) failed: %s", name, exc)
        if is_fqdn(name):
            return _resolved(name, max_length)
        return _fallback(session, name, max_length)

    if is_fqdn(canonical):
        log.debug("[fqdn] resolved using gethostbyname.h_name")
        return _resolved(canonical, max_length)
    log.debug("[fqdn] unresolved using gethostbyname.h_name")

    alias = _first_matching_alias(aliases, name)
    if alias:
        log.debug("[fqdn] resolved using gethostbyname.h_aliases")
        return _resolved(alias, max_length)
    log.debug("[fqdn] unresolved using gethostbyname.h_aliases")

    for address in addresses or ():
        try:
            rname, raliases, _ = resolver.gethostbyaddr(address)
        except OSError as exc:
            log.debug("[fqdn] gethostbyaddr(%s) failed: %s", address, exc)
            continue
        if is_fqdn(rname):
            log.debug("[fqdn] resolved using gethostbyaddr.h_name")
            return _resolved(rname, max_length)
        alias = _first_matching_alias(raliases, name)
        if alias:
            log.debug("[fqdn] resolved using gethostbyaddr.h_aliases")
            return _resolved(alias, max_length)
    log.debug("[fqdn] unresolved using gethostbyname.h_addr_list")

    # e.g. aix gethostname is already fqdn
    if not is_fqdn(name):
        domain = _domain_suffix(session)
        if domain:
            name = f"{name}.{domain}"
            log.debug("[fqdn] resolved using getdomainname")

    if is_fqdn(name):
        return _resolved(name, max_length)
    return _fallback(session, name, max_length)
