"""
IPv4 routing table.

Linux exposes the kernel FIB as ``/proc/net/route``: one whitespace-separated
row per route, addresses as little-endian hex words.
"""

from __future__ import annotations

import ipaddress
import logging
import socket
import struct
from dataclasses import dataclass

from hostfacts.config import NET_ROUTE_LIST_CHUNK, PLATFORM
from hostfacts.core.collection import GrowableCollection
from hostfacts.core.errors import FactError, FactResult

log = logging.getLogger(__name__)

PROC_NET_ROUTE = "/proc/net/route"

RTF_UP = 0x1
RTF_GATEWAY = 0x2
RTF_HOST = 0x4


@dataclass
class NetRoute:
    destination: ipaddress.IPv4Address
    gateway: ipaddress.IPv4Address
    mask: ipaddress.IPv4Address
    flags: int = 0
    refcnt: int = 0
    use: int = 0
    metric: int = 0
    mtu: int = 0
    window: int = 0
    irtt: int = 0
    ifname: str = ""


def _hex_address(word: str) -> ipaddress.IPv4Address:
    # /proc prints the in-memory (network order) word as a host-order integer
    return ipaddress.IPv4Address(socket.inet_ntoa(struct.pack("=I", int(word, 16))))


def parse_proc_route(text: str) -> GrowableCollection[NetRoute]:
    routes: GrowableCollection[NetRoute] = GrowableCollection(NET_ROUTE_LIST_CHUNK)
    for line in text.splitlines()[1:]:
        parts = line.split()
        if len(parts) < 11:
            continue
        ifname, dest, gw, flags, refcnt, use, metric, mask, mtu, window, irtt = parts[:11]
        try:
            routes.append(NetRoute(
                destination=_hex_address(dest),
                gateway=_hex_address(gw),
                mask=_hex_address(mask),
                flags=int(flags, 16),
                refcnt=int(refcnt),
                use=int(use),
                metric=int(metric),
                mtu=int(mtu),
                window=int(window),
                irtt=int(irtt),
                ifname=ifname,
            ))
        except ValueError:
            log.debug("skipping malformed route line: %r", line)
    return routes


# ── Public API ────────────────────────────────────────────────────────────────


def net_route_list(path: str = PROC_NET_ROUTE) -> FactResult[GrowableCollection[NetRoute]]:
    """Retrieve the local IPv4 routing table."""
    if not PLATFORM.is_linux:
        return FactResult.not_implemented()

    try:
        with open(path, "r", encoding="ascii", errors="replace") as fh:
            text = fh.read()
    except OSError as exc:
        return FactResult.failure(FactError.from_oserror(exc))

    return FactResult.success(parse_proc_route(text))
