"""
ioctl transport for the ``SIOCGIF*`` family of interface queries.

Everything here talks to the kernel through :func:`fcntl.ioctl` on a
throw-away ``AF_INET`` datagram socket and decodes the fixed-size
``struct ifreq`` / ``struct ifconf`` / ``struct arpreq`` layouts with
:mod:`struct`.  Failures surface as :class:`OSError`, except for
:meth:`IoctlKernel.ifconf`, whose overflow signal is part of the enumeration
protocol and is therefore returned rather than raised.
"""

from __future__ import annotations

import array
import errno
import ipaddress
import socket
import struct
from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional, Tuple

from hostfacts.config import PLATFORM, PlatformInfo

IFNAMSIZ = 16
HWADDR_LEN = 6

# struct ifconf { int ifc_len; char *ifc_buf; }; native alignment pads the int
_IFCONF = struct.Struct("iP")

# Linux values from <linux/sockios.h>
LINUX_REQUESTS: Dict[str, int] = {
    "SIOCGIFCONF": 0x8912,
    "SIOCGIFFLAGS": 0x8913,
    "SIOCGIFADDR": 0x8915,
    "SIOCGIFDSTADDR": 0x8917,
    "SIOCGIFBRDADDR": 0x8919,
    "SIOCGIFNETMASK": 0x891B,
    "SIOCGIFMETRIC": 0x891D,
    "SIOCGIFMTU": 0x8921,
    "SIOCGIFHWADDR": 0x8927,
    "SIOCGARP": 0x8954,
}

# Link-layer address family used by AIX / OSF style kernels for SIOCGIFCONF
AF_LINK = getattr(socket, "AF_LINK", 18)


def ifreq_record_size() -> int:
    """Size of one ``struct ifreq``: name + the largest union member."""
    union = 24 if struct.calcsize("P") == 8 else 16
    return IFNAMSIZ + union


def _pack_name(name: str) -> bytes:
    return name.encode("ascii", "replace")[: IFNAMSIZ - 1].ljust(IFNAMSIZ, b"\0")


class IoctlKernel:
    """Per-platform description of the ioctl surface plus the calls themselves."""

    def __init__(
        self,
        requests: Dict[str, int],
        record_size: int,
        accepted_family: Optional[int] = socket.AF_INET,
        bsd_sockaddr: bool = False,
        multicast_fold: bool = False,
    ) -> None:
        self.requests = dict(requests)
        self.record_size = record_size
        # Records of any other family are dropped during enumeration (None = keep all)
        self.accepted_family = accepted_family
        # BSD-derived sockaddrs start with a length byte and a one-byte family
        self.bsd_sockaddr = bsd_sockaddr
        # Linux: IFF_MULTICAST is 0x1000, the portable multicast bit is 0x800
        self.multicast_fold = multicast_fold

    # ── Capabilities ──────────────────────────────────────────────────────

    def supports(self, request: str) -> bool:
        return request in self.requests

    @property
    def link_family(self) -> int:
        return AF_LINK

    # ── Plumbing ──────────────────────────────────────────────────────────

    @contextmanager
    def open_socket(self) -> Iterator[socket.socket]:
        """Yield a datagram socket that is closed on every exit path."""
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
            yield sock

    def _ioctl(self, sock: socket.socket, request: str, arg: bytes) -> bytes:
        if request not in self.requests:
            raise OSError(errno.EOPNOTSUPP, f"{request} is not available on this platform")
        import fcntl

        return fcntl.ioctl(sock.fileno(), self.requests[request], arg)

    def _ifreq(self, sock: socket.socket, request: str, name: str) -> bytes:
        req = _pack_name(name).ljust(self.record_size, b"\0")
        return self._ioctl(sock, request, req)

    # ── Interface list ────────────────────────────────────────────────────

    def ifconf(self, sock: socket.socket, buf: "array.array[int]") -> Tuple[int, int]:
        """Fill *buf* with ifreq records.

        Returns ``(reported_length, errno)``; ``errno`` is 0 on success.  On
        failure the reported length is the length that was offered.
        """
        address, length = buf.buffer_info()
        request = _IFCONF.pack(length, address)
        try:
            reply = self._ioctl(sock, "SIOCGIFCONF", request)
        except OSError as exc:
            return length, exc.errno or errno.EIO
        return _IFCONF.unpack(reply)[0], 0

    def sockaddr_family(self, sockaddr: bytes) -> int:
        if self.bsd_sockaddr:
            return sockaddr[1]
        return struct.unpack_from("H", sockaddr, 0)[0]

    def parse_records(self, data: bytes) -> List[Tuple[str, int, bytes]]:
        """Split an ifconf region into ``(name, family, sockaddr)`` tuples."""
        records: list[Tuple[str, int, bytes]] = []
        size = self.record_size
        for offset in range(0, len(data) - size + 1, size):
            rec = data[offset : offset + size]
            name = rec[:IFNAMSIZ].split(b"\0", 1)[0].decode("ascii", "replace")
            sockaddr = rec[IFNAMSIZ:]
            records.append((name, self.sockaddr_family(sockaddr), sockaddr))
        return records

    @staticmethod
    def link_hwaddr(sockaddr: bytes) -> bytes:
        """Extract ``LLADDR()`` from a ``struct sockaddr_dl``."""
        nlen = sockaddr[5]
        start = 8 + nlen
        return sockaddr[start : start + HWADDR_LEN].ljust(HWADDR_LEN, b"\0")

    # ── Per-interface queries ─────────────────────────────────────────────

    def _inet(self, sock: socket.socket, request: str, name: str) -> ipaddress.IPv4Address:
        reply = self._ifreq(sock, request, name)
        return ipaddress.IPv4Address(reply[IFNAMSIZ + 4 : IFNAMSIZ + 8])

    def if_address(self, sock: socket.socket, name: str) -> ipaddress.IPv4Address:
        return self._inet(sock, "SIOCGIFADDR", name)

    def if_netmask(self, sock: socket.socket, name: str) -> ipaddress.IPv4Address:
        return self._inet(sock, "SIOCGIFNETMASK", name)

    def if_dstaddr(self, sock: socket.socket, name: str) -> ipaddress.IPv4Address:
        return self._inet(sock, "SIOCGIFDSTADDR", name)

    def if_broadaddr(self, sock: socket.socket, name: str) -> ipaddress.IPv4Address:
        return self._inet(sock, "SIOCGIFBRDADDR", name)

    def if_flags(self, sock: socket.socket, name: str) -> int:
        reply = self._ifreq(sock, "SIOCGIFFLAGS", name)
        return struct.unpack_from("H", reply, IFNAMSIZ)[0]

    def if_mtu(self, sock: socket.socket, name: str) -> int:
        reply = self._ifreq(sock, "SIOCGIFMTU", name)
        return struct.unpack_from("i", reply, IFNAMSIZ)[0]

    def if_metric(self, sock: socket.socket, name: str) -> int:
        reply = self._ifreq(sock, "SIOCGIFMETRIC", name)
        return struct.unpack_from("i", reply, IFNAMSIZ)[0]

    def if_hwaddr(self, sock: socket.socket, name: str) -> bytes:
        reply = self._ifreq(sock, "SIOCGIFHWADDR", name)
        # sockaddr: 2-byte family, then sa_data
        return reply[IFNAMSIZ + 2 : IFNAMSIZ + 2 + HWADDR_LEN]

    def arp_hwaddr(self, sock: socket.socket, name: str, address: ipaddress.IPv4Address) -> bytes:
        """Look *address* up in the neighbour table (``struct arpreq``)."""
        arp_pa = struct.pack("H2x4s8x", socket.AF_INET, address.packed)
        request = arp_pa + bytes(16) + struct.pack("i", 0) + bytes(16) + _pack_name(name)
        reply = self._ioctl(sock, "SIOCGARP", request)
        # arp_ha follows arp_pa; skip its family
        return reply[16 + 2 : 16 + 2 + HWADDR_LEN]


def make_kernel(platform: PlatformInfo = PLATFORM) -> Optional[IoctlKernel]:
    """Return the ioctl transport for *platform*, or ``None`` if unsupported."""
    if platform.is_linux and platform.has_ioctl:
        return IoctlKernel(
            LINUX_REQUESTS,
            record_size=ifreq_record_size(),
            accepted_family=socket.AF_INET,
            multicast_fold=True,
        )
    return None
