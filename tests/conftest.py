"""
Shared fixtures: in-memory stand-ins for the ioctl kernel and the DNS resolver.

Neither fixture touches the network or needs privileges; they let the
enumeration, configuration and FQDN logic run against scripted answers.
"""

import array
import errno
import ipaddress
import socket
import struct
from contextlib import contextmanager
from typing import Dict, List, Optional, Tuple

import pytest

from hostfacts.config import PlatformInfo
from hostfacts.core.kernel import IFNAMSIZ, LINUX_REQUESTS, IoctlKernel
from hostfacts.core.session import Session
from hostfacts.core.session_log import SessionLogger

RECORD_SIZE = 40


def pack_record(name: str, family: int = socket.AF_INET, sockaddr_tail: bytes = b"") -> bytes:
    """One Linux-layout ifreq record: name, 2-byte family, rest of sockaddr."""
    head = name.encode().ljust(IFNAMSIZ, b"\0") + struct.pack("H", family) + sockaddr_tail
    return head.ljust(RECORD_SIZE, b"\0")


class FakeKernel(IoctlKernel):
    """Scripted ioctl surface.

    *interfaces* maps a name to its answers; a missing key makes the matching
    query raise ``OSError``.  *records* is what SIOCGIFCONF reports, in order.
    *ifconf_script* optionally overrides the first N ``(length, errno)`` replies;
    like the real transport, a failing reply reports the offered buffer length.
    """

    def __init__(
        self,
        interfaces: Optional[Dict[str, dict]] = None,
        records: Optional[List[bytes]] = None,
        ifconf_script: Optional[List[Tuple[int, int]]] = None,
        requests: Optional[Dict[str, int]] = None,
        accepted_family: Optional[int] = socket.AF_INET,
        multicast_fold: bool = False,
    ) -> None:
        super().__init__(
            requests if requests is not None else LINUX_REQUESTS,
            record_size=RECORD_SIZE,
            accepted_family=accepted_family,
            multicast_fold=multicast_fold,
        )
        self.interfaces = interfaces or {}
        if records is None:
            records = [pack_record(name) for name in self.interfaces]
        self.records = records
        self.ifconf_script = list(ifconf_script or [])
        self.ifconf_calls: List[int] = []
        self.sockets_opened = 0
        self.sockets_closed = 0

    @contextmanager
    def open_socket(self):
        self.sockets_opened += 1
        try:
            yield object()
        finally:
            self.sockets_closed += 1

    def ifconf(self, sock, buf):
        self.ifconf_calls.append(len(buf))
        data = b"".join(self.records)
        if self.ifconf_script:
            reported, err = self.ifconf_script.pop(0)
            if err:
                # a failed call reports the length it was offered
                return len(buf), err
            n = min(reported, len(buf), len(data))
        else:
            err = 0
            n = min(len(data), len(buf))
            reported = n
        buf[0:n] = array.array("B", data[:n])
        return reported, err

    def _answer(self, name, key):
        try:
            return self.interfaces[name][key]
        except KeyError:
            raise OSError(errno.ENODEV, f"no {key} for {name}")

    def if_address(self, sock, name):
        return ipaddress.IPv4Address(self._answer(name, "address"))

    def if_netmask(self, sock, name):
        return ipaddress.IPv4Address(self._answer(name, "netmask"))

    def if_dstaddr(self, sock, name):
        return ipaddress.IPv4Address(self._answer(name, "destination"))

    def if_broadaddr(self, sock, name):
        return ipaddress.IPv4Address(self._answer(name, "broadcast"))

    def if_flags(self, sock, name):
        return self._answer(name, "flags")

    def if_mtu(self, sock, name):
        return self._answer(name, "mtu")

    def if_metric(self, sock, name):
        return self._answer(name, "metric")

    def if_hwaddr(self, sock, name):
        return self._answer(name, "hwaddr")

    def arp_hwaddr(self, sock, name, address):
        return self._answer(name, "arp")


class FakeResolver:
    """Scripted hostname / DNS answers; unknown names raise like :mod:`socket`."""

    def __init__(self, hostname="host", forward=None, reverse=None, domain=None):
        self.hostname = hostname
        self.forward = forward or {}
        self.reverse = reverse or {}
        self.domain = domain
        self.reverse_queries: List[str] = []

    def gethostname(self):
        if isinstance(self.hostname, OSError):
            raise self.hostname
        return self.hostname

    def gethostbyname_ex(self, name):
        try:
            return self.forward[name]
        except KeyError:
            raise socket.gaierror(socket.EAI_NONAME, "Name or service not known")

    def gethostbyaddr(self, address):
        self.reverse_queries.append(address)
        try:
            return self.reverse[address]
        except KeyError:
            raise socket.herror(1, "Unknown host")

    def getdomainname(self):
        if self.domain is None:
            raise OSError(errno.ENOSYS, "no domainname")
        return self.domain


ETH0 = {
    "address": "10.0.0.5",
    "netmask": "255.255.255.0",
    "broadcast": "10.0.0.255",
    "destination": "10.0.0.5",
    "flags": 0x1 | 0x2 | 0x40,
    "hwaddr": bytes([0x01, 0xAB, 0x00, 0xFF, 0x10, 0x0A]),
    "mtu": 1500,
    "metric": 0,
}

LO = {
    "address": "127.0.0.1",
    "netmask": "255.0.0.0",
    "broadcast": "127.255.255.255",
    "destination": "127.0.0.2",
    "flags": 0x1 | 0x8 | 0x40,
    "hwaddr": bytes([0xDE, 0xAD, 0xBE, 0xEF, 0x00, 0x01]),
    "mtu": 65536,
    "metric": 0,
}


@pytest.fixture
def linux_platform() -> PlatformInfo:
    return PlatformInfo(system="Linux")


@pytest.fixture
def kernel() -> FakeKernel:
    return FakeKernel({"lo": dict(LO), "eth0": dict(ETH0)})


@pytest.fixture
def resolver() -> FakeResolver:
    return FakeResolver()


@pytest.fixture
def session(kernel, resolver):
    with Session(kernel=kernel, resolver=resolver) as s:
        yield s


@pytest.fixture(autouse=True)
def _fresh_session_logger():
    SessionLogger.reset()
    yield
    SessionLogger.reset()
