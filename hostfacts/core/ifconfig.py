"""
Per-interface configuration: address, netmask, flags, broadcast/destination,
MTU, metric and hardware address.

Only the address lookup is mandatory; every other field is best-effort and
stays at its zero value when the kernel refuses to answer (e.g. the device
is down).  The hardware address comes from one of three strategies chosen
once per session, see :func:`select_hwaddr_strategy`.
"""

from __future__ import annotations

import enum
import ipaddress
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional, Union

from hostfacts.core.errors import FactError, FactResult
from hostfacts.core.kernel import HWADDR_LEN, IoctlKernel
from hostfacts.core.session import Session

log = logging.getLogger(__name__)

NULL_HWADDR = bytes(HWADDR_LEN)
ZERO_ADDRESS = ipaddress.IPv4Address(0)

# Linux-only bit values that differ from the portable set below
_LINUX_IFF_MULTICAST = 0x1000


class InterfaceFlags(enum.IntFlag):
    UP = 0x1
    BROADCAST = 0x2
    DEBUG = 0x4
    LOOPBACK = 0x8
    POINTOPOINT = 0x10
    NOTRAILERS = 0x20
    RUNNING = 0x40
    NOARP = 0x80
    PROMISC = 0x100
    ALLMULTI = 0x200
    MULTICAST = 0x800


def hwaddr_format(data: Union[bytes, bytearray, list]) -> str:
    """Render six address bytes as ``01:AB:00:FF:10:0A``."""
    return ":".join(f"{b & 0xFF:02X}" for b in list(data)[:HWADDR_LEN])


def inet_ntoa(address: Union[int, ipaddress.IPv4Address]) -> str:
    """Dotted-decimal rendering of an IPv4 address."""
    return str(ipaddress.IPv4Address(int(address)))


@dataclass
class NetworkInterfaceConfig:
    name: str
    address: ipaddress.IPv4Address = ZERO_ADDRESS
    netmask: ipaddress.IPv4Address = ZERO_ADDRESS
    broadcast: ipaddress.IPv4Address = ZERO_ADDRESS
    destination: ipaddress.IPv4Address = ZERO_ADDRESS
    hwaddr: bytes = NULL_HWADDR
    hwaddr_str: str = field(default_factory=lambda: hwaddr_format(NULL_HWADDR))
    flags: InterfaceFlags = InterfaceFlags(0)
    mtu: int = 0
    metric: int = 0

    @property
    def is_loopback(self) -> bool:
        return bool(self.flags & InterfaceFlags.LOOPBACK)

    def set_hwaddr(self, data: bytes) -> None:
        self.hwaddr = bytes(data[:HWADDR_LEN]).ljust(HWADDR_LEN, b"\0")
        self.hwaddr_str = hwaddr_format(self.hwaddr)

    def set_hwaddr_null(self) -> None:
        self.set_hwaddr(NULL_HWADDR)


# ── Hardware-address strategies ──────────────────────────────────────────────


class HwaddrStrategy(ABC):
    """One way of finding an interface's link-layer address."""

    name = "abstract"

    @abstractmethod
    def lookup(self, session: Session, sock, ifconfig: NetworkInterfaceConfig) -> None:
        """Set ``ifconfig.hwaddr``; never fails the surrounding resolution."""


class DirectHwaddrLookup(HwaddrStrategy):
    """Ask the kernel directly (``SIOCGIFHWADDR``)."""

    name = "direct"

    def lookup(self, session: Session, sock, ifconfig: NetworkInterfaceConfig) -> None:
        try:
            ifconfig.set_hwaddr(session.kernel.if_hwaddr(sock, ifconfig.name))
        except OSError as exc:
            log.debug("SIOCGIFHWADDR(%s) failed: %s", ifconfig.name, exc)


class LinkTableHwaddrLookup(HwaddrStrategy):
    """Scan the session's last ifconf buffer for a link-layer record."""

    name = "linktable"

    def lookup(self, session: Session, sock, ifconfig: NetworkInterfaceConfig) -> None:
        kernel = session.kernel
        # relies on net_interface_list() having filled the buffer
        data = session.ifconf_buf.tobytes()
        for name, family, sockaddr in kernel.parse_records(data):
            if family != kernel.link_family:
                continue
            if name == ifconfig.name:
                ifconfig.set_hwaddr(kernel.link_hwaddr(sockaddr))
                return
        ifconfig.set_hwaddr_null()


class ArpHwaddrLookup(HwaddrStrategy):
    """Look the interface's own address up in the neighbour table."""

    name = "arp"

    def lookup(self, session: Session, sock, ifconfig: NetworkInterfaceConfig) -> None:
        try:
            data = session.kernel.arp_hwaddr(sock, ifconfig.name, ifconfig.address)
        except OSError as exc:
            log.debug("SIOCGARP(%s) found no entry: %s", ifconfig.address, exc)
            data = NULL_HWADDR
        ifconfig.set_hwaddr(data)


_STRATEGIES = {
    DirectHwaddrLookup.name: DirectHwaddrLookup,
    LinkTableHwaddrLookup.name: LinkTableHwaddrLookup,
    ArpHwaddrLookup.name: ArpHwaddrLookup,
}


def select_hwaddr_strategy(kernel: IoctlKernel, override: Optional[str] = None) -> HwaddrStrategy:
    """Pick the hardware-address strategy for *kernel*.

    An explicit *override* wins; otherwise the direct query is used if the
    kernel has one, then the link-layer table if enumeration keeps link
    records, and the neighbour table as last resort.
    """
    if override:
        try:
            return _STRATEGIES[override]()
        except KeyError:
            log.warning("Unknown hardware-address strategy %r, probing instead", override)

    if kernel.supports("SIOCGIFHWADDR"):
        return DirectHwaddrLookup()
    if kernel.accepted_family == kernel.link_family:
        return LinkTableHwaddrLookup()
    return ArpHwaddrLookup()


# ── Public API ────────────────────────────────────────────────────────────────


def _best_effort(call, *args, default=None):
    try:
        return call(*args)
    except OSError as exc:
        log.debug("%s%r failed: %s", getattr(call, "__name__", call), args[1:], exc)
        return default


def _portable_flags(kernel: IoctlKernel, raw: int) -> InterfaceFlags:
    if kernel.multicast_fold:
        if raw & _LINUX_IFF_MULTICAST:
            raw |= int(InterfaceFlags.MULTICAST)
        else:
            # 0x800 is IFF_SLAVE on Linux
            raw &= ~int(InterfaceFlags.MULTICAST)
    return InterfaceFlags(raw)


def net_interface_config_get(session: Session, name: str) -> FactResult[NetworkInterfaceConfig]:
    """Resolve the configuration of interface *name*."""
    kernel = session.kernel
    if kernel is None:
        return FactResult.not_implemented()

    ifconfig = NetworkInterfaceConfig(name=name)

    try:
        with kernel.open_socket() as sock:
            try:
                ifconfig.address = kernel.if_address(sock, name)
            except OSError as exc:
                # if this one failed, so will everything else
                log.debug("SIOCGIFADDR(%s) failed: %s", name, exc)
                return FactResult.failure(FactError.from_oserror(exc))

            ifconfig.netmask = _best_effort(kernel.if_netmask, sock, name, default=ZERO_ADDRESS)
            raw_flags = _best_effort(kernel.if_flags, sock, name, default=0)
            ifconfig.flags = _portable_flags(kernel, raw_flags)

            if ifconfig.is_loopback:
                ifconfig.destination = ifconfig.address
                ifconfig.broadcast = ZERO_ADDRESS
                ifconfig.set_hwaddr_null()
            else:
                ifconfig.destination = _best_effort(kernel.if_dstaddr, sock, name, default=ZERO_ADDRESS)
                ifconfig.broadcast = _best_effort(kernel.if_broadaddr, sock, name, default=ZERO_ADDRESS)
                if session.hwaddr_strategy is not None:
                    session.hwaddr_strategy.lookup(session, sock, ifconfig)

            if kernel.supports("SIOCGIFMTU"):
                ifconfig.mtu = _best_effort(kernel.if_mtu, sock, name, default=0)

            metric = _best_effort(kernel.if_metric, sock, name)
            if metric is not None:
                ifconfig.metric = metric or 1
    except OSError as exc:
        return FactResult.failure(FactError.from_oserror(exc))

    return FactResult.success(ifconfig)
