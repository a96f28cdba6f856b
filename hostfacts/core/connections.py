"""
Active TCP/UDP connections and listening sockets.

Linux keeps one table per protocol family under ``/proc/net``; each row holds
hex-encoded ``address:port`` pairs, the TCP state and the queue sizes.
"""

from __future__ import annotations

import enum
import ipaddress
import logging
import os
import struct
from dataclasses import dataclass
from typing import Tuple, Union

from hostfacts.config import NET_CONNLIST_CHUNK, PLATFORM
from hostfacts.core.collection import GrowableCollection
from hostfacts.core.errors import FactError, FactResult

log = logging.getLogger(__name__)

PROC_NET = "/proc/net"

IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]


class ConnectionType(enum.IntEnum):
    TCP = 0x10
    UDP = 0x20
    RAW = 0x40
    UNIX = 0x80


class ConnectionFlags(enum.IntFlag):
    CLIENT = 0x01
    SERVER = 0x02
    TCP = 0x10
    UDP = 0x20


# Values match the kernel's TCP_* states as printed in /proc/net/tcp
class TcpState(enum.IntEnum):
    UNKNOWN = 0
    ESTABLISHED = 1
    SYN_SENT = 2
    SYN_RECV = 3
    FIN_WAIT1 = 4
    FIN_WAIT2 = 5
    TIME_WAIT = 6
    CLOSE = 7
    CLOSE_WAIT = 8
    LAST_ACK = 9
    LISTEN = 10
    CLOSING = 11
    IDLE = 12
    BOUND = 13


def connection_type_name(conn_type: int) -> str:
    try:
        return ConnectionType(conn_type).name.lower()
    except ValueError:
        return "unknown"


def tcp_state_name(state: int) -> str:
    try:
        return TcpState(state).name
    except ValueError:
        return TcpState.UNKNOWN.name


@dataclass
class NetConnection:
    type: ConnectionType
    state: int
    local_address: IPAddress
    local_port: int
    remote_address: IPAddress
    remote_port: int
    send_queue: int = 0
    receive_queue: int = 0
    uid: int = 0
    inode: int = 0

    @property
    def is_server(self) -> bool:
        if self.type is ConnectionType.TCP:
            return self.state == TcpState.LISTEN
        return self.remote_port == 0


def _hex_endpoint(field: str) -> Tuple[IPAddress, int]:
    addr_hex, port_hex = field.split(":")
    raw = bytes.fromhex(addr_hex)
    # each 32-bit word is printed in host byte order
    words = struct.unpack(f"<{len(raw) // 4}I", raw)
    packed = struct.pack(f">{len(words)}I", *words)
    return ipaddress.ip_address(packed), int(port_hex, 16)


def parse_proc_net(text: str, conn_type: ConnectionType, flags: ConnectionFlags,
                   connlist: GrowableCollection[NetConnection]) -> None:
    """Append the rows of one ``/proc/net/{tcp,udp}[6]`` table to *connlist*."""
    for line in text.splitlines()[1:]:
        parts = line.split()
        if len(parts) < 10:
            continue
        try:
            local_addr, local_port = _hex_endpoint(parts[1])
            remote_addr, remote_port = _hex_endpoint(parts[2])
            tx_queue, rx_queue = (int(x, 16) for x in parts[4].split(":"))
            conn = NetConnection(
                type=conn_type,
                state=int(parts[3], 16) if conn_type is ConnectionType.TCP else TcpState.UNKNOWN,
                local_address=local_addr,
                local_port=local_port,
                remote_address=remote_addr,
                remote_port=remote_port,
                send_queue=tx_queue,
                receive_queue=rx_queue,
                uid=int(parts[7]),
                inode=int(parts[9]),
            )
        except ValueError:
            log.debug("skipping malformed connection line: %r", line)
            continue

        wanted = ConnectionFlags.SERVER if conn.is_server else ConnectionFlags.CLIENT
        if flags & wanted:
            connlist.append(conn)


# ── Public API ────────────────────────────────────────────────────────────────


def net_connection_list(
    flags: ConnectionFlags = ConnectionFlags.CLIENT | ConnectionFlags.SERVER | ConnectionFlags.TCP | ConnectionFlags.UDP,
    proc_dir: str = PROC_NET,
) -> FactResult[GrowableCollection[NetConnection]]:
    """Return TCP/UDP sockets selected by *flags*.

    *flags* must name at least one protocol (``TCP``/``UDP``) and one role
    (``CLIENT``/``SERVER``).
    """
    if not PLATFORM.is_linux:
        return FactResult.not_implemented()

    connlist: GrowableCollection[NetConnection] = GrowableCollection(NET_CONNLIST_CHUNK)
    for conn_type, tables in ((ConnectionType.TCP, ("tcp", "tcp6")), (ConnectionType.UDP, ("udp", "udp6"))):
        if not flags & conn_type:
            continue
        for table in tables:
            path = os.path.join(proc_dir, table)
            try:
                with open(path, "r", encoding="ascii", errors="replace") as fh:
                    text = fh.read()
            except FileNotFoundError:
                # no IPv6 support in this kernel
                log.debug("%s not present", path)
                continue
            except OSError as exc:
                connlist.destroy()
                return FactResult.failure(FactError.from_oserror(exc))
            parse_proc_net(text, conn_type, flags, connlist)

    return FactResult.success(connlist)
