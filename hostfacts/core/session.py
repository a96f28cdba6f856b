"""
Caller-owned session context.

A :class:`Session` carries the state that used to live on a process-wide
handle: the reusable interface-enumeration buffer, the kernel transport, the
DNS resolver and the hardware-address strategy chosen once at start-up.
Sessions are independent of each other; a single session must not be used
from two threads at once because enumeration mutates its buffer in place.
"""

from __future__ import annotations

import array
import logging
import os
from typing import TYPE_CHECKING, Optional

from hostfacts.config import NET_IFLIST_CHUNK, PLATFORM, SETTINGS, PlatformInfo
from hostfacts.core.kernel import IoctlKernel, make_kernel

if TYPE_CHECKING:  # pragma: no cover
    from hostfacts.core.fqdn import SocketResolver
    from hostfacts.core.ifconfig import HwaddrStrategy

log = logging.getLogger(__name__)


class Session:
    """Query context; use as ``with Session() as s: ...``."""

    def __init__(
        self,
        kernel: Optional[IoctlKernel] = None,
        resolver: Optional["SocketResolver"] = None,
        hwaddr_strategy: Optional["HwaddrStrategy"] = None,
        platform: PlatformInfo = PLATFORM,
    ) -> None:
        from hostfacts.core.fqdn import SocketResolver
        from hostfacts.core.ifconfig import select_hwaddr_strategy

        self.platform = platform
        self.kernel = kernel if kernel is not None else make_kernel(platform)
        self.resolver = resolver if resolver is not None else SocketResolver()
        if hwaddr_strategy is None and self.kernel is not None:
            hwaddr_strategy = select_hwaddr_strategy(self.kernel, SETTINGS.hwaddr_strategy)
        self.hwaddr_strategy = hwaddr_strategy
        self.ifconf_buf: "array.array[int]" = array.array("B")
        self._pid = 0
        self._closed = False

    # ── Enumeration buffer ────────────────────────────────────────────────

    @property
    def ifconf_len(self) -> int:
        return len(self.ifconf_buf)

    def grow_ifconf_buffer(self) -> None:
        """Extend the enumeration buffer by one chunk of ifreq records."""
        self.ifconf_buf.extend(bytes(self.kernel.record_size * NET_IFLIST_CHUNK))
        log.debug("ifconf buffer grown to %d bytes", len(self.ifconf_buf))

    # ── Misc ──────────────────────────────────────────────────────────────

    @property
    def pid(self) -> int:
        if not self._pid:
            self._pid = os.getpid()
        return self._pid

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        if not self._closed:
            self.ifconf_buf = array.array("B")
            self._closed = True

    def __enter__(self) -> "Session":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
