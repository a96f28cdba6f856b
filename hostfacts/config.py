"""
Centralised runtime configuration and OS-detection helpers.
"""

import os
import platform
from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class PlatformInfo:
    """Immutable snapshot of the host OS and the kernel facilities it offers."""

    system: str = field(default_factory=lambda: platform.system())  # Windows | Linux | Darwin | AIX ...
    release: str = field(default_factory=platform.release)
    is_windows: bool = field(default=False)
    is_linux: bool = field(default=False)
    is_macos: bool = field(default=False)
    is_aix: bool = field(default=False)
    is_bsd: bool = field(default=False)

    # Kernel facilities (False if the module / call is unavailable)
    has_ioctl: bool = False
    has_rlimit: bool = False

    def __post_init__(self) -> None:  # pragma: no cover
        # Set boolean OS flags
        object.__setattr__(self, "is_windows", self.system == "Windows")
        object.__setattr__(self, "is_linux", self.system == "Linux")
        object.__setattr__(self, "is_macos", self.system == "Darwin")
        object.__setattr__(self, "is_aix", self.system in ("AIX", "OSF1"))
        object.__setattr__(self, "is_bsd", self.system.endswith("BSD") or self.system == "DragonFly")

        # Probe stdlib modules that only exist on POSIX
        for attr, module in (("has_ioctl", "fcntl"), ("has_rlimit", "resource")):
            try:
                __import__(module)
                available = True
            except ImportError:
                available = False
            object.__setattr__(self, attr, available)


@dataclass(frozen=True)
class Settings:
    """Environment-driven knobs; read once at import time."""

    log_level: str = "WARNING"
    log_dir: Optional[str] = None
    utmp_file: str = "/var/run/utmp"
    hwaddr_strategy: Optional[str] = None  # direct | linktable | arp

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            log_level=os.environ.get("HOSTFACTS_LOG_LEVEL", cls.log_level).upper(),
            log_dir=os.environ.get("HOSTFACTS_LOG_DIR") or None,
            utmp_file=os.environ.get("HOSTFACTS_UTMP_FILE", cls.utmp_file),
            hwaddr_strategy=(os.environ.get("HOSTFACTS_HWADDR_STRATEGY") or "").lower() or None,
        )


# Singletons, instantiated once at import time.
PLATFORM = PlatformInfo()
SETTINGS = Settings.from_env()

# Collection chunk sizes, one per kind of list
FS_LIST_CHUNK = 10
NET_ROUTE_LIST_CHUNK = 6
NET_IFLIST_CHUNK = 20
NET_CONNLIST_CHUNK = 20
WHO_LIST_CHUNK = 12

# Hostname limits
FQDN_LEN = 255
# getdomainname() on Linux reports "(none)" when unset
DOMAIN_UNSET_PREFIX = "("
