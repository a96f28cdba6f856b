"""
Process resource limits.

A fixed table maps each abstract limit to the name of its ``RLIMIT_*``
constant.  Kinds the platform lacks, and kinds ``getrlimit`` refuses, report
:data:`~hostfacts.core.errors.FIELD_NOTIMPL` instead of failing the call.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields
from typing import List, Tuple

from hostfacts.core.errors import FIELD_NOTIMPL, FactResult

log = logging.getLogger(__name__)

# (field prefix, resource constant name)
RLIMIT_TABLE: List[Tuple[str, str]] = [
    ("cpu", "RLIMIT_CPU"),
    ("file_size", "RLIMIT_FSIZE"),
    ("data", "RLIMIT_DATA"),
    ("stack", "RLIMIT_STACK"),
    ("core", "RLIMIT_CORE"),
    ("memory", "RLIMIT_RSS"),
    ("processes", "RLIMIT_NPROC"),
    ("open_files", "RLIMIT_NOFILE"),
    ("virtual_memory", "RLIMIT_AS"),
]


@dataclass
class ResourceLimits:
    unlimited: int = FIELD_NOTIMPL
    cpu_cur: int = FIELD_NOTIMPL
    cpu_max: int = FIELD_NOTIMPL
    file_size_cur: int = FIELD_NOTIMPL
    file_size_max: int = FIELD_NOTIMPL
    data_cur: int = FIELD_NOTIMPL
    data_max: int = FIELD_NOTIMPL
    stack_cur: int = FIELD_NOTIMPL
    stack_max: int = FIELD_NOTIMPL
    core_cur: int = FIELD_NOTIMPL
    core_max: int = FIELD_NOTIMPL
    memory_cur: int = FIELD_NOTIMPL
    memory_max: int = FIELD_NOTIMPL
    processes_cur: int = FIELD_NOTIMPL
    processes_max: int = FIELD_NOTIMPL
    open_files_cur: int = FIELD_NOTIMPL
    open_files_max: int = FIELD_NOTIMPL
    virtual_memory_cur: int = FIELD_NOTIMPL
    virtual_memory_max: int = FIELD_NOTIMPL

    def as_dict(self) -> dict:
        return {f.name: getattr(self, f.name) for f in fields(self)}


def resource_limit_get() -> FactResult[ResourceLimits]:
    """Snapshot the current soft/hard limits of this process."""
    try:
        import resource
    except ImportError:
        return FactResult.not_implemented()

    limits = ResourceLimits(unlimited=resource.RLIM_INFINITY)

    for prefix, const_name in RLIMIT_TABLE:
        const = getattr(resource, const_name, None)
        cur = hard = FIELD_NOTIMPL
        if const is not None:
            try:
                cur, hard = resource.getrlimit(const)
            except (OSError, ValueError) as exc:
                log.debug("getrlimit(%s) failed: %s", const_name, exc)
                cur = hard = FIELD_NOTIMPL
        setattr(limits, f"{prefix}_cur", cur)
        setattr(limits, f"{prefix}_max", hard)

    return FactResult.success(limits)
