"""
Process identity and signalling.
"""

from __future__ import annotations

import os

from hostfacts.core.errors import FactError, FactResult
from hostfacts.core.session import Session


def pid_get(session: Session) -> int:
    """PID of the calling process, cached on the session."""
    return session.pid


def proc_kill(pid: int, signum: int) -> FactResult[None]:
    """Send *signum* to *pid*; signal 0 only checks that the process exists."""
    try:
        os.kill(pid, signum)
    except OSError as exc:
        return FactResult.failure(FactError.from_oserror(exc))
    return FactResult.success(None)
