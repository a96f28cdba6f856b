"""
Session logger — records every rendered FactReport to a JSON-lines file.

The logger is a lightweight singleton.  Call ``SessionLogger.get()`` to
obtain the instance, then ``.log(report)`` after each query.

Nothing is written to disk unless a log directory is configured
(``HOSTFACTS_LOG_DIR``); reports are still kept in memory.
"""

from __future__ import annotations

import json
import logging
import os
from datetime import datetime
from typing import List, Optional

from hostfacts.config import SETTINGS
from hostfacts.core.utils import FactReport, Status

log = logging.getLogger(__name__)


class SessionLogger:
    """Append-only JSON-lines logger for a single CLI run."""

    _instance: Optional["SessionLogger"] = None

    def __init__(self, log_dir: Optional[str] = None) -> None:
        self._log_dir = log_dir if log_dir is not None else SETTINGS.log_dir
        self._log_path = ""
        if self._log_dir:
            os.makedirs(self._log_dir, exist_ok=True)
            ts = datetime.now().strftime("%Y%m%d_%H%M%S")
            self._log_path = os.path.join(self._log_dir, f"session_{ts}.jsonl")
        self._reports: list[FactReport] = []
        self._enabled = bool(self._log_path)

    # ── Singleton access ──────────────────────────────────────────────────

    @classmethod
    def get(cls, log_dir: Optional[str] = None) -> "SessionLogger":
        """Return the global session logger (create on first call)."""
        if cls._instance is None:
            cls._instance = cls(log_dir)
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Discard the singleton (for tests)."""
        cls._instance = None

    # ── Properties ────────────────────────────────────────────────────────

    @property
    def log_path(self) -> str:
        return self._log_path

    @property
    def reports(self) -> List[FactReport]:
        """All reports logged in this session (in-memory copy)."""
        return list(self._reports)

    @property
    def enabled(self) -> bool:
        return self._enabled

    @enabled.setter
    def enabled(self, value: bool) -> None:
        self._enabled = value and bool(self._log_path)

    # ── Core API ──────────────────────────────────────────────────────────

    def log(self, report: FactReport) -> None:
        """Append a report to the in-memory list and flush to disk."""
        self._reports.append(report)
        if not self._enabled:
            return
        entry = {
            "title": report.title,
            "status": report.status.value,
            "target": report.target,
            "summary": report.summary,
            "details": report.details,
            "timestamp": report.timestamp,
        }
        try:
            with open(self._log_path, "a", encoding="utf-8") as fh:
                fh.write(json.dumps(entry, ensure_ascii=False) + "\n")
        except OSError as exc:
            log.warning("cannot write session log %s: %s", self._log_path, exc)

    def summary(self) -> str:
        """Return a one-line summary of the current session."""
        total = len(self._reports)
        if total == 0:
            return "No queries run in this session."
        ok = sum(1 for r in self._reports if r.status == Status.SUCCESS)
        failed = sum(1 for r in self._reports if r.status == Status.ERROR)
        other = total - ok - failed
        where = f"  Log: {self._log_path}" if self._log_path else ""
        return f"Session: {total} query(ies) — {ok} ok, {failed} failed, {other} partial/unsupported.{where}"
