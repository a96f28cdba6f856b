"""
Shared utilities: report container, Rich rendering, subprocess runner.
"""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Tuple

from rich import box
from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from hostfacts.config import PLATFORM

console = Console()
err_console = Console(stderr=True)

log = logging.getLogger(__name__)


# ── Report types ──────────────────────────────────────────────────────────────


class Status(Enum):
    SUCCESS = "success"
    PARTIAL = "partial"
    UNSUPPORTED = "unsupported"
    ERROR = "error"


@dataclass
class FactReport:
    """Presentation container for one fact query."""

    title: str
    status: Status
    target: str = ""
    summary: str = ""
    details: List[str] = field(default_factory=list)
    timestamp: str = field(default_factory=lambda: datetime.now().strftime("%Y-%m-%d %H:%M:%S"))


# ── Pretty printing ──────────────────────────────────────────────────────────


# status → (badge, colour)
_BADGES = {
    Status.SUCCESS: ("OK", "green"),
    Status.PARTIAL: ("WARN", "yellow"),
    Status.UNSUPPORTED: ("N/A", "bright_black"),
    Status.ERROR: ("ERR", "red"),
}


def _record(report: FactReport) -> None:
    from hostfacts.core.session_log import SessionLogger

    try:
        SessionLogger.get().log(report)
    except OSError as exc:
        log.warning("session log unavailable: %s", exc)


def _body(report: FactReport, colour: str) -> Group:
    parts = []
    if report.summary:
        parts.append(Text(report.summary, style=f"bold {colour}"))
    if report.details:
        # one fact per row; rows are pre-formatted by the report builders
        rows = Table.grid(padding=(0, 1))
        rows.add_column(style=f"dim {colour}")
        rows.add_column(overflow="fold")
        for line in report.details:
            rows.add_row("›", line)
        parts.append(rows)
    if not parts:
        parts.append(Text("(no details)", style="dim"))
    return Group(*parts)


def print_result(report: FactReport) -> None:
    """Record *report* in the session log and render it as a Rich panel."""
    _record(report)

    badge, colour = _BADGES[report.status]
    header = Text.assemble((f" {badge} ", f"bold white on {colour}"), "  ", (report.title, "bold"))
    if report.target:
        header.append(f"  {report.target}", style="bold cyan")

    console.print()
    console.print(
        Panel(
            _body(report, colour),
            title=header,
            title_align="left",
            subtitle=Text(report.timestamp, style="dim italic"),
            subtitle_align="right",
            border_style=colour,
            box=box.ROUNDED,
        )
    )


# ── Subprocess wrapper ────────────────────────────────────────────────────────


def run_command(
    cmd: list[str],
    timeout: int = 60,
) -> Tuple[int, str, str]:
    """Run an external command and return *(returncode, stdout, stderr)*.

    Output is decoded leniently so non-ASCII characters never crash a parser.
    """
    kwargs: dict = dict(
        timeout=timeout,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
    )

    if PLATFORM.is_windows:
        # Hide the console window that some tools try to spawn
        si = subprocess.STARTUPINFO()  # type: ignore[attr-defined]
        si.dwFlags |= subprocess.STARTF_USESHOWWINDOW  # type: ignore[attr-defined]
        kwargs["startupinfo"] = si

    try:
        proc = subprocess.run(cmd, **kwargs)
        stdout = proc.stdout.decode("utf-8", errors="replace") if proc.stdout else ""
        stderr = proc.stderr.decode("utf-8", errors="replace") if proc.stderr else ""
        return proc.returncode, stdout, stderr
    except FileNotFoundError:
        return -1, "", f"Command not found: {cmd[0]}"
    except subprocess.TimeoutExpired:
        return -2, "", f"Command timed out after {timeout}s"
    except OSError as exc:
        return -3, "", str(exc)
