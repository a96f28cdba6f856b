"""
CLI entry-point for the Host Facts Toolkit.

Every command runs one library query and renders it as a report:
``hostfacts ifaces``, ``hostfacts ifconfig eth0``, ``hostfacts fqdn`` etc.
"""

from __future__ import annotations

import argparse
import datetime
import sys
from typing import Optional

from hostfacts import __app_name__, __version__
from hostfacts.config import SETTINGS
from hostfacts.core.errors import FIELD_NOTIMPL, ErrorKind, FactResult, strerror
from hostfacts.core.session import Session
from hostfacts.core.utils import FactReport, Status


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="hostfacts",
        description=f"{__app_name__} — point-in-time facts about this host.",
    )
    p.add_argument("-V", "--version", action="version", version=f"%(prog)s {__version__}")
    p.add_argument("-v", "--verbose", action="count", default=0, help="Log diagnostics to stderr (-vv for debug)")

    sub = p.add_subparsers(dest="command", help="Fact to query.")

    # ── interfaces ────────────────────────────────────────────────────────
    sub.add_parser("ifaces", aliases=["interfaces"], help="List network interface names")

    sp = sub.add_parser("ifconfig", help="Show interface configuration")
    sp.add_argument("name", nargs="?", help="Interface name (default: all)")

    # ── naming ────────────────────────────────────────────────────────────
    sub.add_parser("fqdn", help="Fully-qualified hostname of this machine")

    # ── users / limits ────────────────────────────────────────────────────
    sp = sub.add_parser("who", help="Logged-in users")
    sp.add_argument("-f", "--file", default="", dest="utmp_file", help=f"utmp file (default: {SETTINGS.utmp_file})")

    sub.add_parser("limits", aliases=["rlimit"], help="Resource limits of this process")

    # ── filesystems / routes / connections ────────────────────────────────
    sub.add_parser("fs", aliases=["filesystems"], help="Mounted filesystems")
    sub.add_parser("routes", aliases=["route"], help="IPv4 routing table")

    sp = sub.add_parser("conns", aliases=["connections"], help="TCP/UDP sockets")
    sp.add_argument("-l", "--listening", action="store_true", help="Only listening sockets")
    sp.add_argument("--tcp", action="store_true", help="Only TCP")
    sp.add_argument("--udp", action="store_true", help="Only UDP")

    return p


# ── Report builders ───────────────────────────────────────────────────────────


def _failed(title: str, result: FactResult, target: str = "") -> Optional[FactReport]:
    """Return an error/unsupported report if *result* failed, else None."""
    if result.ok:
        return None
    if result.error.kind is ErrorKind.NOT_IMPLEMENTED:
        return FactReport(title=title, status=Status.UNSUPPORTED, target=target, summary=strerror(result.error))
    return FactReport(
        title=title,
        status=Status.ERROR,
        target=target,
        summary=strerror(result.error),
        details=[f"errno {result.error.code}"] if result.error.code else [],
    )


def report_interfaces(session: Session) -> FactReport:
    from hostfacts.core.interfaces import net_interface_list

    title = "Network Interfaces"
    result = net_interface_list(session)
    failed = _failed(title, result)
    if failed:
        return failed
    names = result.value
    report = FactReport(
        title=title,
        status=Status.SUCCESS,
        summary=f"{names.count} interface(s) found.",
        details=list(names),
    )
    names.destroy()
    return report


def _ifconfig_lines(cfg) -> list[str]:
    flags = ",".join(f.name for f in type(cfg.flags) if f in cfg.flags) or "-"
    return [
        f"{cfg.name:<10} inet {cfg.address}  netmask {cfg.netmask}  broadcast {cfg.broadcast}",
        f"{'':<10} destination {cfg.destination}  hwaddr {cfg.hwaddr_str}",
        f"{'':<10} flags <{flags}>  mtu {cfg.mtu}  metric {cfg.metric}",
    ]


def report_ifconfig(session: Session, name: Optional[str] = None) -> FactReport:
    from hostfacts.core.ifconfig import net_interface_config_get
    from hostfacts.core.interfaces import net_interface_list

    title = "Interface Configuration"
    if name:
        names = [name]
    else:
        listed = net_interface_list(session)
        failed = _failed(title, listed)
        if failed:
            return failed
        names = listed.value.to_list()
        listed.value.destroy()

    details: list[str] = []
    errors = 0
    for ifname in names:
        result = net_interface_config_get(session, ifname)
        if not result.ok:
            errors += 1
            details.append(f"{ifname:<10} {strerror(result.error)}")
            continue
        details.extend(_ifconfig_lines(result.value))

    if errors == len(names):
        status = Status.ERROR
    elif errors:
        status = Status.PARTIAL
    else:
        status = Status.SUCCESS
    return FactReport(
        title=title,
        status=status,
        target=name or "",
        summary=f"{len(names) - errors} of {len(names)} interface(s) resolved.",
        details=details,
    )


def report_fqdn(session: Session) -> FactReport:
    from hostfacts.core.fqdn import fqdn_get

    title = "Fully-Qualified Hostname"
    result = fqdn_get(session)
    failed = _failed(title, result)
    if failed:
        return failed
    if result.degraded:
        return FactReport(
            title=title,
            status=Status.PARTIAL,
            target=result.value,
            summary=f"No DNS name found, {result.error.message}.",
        )
    return FactReport(title=title, status=Status.SUCCESS, target=result.value, summary=result.value)


def report_who(utmp_file: str = "") -> FactReport:
    from hostfacts.core.who import who_list

    title = "Logged-in Users"
    result = who_list(utmp_file)
    failed = _failed(title, result)
    if failed:
        return failed
    details = [
        f"{w.user:<12} {w.device:<10} {datetime.datetime.fromtimestamp(w.time):%Y-%m-%d %H:%M}  {w.host}"
        for w in result.value
    ]
    return FactReport(title=title, status=Status.SUCCESS, summary=f"{result.value.count} session(s).", details=details)


def _limit(value: int, unlimited: int) -> str:
    if value == FIELD_NOTIMPL:
        return "-"
    if value == unlimited:
        return "unlimited"
    return str(value)


def report_limits() -> FactReport:
    from hostfacts.core.rlimit import RLIMIT_TABLE, resource_limit_get

    title = "Resource Limits"
    result = resource_limit_get()
    failed = _failed(title, result)
    if failed:
        return failed
    limits = result.value
    details = [f"{'resource':<16} {'cur':>20} {'max':>20}"]
    for prefix, _ in RLIMIT_TABLE:
        cur = _limit(getattr(limits, f"{prefix}_cur"), limits.unlimited)
        hard = _limit(getattr(limits, f"{prefix}_max"), limits.unlimited)
        details.append(f"{prefix:<16} {cur:>20} {hard:>20}")
    return FactReport(title=title, status=Status.SUCCESS, summary="Soft and hard limits.", details=details)


def report_filesystems() -> FactReport:
    from hostfacts.core.filesystems import file_system_list

    title = "Filesystems"
    result = file_system_list()
    failed = _failed(title, result)
    if failed:
        return failed
    details = [f"{f.dir_name:<28} {f.sys_type_name:<12} {f.type_name:<8} {f.dev_name}" for f in result.value]
    return FactReport(title=title, status=Status.SUCCESS, summary=f"{result.value.count} mount(s).", details=details)


def report_routes() -> FactReport:
    from hostfacts.core.routing import net_route_list

    title = "Routing Table"
    result = net_route_list()
    failed = _failed(title, result)
    if failed:
        return failed
    details = [
        f"{str(r.destination):<16} {str(r.gateway):<16} {str(r.mask):<16} {r.metric:>5} {r.ifname}"
        for r in result.value
    ]
    return FactReport(title=title, status=Status.SUCCESS, summary=f"{result.value.count} route(s).", details=details)


def report_connections(listening: bool = False, tcp: bool = False, udp: bool = False) -> FactReport:
    from hostfacts.core.connections import (
        ConnectionFlags,
        connection_type_name,
        net_connection_list,
        tcp_state_name,
    )

    title = "Active Connections"
    flags = ConnectionFlags.SERVER if listening else ConnectionFlags.SERVER | ConnectionFlags.CLIENT
    if tcp or not udp:
        flags |= ConnectionFlags.TCP
    if udp or not tcp:
        flags |= ConnectionFlags.UDP

    result = net_connection_list(flags)
    failed = _failed(title, result)
    if failed:
        return failed
    details = [
        f"{connection_type_name(c.type):<4} {f'{c.local_address}:{c.local_port}':<28} "
        f"{f'{c.remote_address}:{c.remote_port}':<28} {tcp_state_name(c.state)}"
        for c in result.value
    ]
    # Limit display to first 100 to avoid wall-of-text
    extra = f" (showing first 100 of {len(details)})" if len(details) > 100 else ""
    return FactReport(
        title=title,
        status=Status.SUCCESS,
        summary=f"{len(details)} socket(s) found{extra}.",
        details=details[:100],
    )


def _dispatch(args: argparse.Namespace) -> FactReport:
    cmd = args.command

    if cmd in ("who",):
        return report_who(args.utmp_file)
    if cmd in ("limits", "rlimit"):
        return report_limits()
    if cmd in ("fs", "filesystems"):
        return report_filesystems()
    if cmd in ("routes", "route"):
        return report_routes()
    if cmd in ("conns", "connections"):
        return report_connections(args.listening, args.tcp, args.udp)

    with Session() as session:
        if cmd in ("ifaces", "interfaces"):
            return report_interfaces(session)
        if cmd == "ifconfig":
            return report_ifconfig(session, args.name)
        return report_fqdn(session)


def main(argv: Optional[list[str]] = None) -> None:
    """Main entry-point called by the ``hostfacts`` console script or ``python -m hostfacts``."""
    from hostfacts.core.logs import setup_logging
    from hostfacts.core.utils import print_result

    parser = _build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(2)

    level = {0: SETTINGS.log_level, 1: "INFO"}.get(args.verbose, "DEBUG")
    setup_logging(level)

    try:
        report = _dispatch(args)
    except KeyboardInterrupt:
        print("\nAborted.")
        sys.exit(130)

    print_result(report)
    if report.status is Status.ERROR:
        sys.exit(1)


if __name__ == "__main__":
    main()
