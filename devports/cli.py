"""devports command line: one-off local scans, or drive a running devports server."""

import argparse
import asyncio
import logging
import sys

import httpx

from devports.config import config
from devports.models import ConnectionRecord, Protocol
from devports.services.port_scanner import PortScanner
from devports.services.record_filter import filter_records


def format_row(r: ConnectionRecord) -> str:
    project = f"{r.project.name} ({r.project.type.display_name})" if r.project else "-"
    return f"{r.port:<7}{r.protocol.value:<6}{r.status.value:<13}{r.pid:<8}{r.user:<12}{r.process_name[:20]:<22}{project}"


def print_table(records: list[ConnectionRecord]) -> None:
    header = f"{'PORT':<7}{'PROTO':<6}{'STATUS':<13}{'PID':<8}{'USER':<12}{'PROCESS':<22}PROJECT"
    print(header + "\n" + "-" * len(header))
    for r in records:
        print(format_row(r))
    print(f"\n{len(records)} ports")


def _protocol(value: str | None) -> Protocol | None:
    return Protocol(value) if value else None


async def _scan_local(args: argparse.Namespace) -> int:
    scanner = PortScanner()
    await scanner.refresh()
    if scanner.error:
        print(f"Scan failed: {scanner.error}", file=sys.stderr)
        return 1
    records = filter_records(scanner.current_records(), args.search, _protocol(args.protocol), args.projects_only)
    print_table(records)
    return 0


def cmd_scan(args: argparse.Namespace) -> int:
    return asyncio.run(_scan_local(args))


def cmd_serve(args: argparse.Namespace) -> int:
    import uvicorn

    uvicorn.run("devports.main:app", host=args.host, port=args.port)
    return 0


def _api(method: str, path: str, **kwargs) -> dict:
    r = httpx.request(method, f"{config.server.base_url}/api{path}", timeout=10, **kwargs)
    if r.status_code >= 400:
        detail = r.json().get("detail", r.text) if r.headers.get("content-type", "").startswith("application/json") else r.text
        raise SystemExit(f"Error {r.status_code}: {detail}")
    return r.json()


def cmd_ports(args: argparse.Namespace) -> int:
    params = {"q": args.search, "projects_only": args.projects_only}
    if args.protocol:
        params["protocol"] = args.protocol
    data = _api("GET", "/ports", params=params)
    if data.get("error"):
        print(f"Last scan failed: {data['error']}", file=sys.stderr)
    for p in data["ports"]:
        project = f"{p['project']['name']} ({p['project']['display_type']})" if p["project"] else "-"
        print(f"{p['port']:<7}{p['protocol']:<6}{p['status']:<13}{p['pid']:<8}{p['user']:<12}{p['process_name'][:20]:<22}{project}")
    print(f"\n{data['count']} ports")
    return 0


def cmd_kill(args: argparse.Namespace) -> int:
    _api("POST", f"/ports/{args.pid}/terminate")
    print(f"Process {args.pid} terminated.")
    return 0


def cmd_restart(args: argparse.Namespace) -> int:
    data = _api("POST", "/ports/restart", json={"port": args.port, "pid": args.pid})
    print(f"Service restarted: {' '.join(data['command'])}")
    return 0


def cmd_open(args: argparse.Namespace) -> int:
    _api("POST", "/editor/open", json={"path": args.path})
    print(f"Opened {args.path}")
    return 0


def _add_filters(p: argparse.ArgumentParser) -> None:
    p.add_argument("--search", "-s", default="", help="Match port, pid, process or project name")
    p.add_argument("--protocol", choices=[proto.value for proto in Protocol], help="Only this protocol")
    p.add_argument("--projects-only", action="store_true", help="Only ports with a detected project")


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="devports - open ports and the projects behind them")
    ap.add_argument("--verbose", "-v", action="store_true")
    sub = ap.add_subparsers(dest="cmd", required=True)

    p_scan = sub.add_parser("scan", help="Scan locally once and print the result")
    _add_filters(p_scan)
    p_scan.set_defaults(func=cmd_scan)

    p_serve = sub.add_parser("serve", help="Run the devports API server")
    p_serve.add_argument("--host", default=config.server.host)
    p_serve.add_argument("--port", type=int, default=config.server.port)
    p_serve.set_defaults(func=cmd_serve)

    p_ports = sub.add_parser("ports", help="List ports from a running server")
    _add_filters(p_ports)
    p_ports.set_defaults(func=cmd_ports)

    p_kill = sub.add_parser("kill", help="Terminate a process")
    p_kill.add_argument("pid", type=int)
    p_kill.set_defaults(func=cmd_kill)

    p_restart = sub.add_parser("restart", help="Restart the project serving a port")
    p_restart.add_argument("port", type=int)
    p_restart.add_argument("pid", type=int)
    p_restart.set_defaults(func=cmd_restart)

    p_open = sub.add_parser("open", help="Open a project directory in the editor")
    p_open.add_argument("path")
    p_open.set_defaults(func=cmd_open)

    return ap


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    return args.func(args)


if __name__ == "__main__":
    raise SystemExit(main())
