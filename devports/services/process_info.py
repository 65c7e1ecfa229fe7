"""Per-process lookups: command name and working directory. Best-effort, never raises."""

import logging
import os

from devports.config import config
from devports.errors import CommandError
from devports.services.command_runner import CommandRunner

log = logging.getLogger("devports.process_info")


async def resolve_process_name(runner: CommandRunner, pid: int) -> str | None:
    """Command name from the process table (`ps -o comm=`)."""
    try:
        output = await runner.run(config.tools.ps_path, ["-p", str(pid), "-o", "comm="])
    except CommandError as e:
        log.debug(f"[process_info] name lookup failed for {pid}: {e}")
        return None

    name = output.strip()
    if not name:
        return None
    # macOS reports the full executable path
    return os.path.basename(name) or name


def parse_cwd_output(output: str) -> str | None:
    """Pick the directory out of `lsof -Fn` field output ("p<pid>", "fcwd", "n<path>")."""
    for line in output.split("\n"):
        if line.startswith("n") and len(line) > 1:
            return line[1:]
    return None


async def resolve_working_directory(runner: CommandRunner, pid: int) -> str | None:
    """Current working directory of a process via `lsof -a -p <pid> -d cwd -Fn`."""
    try:
        output = await runner.run(config.tools.lsof_path, ["-a", "-p", str(pid), "-d", "cwd", "-Fn"])
    except CommandError as e:
        log.debug(f"[process_info] cwd lookup failed for {pid}: {e}")
        return None
    return parse_cwd_output(output)
