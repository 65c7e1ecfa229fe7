"""Stop, restart and open the projects behind scanned ports."""

import asyncio
import logging
from pathlib import Path

from devports.config import config
from devports.errors import MissingProjectContext, UnsupportedProjectType
from devports.models import ConnectionRecord, ProjectType
from devports.services.command_runner import CommandRunner
from devports.services.port_scanner import PortScanner

log = logging.getLogger("devports.lifecycle")

# Lockfile -> dev command; first hit wins, npm when none is present
NODE_LOCKFILES = [
    ("yarn.lock", ("yarn", "dev")),
    ("pnpm-lock.yaml", ("pnpm", "dev")),
    ("bun.lockb", ("bun", "run", "dev")),
]
NODE_DEFAULT = ("npm", "run", "dev")

PYTHON_ENTRY_POINTS = [
    ("manage.py", ("python", "manage.py", "runserver")),
    ("app.py", ("python", "app.py")),
]


def _exists(path: Path) -> bool:
    try:
        return path.exists()
    except OSError as e:
        log.debug(f"[lifecycle] cannot check {path}: {e}")
        return False


def start_command(project_type: ProjectType, path: str) -> tuple[str, ...]:
    """Command that starts the project in path. Raises UnsupportedProjectType."""
    root = Path(path)

    if project_type.is_node_family:
        for lockfile, command in NODE_LOCKFILES:
            if _exists(root / lockfile):
                return command
        return NODE_DEFAULT

    if project_type.is_python_family:
        for entry, command in PYTHON_ENTRY_POINTS:
            if _exists(root / entry):
                return command
        raise UnsupportedProjectType(project_type.value, "no manage.py or app.py")

    command = project_type.style.start_command
    if command is None:
        raise UnsupportedProjectType(project_type.value)
    return command


class LifecycleController:
    def __init__(self, scanner: PortScanner, runner: CommandRunner | None = None):
        self.scanner = scanner
        self.runner = runner or scanner.runner
        self._pending: set[asyncio.Task] = set()

    def _rescan_after(self, delay: float) -> None:
        task = self.scanner.schedule_scan(delay)
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def cancel_pending(self) -> None:
        """Drop follow-up scans that have not fired yet."""
        tasks = list(self._pending)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._pending.clear()

    async def _kill(self, pid: int) -> None:
        await self.runner.run(config.tools.kill_path, [str(pid)])
        log.info(f"[lifecycle] sent SIGTERM to {pid}")

    async def terminate(self, pid: int) -> None:
        """Kill a process, then trigger a re-scan. CommandError propagates."""
        await self._kill(pid)
        self._rescan_after(self.scanner.cfg.kill_settle_delay_s)

    async def restart(self, record: ConnectionRecord) -> tuple[str, ...]:
        """Kill the record's process and start its project again. Returns the start command.

        All validation happens before the kill, so a restart that cannot
        complete never stops anything.
        """
        project = record.project
        if project is None or not project.path:
            raise MissingProjectContext(record.port, record.pid)

        command = start_command(project.type, project.path)

        await self._kill(record.pid)
        try:
            await self.runner.spawn(config.tools.env_path, list(command), cwd=project.path)
        finally:
            self._rescan_after(self.scanner.cfg.restart_settle_delay_s)
        log.info(f"[lifecycle] restarted {project.name} with '{' '.join(command)}'")
        return command

    async def open_in_editor(self, path: str) -> None:
        """Open a project directory in the configured editor. Not retried."""
        executable, *args = config.editor.command
        await self.runner.run(executable, [*args, path])
        log.info(f"[lifecycle] opened {path} in {executable}")
