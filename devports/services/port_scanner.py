"""Scan open ports, enrich them with process and project info, publish snapshots."""

import asyncio
import logging
from datetime import datetime
from typing import Callable

from devports.config import ScannerConfig, config
from devports.errors import CommandError
from devports.models import ConnectionRecord
from devports.services import process_info
from devports.services.command_runner import CommandRunner
from devports.services.lsof_parser import parse_connections
from devports.services.project_classifier import classify

log = logging.getLogger("devports.scanner")

LSOF_ARGS = ["-i", "-P", "-n"]
# lsof exits 1 without complaint when there are no open sockets
LSOF_EMPTY_CODES = (1,)

Snapshot = tuple[ConnectionRecord, ...]


class PortScanner:
    """Owns the published record set.

    At most one scan runs at a time; a trigger that arrives while one is in
    flight is dropped. Each successful scan replaces the snapshot with a new
    tuple in a single assignment, so readers always see a complete set.
    """

    def __init__(self, runner: CommandRunner | None = None, cfg: ScannerConfig | None = None):
        self.runner = runner or CommandRunner()
        self.cfg = cfg or config.scanner
        self._records: Snapshot = ()
        self._scanning = False
        self._scan_task: asyncio.Task | None = None
        self._timer: asyncio.Task | None = None
        self._subscribers: list[Callable[[Snapshot], None]] = []
        self.error: Exception | None = None
        self.scanned_at: datetime | None = None
        self.auto_refresh_s: float | None = None

    def current_records(self) -> Snapshot:
        return self._records

    @property
    def is_scanning(self) -> bool:
        return self._scanning

    def subscribe(self, callback: Callable[[Snapshot], None]) -> None:
        self._subscribers.append(callback)

    def scan(self) -> bool:
        """Fire-and-forget trigger. Returns False if a scan is already running."""
        if self._scanning:
            log.debug("[scanner] scan already in flight, trigger dropped")
            return False
        self._scanning = True
        self._scan_task = asyncio.get_running_loop().create_task(self._scan_cycle())
        return True

    async def refresh(self) -> bool:
        """Run one scan inline. Returns False if another scan was already running."""
        if self._scanning:
            return False
        self._scanning = True
        self._scan_task = asyncio.get_running_loop().create_task(self._scan_cycle())
        await self._scan_task
        return True

    async def wait_idle(self) -> None:
        """Wait for the in-flight scan, if any, to finish."""
        task = self._scan_task
        if task is not None and not task.done():
            await asyncio.shield(task)

    async def _scan_cycle(self) -> None:
        start = datetime.now()
        try:
            try:
                output = await self.runner.run(config.tools.lsof_path, LSOF_ARGS, quiet_codes=LSOF_EMPTY_CODES)
            except CommandError as e:
                self.error = e
                log.error(f"[scanner] connection listing failed: {e}")
                return

            records = await self._enrich(parse_connections(output))
            self._publish(tuple(records))
            elapsed = (datetime.now() - start).total_seconds()
            log.info(f"[scanner] scan completed in {elapsed:.1f}s: {len(records)} connections")
        except Exception as e:
            self.error = e
            log.exception(f"[scanner] scan failed: {e}")
        finally:
            self._scanning = False

    async def _enrich(self, records: list[ConnectionRecord]) -> list[ConnectionRecord]:
        """Resolve name and cwd once per pid, then classify each record."""
        sem = asyncio.Semaphore(max(1, self.cfg.max_concurrent_lookups))

        async def _lookup(pid: int) -> tuple[int, str | None, str | None]:
            async with sem:
                name = await process_info.resolve_process_name(self.runner, pid)
                cwd = await process_info.resolve_working_directory(self.runner, pid)
            return pid, name, cwd

        pids = list(dict.fromkeys(r.pid for r in records))
        lookups = await asyncio.gather(*[_lookup(pid) for pid in pids])
        info = {pid: (name, cwd) for pid, name, cwd in lookups}

        enriched = []
        for record in records:
            name, cwd = info[record.pid]
            record = record.with_process_name(name)
            enriched.append(record.with_project(classify(record.port, record.process_name, cwd)))
        return enriched

    def _publish(self, snapshot: Snapshot) -> None:
        self._records = snapshot
        self.error = None
        self.scanned_at = datetime.now()
        for callback in self._subscribers:
            try:
                callback(snapshot)
            except Exception as e:
                log.error(f"[scanner] subscriber failed: {e}")

    def set_auto_refresh(self, interval: float | None) -> None:
        """Start (or restart) the periodic trigger; None or 0 disables it.

        Disabling only stops future triggers, it never interrupts a running scan.
        """
        if interval is not None and interval < 0:
            raise ValueError(f"auto-refresh interval must not be negative: {interval}")
        if self._timer is not None and not self._timer.done():
            self._timer.cancel()
            log.info("[scanner] auto-refresh stopped")
        self._timer = None
        self.auto_refresh_s = None

        if interval:
            self.auto_refresh_s = interval
            self._timer = asyncio.get_running_loop().create_task(self._auto_refresh_loop(interval))
            log.info(f"[scanner] auto-refresh every {interval}s")

    async def _auto_refresh_loop(self, interval: float) -> None:
        while True:
            self.scan()
            await asyncio.sleep(interval)

    def schedule_scan(self, delay: float) -> asyncio.Task:
        """Trigger a scan after a settle delay."""

        async def _delayed():
            if delay > 0:
                await asyncio.sleep(delay)
            self.scan()

        return asyncio.get_running_loop().create_task(_delayed())

    async def close(self) -> None:
        self.set_auto_refresh(None)
        await self.wait_idle()
