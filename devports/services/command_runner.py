"""Run external inspection tools and capture their stdout."""

import asyncio
import logging

from devports.config import config
from devports.errors import CommandError

log = logging.getLogger("devports.runner")


class CommandRunner:
    """Thin async wrapper over subprocess execution. No retries."""

    def __init__(self, timeout: float | None = None):
        self.timeout = timeout if timeout is not None else config.tools.command_timeout_s

    async def run(self, executable: str, args: list[str], quiet_codes: tuple[int, ...] = ()) -> str:
        """Run a command to completion and return its stdout.

        Raises CommandError if the tool cannot be launched, exits non-zero,
        or does not finish within the timeout. stderr is only used to
        describe a failure. An exit status listed in quiet_codes is not a
        failure as long as nothing was written to stderr (lsof exits 1 when
        it finds nothing).
        """
        try:
            proc = await asyncio.create_subprocess_exec(
                executable, *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise CommandError(executable, args, f"failed to launch: {e}") from e

        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            proc.kill()
            await proc.wait()
            raise CommandError(executable, args, f"timed out after {self.timeout}s") from e

        if proc.returncode != 0:
            error_text = stderr.decode("utf-8", errors="replace").strip()
            if proc.returncode in quiet_codes and not error_text:
                log.debug(f"[runner] {executable} exited {proc.returncode} with no output on stderr")
            else:
                message = error_text or f"exit status {proc.returncode}"
                raise CommandError(executable, args, message, returncode=proc.returncode)

        return stdout.decode("utf-8", errors="replace")

    async def spawn(self, executable: str, args: list[str], cwd: str) -> int:
        """Start a detached background process in cwd with its output discarded. Returns the pid."""
        try:
            proc = await asyncio.create_subprocess_exec(
                executable, *args,
                cwd=cwd,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.DEVNULL,
                start_new_session=True,
            )
        except OSError as e:
            raise CommandError(executable, args, f"failed to launch: {e}") from e
        log.info(f"[runner] spawned {executable} {' '.join(args)} in {cwd} (pid {proc.pid})")
        return proc.pid
