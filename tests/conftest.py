"""Shared fixtures: a scripted command runner that records every invocation."""

import asyncio

import pytest

from devports.config import ScannerConfig
from devports.errors import CommandError
from devports.services.port_scanner import PortScanner

LSOF_HEADER = "COMMAND     PID   USER   FD   TYPE             DEVICE SIZE/OFF NODE NAME"


def lsof_line(command: str, pid: int, user: str, name: str, state: str = "(LISTEN)", node: str = "TCP") -> str:
    return f"{command:<10}{pid:>6} {user:<6} 23u  IPv4 0x8f1c2d3e4f5a6b7c      0t0  {node} {name} {state}".rstrip()


class FakeRunner:
    """Stands in for CommandRunner.

    Responses are keyed by the executable's basename; a value may be a string,
    an exception to raise, or a callable taking the args list.
    """

    def __init__(self, responses: dict | None = None):
        self.responses = dict(responses or {})
        self.calls: list[tuple[str, list[str]]] = []
        self.spawned: list[tuple[str, list[str], str]] = []
        self.gate: asyncio.Event | None = None
        self.quiet_codes: dict[str, tuple[int, ...]] = {}
        self.spawn_error: Exception | None = None

    def calls_to(self, tool: str) -> list[list[str]]:
        return [args for exe, args in self.calls if exe.rsplit("/", 1)[-1] == tool]

    async def run(self, executable: str, args: list[str], quiet_codes: tuple[int, ...] = ()) -> str:
        self.calls.append((executable, list(args)))
        tool = executable.rsplit("/", 1)[-1]
        self.quiet_codes[tool] = quiet_codes
        if tool == "lsof" and "-i" in args and self.gate is not None:
            await self.gate.wait()
        response = self.responses.get(tool, "")
        if callable(response):
            response = response(args)
        if isinstance(response, Exception):
            raise response
        return response

    async def spawn(self, executable: str, args: list[str], cwd: str) -> int:
        self.spawned.append((executable, list(args), cwd))
        if self.spawn_error is not None:
            raise self.spawn_error
        return 4242


def command_error(tool: str = "lsof") -> CommandError:
    return CommandError(tool, ["-i"], "permission denied", returncode=1)


@pytest.fixture
def fake_runner():
    return FakeRunner()


@pytest.fixture
def scanner(fake_runner):
    return PortScanner(fake_runner, ScannerConfig(auto_refresh_s=0, restart_settle_delay_s=0.01))
