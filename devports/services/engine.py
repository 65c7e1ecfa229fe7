"""Process-wide scanner and lifecycle controller, started with the app."""

import logging

from devports.config import config
from devports.services.command_runner import CommandRunner
from devports.services.lifecycle import LifecycleController
from devports.services.port_scanner import PortScanner

log = logging.getLogger("devports.engine")

scanner: PortScanner | None = None
controller: LifecycleController | None = None


def start(runner: CommandRunner | None = None, auto_refresh_s: float | None = None) -> PortScanner:
    """Create the scanner, kick off a first scan and the auto-refresh timer."""
    global scanner, controller
    if scanner is None:
        scanner = PortScanner(runner)
        controller = LifecycleController(scanner)
        interval = config.scanner.auto_refresh_s if auto_refresh_s is None else auto_refresh_s
        if interval:
            scanner.set_auto_refresh(interval)
        else:
            scanner.scan()
        log.info("[engine] started")
    return scanner


async def stop():
    global scanner, controller
    if scanner is not None:
        if controller is not None:
            await controller.cancel_pending()
        await scanner.close()
        scanner = None
        controller = None
        log.info("[engine] stopped")


def get_scanner() -> PortScanner:
    if scanner is None:
        return start()
    return scanner


def get_controller() -> LifecycleController:
    if controller is None:
        start()
    return controller
