"""Ports API: scan results, auto-refresh, terminate/restart, open in editor."""

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from devports.errors import CommandError, MissingProjectContext, UnsupportedProjectType
from devports.models import Protocol
from devports.services import engine
from devports.services.record_filter import filter_records

router = APIRouter(tags=["ports"])


class AutoRefreshUpdate(BaseModel):
    interval_s: float | None = None


class RestartRequest(BaseModel):
    port: int
    pid: int


class EditorRequest(BaseModel):
    path: str


@router.get("/ports")
async def list_ports(q: str = "", protocol: Protocol | None = None, projects_only: bool = False):
    """Latest snapshot, optionally searched and filtered."""
    scanner = engine.get_scanner()
    records = filter_records(scanner.current_records(), q, protocol, projects_only)
    return {
        "ports": [r.to_dict() for r in records],
        "count": len(records),
        "scanning": scanner.is_scanning,
        "error": str(scanner.error) if scanner.error else None,
        "scanned_at": scanner.scanned_at.isoformat() if scanner.scanned_at else None,
        "auto_refresh_s": scanner.auto_refresh_s,
    }


@router.post("/ports/scan")
async def trigger_scan():
    """Start a scan unless one is already running."""
    return {"started": engine.get_scanner().scan()}


@router.put("/ports/auto-refresh")
async def set_auto_refresh(body: AutoRefreshUpdate):
    if body.interval_s is not None and body.interval_s < 0:
        raise HTTPException(422, "interval_s must be positive")
    scanner = engine.get_scanner()
    scanner.set_auto_refresh(body.interval_s)
    return {"auto_refresh_s": scanner.auto_refresh_s}


@router.post("/ports/{pid}/terminate")
async def terminate(pid: int):
    try:
        await engine.get_controller().terminate(pid)
    except CommandError as e:
        raise HTTPException(502, f"Failed to stop process: {e}")
    return {"terminated": pid}


@router.post("/ports/restart")
async def restart(body: RestartRequest):
    record = next(
        (r for r in engine.get_scanner().current_records() if r.key == (body.port, body.pid)),
        None,
    )
    if record is None:
        raise HTTPException(404, "Port not found")
    try:
        command = await engine.get_controller().restart(record)
    except (MissingProjectContext, UnsupportedProjectType) as e:
        raise HTTPException(422, str(e))
    except CommandError as e:
        raise HTTPException(502, f"Failed to restart service: {e}")
    return {"restarted": record.to_dict(), "command": list(command)}


@router.post("/editor/open")
async def open_in_editor(body: EditorRequest):
    try:
        await engine.get_controller().open_in_editor(body.path)
    except CommandError as e:
        raise HTTPException(502, f"Failed to open in editor: {e}")
    return {"opened": body.path}
