"""Search and filter a snapshot the way the port monitor list does."""

from typing import Iterable

from devports.models import ConnectionRecord, Protocol


def matches_search(record: ConnectionRecord, search: str) -> bool:
    needle = search.lower()
    return (
        needle in str(record.port)
        or needle in str(record.pid)
        or needle in record.process_name.lower()
        or needle in record.command.lower()
        or (record.project is not None and needle in record.project.name.lower())
    )


def filter_records(
    records: Iterable[ConnectionRecord],
    search: str = "",
    protocol: Protocol | None = None,
    projects_only: bool = False,
) -> list[ConnectionRecord]:
    filtered = list(records)
    if protocol is not None:
        filtered = [r for r in filtered if r.protocol == protocol]
    if projects_only:
        filtered = [r for r in filtered if r.project is not None]
    if search:
        filtered = [r for r in filtered if matches_search(r, search)]
    return filtered
