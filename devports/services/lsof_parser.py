"""Parse `lsof -i -P -n` listings into connection records."""

import re

from devports.models import ConnectionRecord, PortStatus, Protocol

# Shortest row that still carries an address; full lsof rows have 9 or 10
MIN_COLUMNS = 8

# Digits must end the local endpoint, so "[::1]:3000" yields 3000, not 1
PORT_RE = re.compile(r":(\d+)(?=->|$)")


def _protocol(line: str) -> Protocol:
    return Protocol.UDP if "UDP" in line else Protocol.TCP


def _status(line: str) -> PortStatus:
    if "(LISTEN)" in line:
        return PortStatus.LISTENING
    if "(ESTABLISHED)" in line:
        return PortStatus.ESTABLISHED
    return PortStatus.OTHER


def _address_field(parts: list[str]) -> str:
    """NAME column: the last token that is not a "(STATE)" annotation."""
    for token in reversed(parts[3:]):
        if not token.startswith("("):
            return token
    return ""


def parse_line(line: str) -> ConnectionRecord | None:
    """Parse one connection line. Returns None for anything malformed."""
    parts = line.split()
    if len(parts) < MIN_COLUMNS:
        return None

    command = parts[0]
    try:
        pid = int(parts[1])
    except ValueError:
        return None
    user = parts[2]

    # For "a:1->b:2" the first match is the local port
    port_match = PORT_RE.search(_address_field(parts))
    if not port_match:
        return None
    port = int(port_match.group(1))
    if port > 65535:
        return None

    return ConnectionRecord(
        port=port,
        pid=pid,
        command=command,
        user=user,
        protocol=_protocol(line),
        status=_status(line),
    )


def parse_connections(output: str) -> list[ConnectionRecord]:
    """Parse the full listing, header included. Keeps parse order and duplicates."""
    records = []
    for line in output.split("\n")[1:]:
        if not line.strip():
            continue
        record = parse_line(line)
        if record is not None:
            records.append(record)
    return records
