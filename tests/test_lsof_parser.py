import pytest

from conftest import LSOF_HEADER, lsof_line
from devports.models import PortStatus, Protocol
from devports.services.lsof_parser import parse_connections, parse_line


def test_single_listening_line():
    output = "COMMAND\nnode    1234  alice  3u  IPv4 ...  127.0.0.1:3000 (LISTEN)\n"

    records = parse_connections(output)

    assert len(records) == 1
    r = records[0]
    assert (r.port, r.pid, r.user) == (3000, 1234, "alice")
    assert r.command == "node"
    assert r.process_name == "node"
    assert r.protocol == Protocol.TCP
    assert r.status == PortStatus.LISTENING
    assert r.project is None


@pytest.mark.parametrize(
    "state, expected",
    [
        ("(LISTEN)", PortStatus.LISTENING),
        ("(ESTABLISHED)", PortStatus.ESTABLISHED),
        ("(CLOSE_WAIT)", PortStatus.OTHER),
        ("", PortStatus.OTHER),
    ],
)
def test_status_mapping(state, expected):
    record = parse_line(lsof_line("nginx", 80, "root", "*:8080", state))
    assert record.status == expected
    assert record.port == 8080


def test_udp_substring_selects_udp():
    line = lsof_line("mDNSRespo", 312, "_mdns", "*:5353", state="", node="UDP")
    assert parse_line(line).protocol == Protocol.UDP
    assert parse_line(lsof_line("node", 1, "a", "*:3000")).protocol == Protocol.TCP


def test_established_uses_local_port():
    line = lsof_line("Google", 777, "bob", "192.168.1.5:52011->142.250.1.1:443", "(ESTABLISHED)")
    record = parse_line(line)
    assert record.port == 52011
    assert record.status == PortStatus.ESTABLISHED


def test_ipv6_address():
    record = parse_line(lsof_line("python3", 55, "alice", "[::1]:8000"))
    assert record.port == 8000


def test_short_line_is_dropped_without_affecting_others():
    output = "\n".join([
        LSOF_HEADER,
        "node 1234 alice",
        lsof_line("node", 1234, "alice", "127.0.0.1:3000"),
        "",
        lsof_line("ruby", 99, "alice", "*:4567"),
    ])

    records = parse_connections(output)

    assert [r.port for r in records] == [3000, 4567]


def test_bad_pid_and_missing_port_are_dropped():
    output = "\n".join([
        LSOF_HEADER,
        lsof_line("node", 1, "alice", "127.0.0.1:3000").replace("     1 ", " abc ", 1),
        lsof_line("node", 2, "alice", "*:*", state=""),
        lsof_line("node", 3, "alice", "127.0.0.1:3001"),
    ])

    assert [(r.pid, r.port) for r in parse_connections(output)] == [(3, 3001)]


def test_out_of_range_port_is_dropped():
    assert parse_line(lsof_line("node", 3, "alice", "127.0.0.1:70000")) is None


def test_duplicates_are_preserved_in_parse_order():
    output = "\n".join([
        LSOF_HEADER,
        lsof_line("node", 10, "alice", "127.0.0.1:5173"),
        lsof_line("node", 10, "alice", "[::1]:5173"),
        lsof_line("node", 9, "alice", "127.0.0.1:3000"),
    ])

    records = parse_connections(output)

    assert [(r.port, r.pid) for r in records] == [(5173, 10), (5173, 10), (3000, 9)]
    assert records[0] == records[1]


def test_header_only_and_empty_output():
    assert parse_connections(LSOF_HEADER) == []
    assert parse_connections("") == []
