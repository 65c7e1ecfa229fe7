import httpx
import pytest

from conftest import LSOF_HEADER, FakeRunner, lsof_line
from devports import cli
from devports.services.port_scanner import PortScanner


@pytest.fixture
def local_scanner(monkeypatch):
    output = "\n".join([LSOF_HEADER, lsof_line("node", 1234, "alice", "127.0.0.1:3000"),
                        lsof_line("mDNSRespo", 312, "_mdns", "*:5353", state="", node="UDP")])
    runner = FakeRunner({"lsof": lambda args: output if "-i" in args else ""})
    monkeypatch.setattr(cli, "PortScanner", lambda: PortScanner(runner))
    return runner


def test_scan_prints_table(local_scanner, capsys):
    assert cli.main(["scan"]) == 0

    out = capsys.readouterr().out
    assert "PORT" in out
    assert "3000" in out
    assert "5353" in out
    assert "2 ports" in out


def test_scan_protocol_filter(local_scanner, capsys):
    assert cli.main(["scan", "--protocol", "udp"]) == 0

    out = capsys.readouterr().out
    assert "5353" in out
    assert "3000 " not in out
    assert "1 ports" in out


def test_scan_failure_exit_code(monkeypatch, capsys):
    from conftest import command_error

    runner = FakeRunner({"lsof": command_error()})
    monkeypatch.setattr(cli, "PortScanner", lambda: PortScanner(runner))

    assert cli.main(["scan"]) == 1
    assert "Scan failed" in capsys.readouterr().err


def test_restart_calls_server(monkeypatch, capsys):
    seen = {}

    def fake_request(method, url, **kwargs):
        seen.update(method=method, url=url, json=kwargs.get("json"))
        return httpx.Response(200, json={"restarted": {}, "command": ["yarn", "dev"]})

    monkeypatch.setattr(cli.httpx, "request", fake_request)

    assert cli.main(["restart", "3000", "1234"]) == 0
    assert seen["method"] == "POST"
    assert seen["url"].endswith("/api/ports/restart")
    assert seen["json"] == {"port": 3000, "pid": 1234}
    assert "yarn dev" in capsys.readouterr().out


def test_server_error_exits(monkeypatch):
    monkeypatch.setattr(
        cli.httpx, "request",
        lambda method, url, **kw: httpx.Response(404, json={"detail": "Port not found"}),
    )

    with pytest.raises(SystemExit, match="Port not found"):
        cli.main(["restart", "1", "2"])
