import pytest

from devports.models import ConnectionRecord, PortStatus, ProjectInfo, ProjectType, Protocol
from devports.services.record_filter import filter_records


def test_identity_is_port_and_pid():
    a = ConnectionRecord(port=3000, pid=1, command="node", user="a", status=PortStatus.LISTENING)
    b = ConnectionRecord(port=3000, pid=1, command="node", user="b", status=PortStatus.ESTABLISHED)
    c = ConnectionRecord(port=3000, pid=2, command="node", user="a")

    assert a == b
    assert a != c
    assert len({a, b, c}) == 2


def test_process_name_defaults_to_command():
    record = ConnectionRecord(port=80, pid=1, command="nginx", user="root")
    assert record.process_name == "nginx"
    assert record.with_process_name(None).process_name == "nginx"
    assert record.with_process_name("nginx: master").process_name == "nginx: master"


def test_port_out_of_range_rejected():
    with pytest.raises(ValueError):
        ConnectionRecord(port=70000, pid=1, command="x", user="a")


def test_display_helpers():
    record = ConnectionRecord(port=5432, pid=9, command="postgres", user="pg", protocol=Protocol.TCP)

    assert record.port_display == "5432 (TCP)"
    assert (record.process_icon, record.process_color) == ("server.rack", "blue")
    assert record.status_color == "gray"

    other = ConnectionRecord(port=1, pid=1, command="weird", user="a")
    assert other.port_display == "1 (Unknown)"
    assert other.process_icon == "circle.fill"


def test_every_project_type_has_a_style():
    for project_type in ProjectType:
        assert project_type.display_name
        assert project_type.icon
        assert project_type.color


def test_families():
    assert ProjectType.NEXTJS.is_node_family
    assert ProjectType.DJANGO.is_python_family
    assert not ProjectType.GO.is_node_family
    assert not ProjectType.RAILS.is_python_family


def test_to_dict_includes_project():
    project = ProjectInfo("shop", ProjectType.NEXTJS, path="/srv/shop")
    data = ConnectionRecord(port=3000, pid=1, command="node", user="a", project=project).to_dict()

    assert data["project"] == {
        "name": "shop",
        "type": "nextjs",
        "display_type": "Next.js",
        "path": "/srv/shop",
        "icon": "n.square.fill",
        "color": "black",
    }


def test_filter_records_combines_criteria():
    shop = ConnectionRecord(
        port=3000, pid=10, command="node", user="a", protocol=Protocol.TCP,
        project=ProjectInfo("shop", ProjectType.REACT, "/srv/shop"),
    )
    dns = ConnectionRecord(port=53, pid=20, command="dnsmasq", user="root", protocol=Protocol.UDP)
    records = [shop, dns]

    assert filter_records(records) == records
    assert filter_records(records, protocol=Protocol.UDP) == [dns]
    assert filter_records(records, projects_only=True) == [shop]
    assert filter_records(records, search="DNS") == [dns]
    assert filter_records(records, search="shop", protocol=Protocol.UDP) == []
