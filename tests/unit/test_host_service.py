"""
tests/unit/test_host_service.py

Unit tests for services/host_service.py and the node statistics query.
"""

from __future__ import annotations

from datetime import timedelta

from db.models import Host, Node, as_utc, utcnow
from repositories.host_repository import HostRepository
from repositories.node_repository import NodeRepository
from services.host_service import HostHeartbeat, HostService


def test_heartbeat_auto_creates_host(db_session):
    service = HostService(HostRepository(db_session))

    host = service.process_heartbeat(HostHeartbeat(name="vps-1", ip="10.0.0.1", disk_total=100))

    assert host.id is not None
    assert host.status == "online"
    assert host.ip == "10.0.0.1"
    assert host.last_heartbeat is not None


def test_heartbeat_only_overwrites_reported_fields(db_session):
    repo = HostRepository(db_session)
    repo.save(Host(name="vps-1", ip="10.0.0.1", region="HK", status="offline"))
    service = HostService(repo)

    host = service.process_heartbeat(HostHeartbeat(name="vps-1", cpu_usage=12.5))

    assert host.ip == "10.0.0.1"
    assert host.region == "HK"
    assert host.cpu_usage == 12.5
    assert host.status == "online"
    assert len(repo.list_all()) == 1


def test_host_stats(db_session):
    repo = HostRepository(db_session)
    repo.save(Host(name="a", status="online", upload_total=10, download_total=20))
    repo.save(Host(name="b", status="offline", upload_total=5))
    repo.save(Host(name="c"))

    stats = HostService(repo).get_stats()

    assert stats.total_hosts == 3
    assert stats.online_hosts == 1
    assert stats.offline_hosts == 1
    assert stats.unknown_hosts == 1
    assert stats.total_traffic_upload == 15
    assert stats.total_traffic_download == 20


def test_node_stats(db_session):
    repo = NodeRepository(db_session)
    repo.save(Node(name="n1", domain="a.example.com", port=443, proxy_type="vless",
                   is_active=True, user_count=3, traffic_used=100))
    repo.save(Node(name="n2", domain="b.example.com", port=443, proxy_type="vless",
                   is_active=False, user_count=2, traffic_used=50))

    stats = repo.get_stats()

    assert stats.total_nodes == 2
    assert stats.active_nodes == 1
    assert stats.total_users == 5
    assert stats.total_traffic_used == 150


def test_repeated_heartbeats_store_utc_timestamps(db_session):
    repo = HostRepository(db_session)
    service = HostService(repo)

    service.process_heartbeat(HostHeartbeat(name="vps-1", ip="10.0.0.1"))
    service.process_heartbeat(HostHeartbeat(name="vps-1", disk_used=10))

    db_session.expire_all()
    host = repo.get_by_name("vps-1")
    age = utcnow() - as_utc(host.last_heartbeat)
    assert timedelta(0) <= age < timedelta(minutes=1)
    assert host.ip == "10.0.0.1"
    assert host.disk_used == 10
