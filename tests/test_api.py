import pytest
from fastapi.testclient import TestClient

from api import server
from core.state import ReportStore
from pipeline.orchestrator import Orchestrator


@pytest.fixture
def client(tmp_path, monkeypatch):
    monkeypatch.setattr(server, "orch", Orchestrator(store=ReportStore(str(tmp_path / "r.json"))))
    return TestClient(server.app)


def test_scan_endpoint(client, listener, closed_port):
    srv = listener()
    resp = client.post(
        "/api/scan",
        json={"host": "127.0.0.1", "ports": f"{closed_port},{srv.port}", "banner_read_bytes": 0},
    )

    assert resp.status_code == 200
    body = resp.json()
    assert body["summary"]["ports_open"] == [srv.port]
    assert body["summary"]["ports_scanned"] == 2
    assert [o["port"] for o in body["outcomes"]] == sorted([closed_port, srv.port])

    saved = client.get("/api/report", params={"host": "127.0.0.1"}).json()["outcomes"]
    assert len(saved) == 2


@pytest.mark.parametrize(
    "payload",
    [
        {"host": "127.0.0.1", "ports": "abc"},
        {"host": "127.0.0.1", "ports": "1-x"},
        {"host": "", "ports": "22"},
        {"host": "127.0.0.1", "ports": "22", "concurrency": 0},
    ],
)
def test_scan_endpoint_rejects_bad_input(client, payload):
    assert client.post("/api/scan", json=payload).status_code == 400


def test_health(client):
    resp = client.get("/api/health")
    assert resp.status_code == 200
    assert resp.json()["elk_configured"] is False
