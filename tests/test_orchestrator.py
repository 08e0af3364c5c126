import json

import pytest

from core.models import ScanConfig
from core.ports import BadPort
from core.state import ReportStore
from pipeline import orchestrator as orch_mod
from pipeline.orchestrator import Orchestrator


class FakeElk:
    index = "portsweep-outcomes"

    def __init__(self, fail=False, docs=None):
        self.fail = fail
        self.docs = docs or []
        self.indexed = []

    def bulk_index(self, index, docs):
        if self.fail:
            raise RuntimeError("cluster unavailable")
        self.indexed.append((index, list(docs)))

    def search_by_host(self, index, host, size=100):
        return [d for d in self.docs if d["host"] == host]

    def ping(self):
        return not self.fail


def test_scan_saves_report_file(tmp_path, listener, closed_port):
    srv = listener(b"banner\n")
    path = tmp_path / "out" / "scan.json"
    orch = Orchestrator(store=ReportStore(str(path)))
    config = ScanConfig(host="127.0.0.1", port_spec=f"{closed_port},{srv.port}", dial_timeout_ms=300)

    report = orch.scan(config)

    docs = json.loads(path.read_text())
    assert [d["port"] for d in docs] == [o.port for o in report.outcomes]
    by_port = {d["port"]: d for d in docs}
    assert by_port[srv.port]["open"] is True
    assert by_port[srv.port]["banner"] == "banner"
    assert "banner" not in by_port[closed_port]
    assert report.degraded is False


def test_bad_spec_fails_before_scanning(tmp_path, monkeypatch):
    calls = []
    monkeypatch.setattr(orch_mod, "Coordinator", lambda *a, **kw: calls.append(a))
    orch = Orchestrator(store=ReportStore(str(tmp_path / "r.json")))

    with pytest.raises(BadPort):
        orch.scan(ScanConfig(host="127.0.0.1", port_spec="22,ssh"))
    assert calls == []
    assert not (tmp_path / "r.json").exists()


def test_elk_failure_marks_degraded_but_keeps_report(tmp_path, closed_port):
    elk = FakeElk(fail=True)
    orch = Orchestrator(store=ReportStore(str(tmp_path / "r.json")), elk=elk)

    report = orch.scan(ScanConfig(host="127.0.0.1", port_spec=str(closed_port)))

    assert report.degraded is True
    assert report.summary()["degraded"] is True
    assert orch.degraded is True
    assert len(report.outcomes) == 1
    assert (tmp_path / "r.json").exists()


def test_elk_receives_outcome_docs(tmp_path, closed_port):
    elk = FakeElk()
    orch = Orchestrator(store=ReportStore(str(tmp_path / "r.json")), elk=elk)

    report = orch.scan(ScanConfig(host="127.0.0.1", port_spec=str(closed_port)), save=False)

    assert not (tmp_path / "r.json").exists()
    index, docs = elk.indexed[0]
    assert index == "portsweep-outcomes"
    assert docs[0]["port"] == closed_port
    assert docs[0]["timestamp"] == report.started_at.isoformat()


def test_report_prefers_elk_then_store(tmp_path):
    path = tmp_path / "r.json"
    path.write_text(json.dumps([{"host": "a", "port": 22, "open": True, "duration_ms": 1}]))
    elk = FakeElk(docs=[{"host": "b", "port": 80, "open": True, "duration_ms": 2}])
    orch = Orchestrator(store=ReportStore(str(path)), elk=elk)

    assert orch.report("b") == [{"host": "b", "port": 80, "open": True, "duration_ms": 2}]
    assert orch.report("a")[0]["port"] == 22
    assert orch.report() == json.loads(path.read_text())


def test_verify(tmp_path):
    orch = Orchestrator(store=ReportStore(str(tmp_path / "r.json")), elk=FakeElk())
    assert orch.verify() == {
        "report_writable": True,
        "elk_configured": True,
        "elk": True,
        "degraded": False,
    }


def test_degraded_flag_belongs_to_each_report(tmp_path, closed_port):
    elk = FakeElk(fail=True)
    orch = Orchestrator(store=ReportStore(str(tmp_path / "r.json")), elk=elk)
    config = ScanConfig(host="127.0.0.1", port_spec=str(closed_port))

    failed = orch.scan(config)
    elk.fail = False
    healthy = orch.scan(config)

    assert failed.degraded is True
    assert healthy.degraded is False
