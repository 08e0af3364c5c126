"""
Single-node orchestrator: resolves the port spec, runs the coordinator and
emits the finished report to the JSON store and, when configured,
Elasticsearch. Sink failures mark the run degraded but never lose the report.
"""

import logging
import threading
from typing import Any, Callable, Dict, List, Optional

from core.config import settings
from core.models import ScanConfig, ScanOutcome, ScanReport
from core.ports import parse_ports
from core.state import ReportStore
from elk.adapter import ElasticsearchAdapter
from pipeline.coordinator import Coordinator

log = logging.getLogger(__name__)


class Orchestrator:
    def __init__(self, store: Optional[ReportStore] = None, elk: Optional[ElasticsearchAdapter] = None) -> None:
        self.store = store or ReportStore()
        if elk is None and settings.elasticsearch_url:
            elk = ElasticsearchAdapter()
        self.elk = elk
        self.degraded = False

    @staticmethod
    def _outcome_docs(report: ScanReport) -> List[Dict[str, Any]]:
        started = report.started_at.isoformat()
        docs = []
        for o in report.outcomes:
            doc = o.to_doc()
            doc["timestamp"] = started
            docs.append(doc)
        return docs

    def _emit(self, report: ScanReport, save: bool = True) -> bool:
        """Write the report to every sink; returns True when any sink failed."""
        degraded = False

        if save:
            try:
                path = self.store.save(report)
                log.info("report saved to %s", path)
            except OSError as e:
                log.exception("writing report failed | path=%s | err=%s", self.store.path, e)
                degraded = True

        if not self.elk:
            return degraded

        try:
            self.elk.bulk_index(self.elk.index, self._outcome_docs(report))
        except Exception as e:  # noqa: BLE001
            log.exception("ELK bulk_index failed | index=%s | err=%s", self.elk.index, e)
            degraded = True
        return degraded

    def scan(
        self,
        config: ScanConfig,
        on_open: Optional[Callable[[ScanOutcome], None]] = None,
        stop_event: Optional[threading.Event] = None,
        save: bool = True,
    ) -> ScanReport:
        # parse errors surface here, before a single probe is sent
        ports = parse_ports(config.port_spec)
        if not ports:
            log.warning("port spec %r resolved to no ports", config.port_spec)

        report = Coordinator(config, on_open=on_open).run(ports, stop_event=stop_event)
        degraded = self._emit(report, save=save)
        # last run only, for verify(); callers read the flag off the report
        self.degraded = degraded
        return report.model_copy(update={"degraded": degraded})

    def report(self, host: Optional[str] = None) -> List[Dict[str, Any]]:
        if self.elk and host:
            docs = self.elk.search_by_host(self.elk.index, host)
            if docs:
                return docs
        return self.store.load(host)

    def verify(self) -> Dict[str, bool]:
        elk_ok = self.elk.ping() if self.elk else False
        return {
            "report_writable": self.store.writable(),
            "elk_configured": self.elk is not None,
            "elk": elk_ok,
            "degraded": self.degraded,
        }
