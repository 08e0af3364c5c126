"""
Fan-out/fan-in scan coordinator.

Every port becomes one ScanJob on a closed, pre-filled JobQueue. A fixed pool
of worker threads drains it, each pushing one ScanOutcome per job onto the
result stream. Once all workers have stopped a closer thread pushes the
end-of-stream marker, and the aggregator (running on the caller's thread)
returns the sorted report.
"""

from __future__ import annotations

import datetime as dt
import logging
import queue
import threading
import time
from typing import Callable, List, Optional

from core.models import ScanConfig, ScanJob, ScanOutcome, ScanReport
from core.queue import JobQueue
from pipeline.aggregator import END_OF_STREAM, ResultAggregator
from probers import l4_tcp

log = logging.getLogger(__name__)


class Coordinator:
    def __init__(self, config: ScanConfig, on_open: Optional[Callable[[ScanOutcome], None]] = None) -> None:
        self.config = config
        self.on_open = on_open

    def _worker(self, jobs: JobQueue, results: "queue.Queue", stop_event: threading.Event) -> None:
        def handle(job: ScanJob) -> None:
            outcome = l4_tcp.tcp_probe(
                job.host,
                job.port,
                timeout=self.config.dial_timeout_s,
                banner_read_bytes=self.config.banner_read_bytes,
            )
            results.put(outcome)

        jobs.consume(handle, stop_event)

    def _start_workers(
        self, count: int, jobs: JobQueue, results: "queue.Queue", stop_event: threading.Event
    ) -> List[threading.Thread]:
        workers = []
        for i in range(count):
            t = threading.Thread(
                target=self._worker,
                args=(jobs, results, stop_event),
                name=f"scan-worker-{i}",
                daemon=True,
            )
            t.start()
            workers.append(t)
        return workers

    @staticmethod
    def _close_when_done(workers: List[threading.Thread], results: "queue.Queue") -> threading.Thread:
        def wait_all() -> None:
            for t in workers:
                t.join()
            results.put(END_OF_STREAM)

        closer = threading.Thread(target=wait_all, name="scan-closer", daemon=True)
        closer.start()
        return closer

    def run(self, ports: List[int], stop_event: Optional[threading.Event] = None) -> ScanReport:
        stop_event = stop_event or threading.Event()
        host = self.config.host
        started_at = dt.datetime.now(dt.timezone.utc)
        t0 = time.perf_counter()

        jobs = JobQueue(maxsize=len(ports))
        for port in ports:
            jobs.enqueue(ScanJob(host=host, port=port))
        jobs.close()

        results: "queue.Queue" = queue.Queue(maxsize=len(ports) + 1)
        worker_count = min(self.config.concurrency, len(ports))
        log.info("scanning %s: %d ports with %d workers", host, len(ports), worker_count)

        workers = self._start_workers(worker_count, jobs, results, stop_event)
        self._close_when_done(workers, results)

        aggregator = ResultAggregator(on_open=self.on_open)
        try:
            aggregator.consume(results)
        except KeyboardInterrupt:
            log.warning("interrupted, letting in-flight probes finish")
            stop_event.set()
            aggregator.consume(results)
        # a stop that lands after the last job was dequeued leaves the report complete
        cancelled = len(aggregator.outcomes) < len(ports)

        duration_ms = int((time.perf_counter() - t0) * 1000)
        report = aggregator.finish(host, self.config.port_spec, started_at, duration_ms, cancelled=cancelled)
        log.info(
            "scan of %s finished: %d/%d open in %d ms%s",
            host,
            report.open_count,
            len(report.outcomes),
            duration_ms,
            " (cancelled)" if cancelled else "",
        )
        return report
