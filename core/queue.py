"""
Bounded in-memory job queue shared by the scan workers.

The producer enqueues every job up front and then closes the queue; workers
keep consuming until the queue is both empty and closed, or until the shared
stop event is set.
"""

import logging
import queue
import threading
from typing import Callable

from core.config import settings
from core.models import ScanJob

log = logging.getLogger(__name__)


class JobQueue:
    def __init__(self, maxsize: int = 0, poll_interval_s: float | None = None):
        self.q: "queue.Queue[ScanJob]" = queue.Queue(maxsize=maxsize)
        self.poll_interval_s = poll_interval_s if poll_interval_s is not None else settings.poll_interval_s
        self._closed = threading.Event()

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def enqueue(self, job: ScanJob):
        if self._closed.is_set():
            raise RuntimeError("enqueue on a closed JobQueue")
        log.debug("enqueue job %s:%d", job.host, job.port)
        self.q.put(job)

    def close(self):
        self._closed.set()

    def _next(self, stop_event: threading.Event) -> ScanJob | None:
        while not stop_event.is_set():
            if self._closed.is_set():
                # every put happened before close(), so an empty queue here stays empty
                try:
                    return self.q.get_nowait()
                except queue.Empty:
                    return None
            try:
                return self.q.get(timeout=self.poll_interval_s)
            except queue.Empty:
                pass
        return None

    def consume(self, handler: Callable[[ScanJob], None], stop_event: threading.Event):
        """Worker loop: the stop event is only checked between jobs."""
        while not stop_event.is_set():
            job = self._next(stop_event)
            if job is None:
                break
            try:
                handler(job)
            finally:
                self.q.task_done()
