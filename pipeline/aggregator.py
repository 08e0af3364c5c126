"""
Collects probe outcomes off the result stream and turns them into a report
with a deterministic order (port, then host).
"""

from __future__ import annotations

import datetime as dt
import logging
import queue
from typing import Callable, Iterable, List, Optional

from core.models import ScanOutcome, ScanReport

log = logging.getLogger(__name__)

# pushed once, after every worker has stopped
END_OF_STREAM = object()


def sort_outcomes(outcomes: Iterable[ScanOutcome]) -> List[ScanOutcome]:
    return sorted(outcomes, key=lambda o: (o.port, o.host))


class ResultAggregator:
    def __init__(self, on_open: Optional[Callable[[ScanOutcome], None]] = None) -> None:
        self.on_open = on_open
        self.outcomes: List[ScanOutcome] = []
        self.done = False

    def consume(self, results: "queue.Queue") -> None:
        """Drain until the end-of-stream marker. Safe to call again after an interrupt."""
        while not self.done:
            item = results.get()
            if item is END_OF_STREAM:
                self.done = True
                break
            self.outcomes.append(item)
            if item.open and self.on_open:
                self.on_open(item)

    def finish(
        self,
        host: str,
        port_spec: str,
        started_at: dt.datetime,
        duration_ms: int,
        cancelled: bool = False,
    ) -> ScanReport:
        log.debug("aggregated %d outcomes for %s", len(self.outcomes), host)
        return ScanReport(
            host=host,
            port_spec=port_spec,
            outcomes=sort_outcomes(self.outcomes),
            started_at=started_at,
            duration_ms=duration_ms,
            cancelled=cancelled,
        )
