"""
JSON report store: writes the sorted outcomes of the last scan to disk and
reads them back for the CLI/API report command.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Dict, List, Optional

from core.config import settings
from core.models import ScanReport

log = logging.getLogger(__name__)


class ReportStore:
    def __init__(self, path: Optional[str] = None):
        self.path = Path(path or settings.report_path)

    def save(self, report: ScanReport) -> Path:
        docs = [o.to_doc() for o in report.outcomes]
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(docs, indent=2) + "\n", encoding="utf-8")
        log.debug("wrote %d outcomes to %s", len(docs), self.path)
        return self.path

    def load(self, host: Optional[str] = None) -> List[Dict]:
        if not self.path.exists():
            return []
        try:
            docs = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            log.warning("failed to load report from %s", self.path)
            return []
        if not isinstance(docs, list):
            log.warning("unexpected report format in %s", self.path)
            return []
        if host:
            return [d for d in docs if d.get("host") == host]
        return docs

    def writable(self) -> bool:
        target = self.path if self.path.exists() else self.path.parent
        return os.access(target, os.W_OK)
