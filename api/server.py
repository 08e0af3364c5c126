"""
FastAPI front for the scanner. Runs a scan synchronously per request and
reads back saved reports; configuration comes from core.config.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI, HTTPException, Query
from pydantic import BaseModel, Field

from core.config import settings
from core.models import ScanConfig
from pipeline.orchestrator import Orchestrator

log = logging.getLogger(__name__)

app = FastAPI(title="portsweep API", version="1.0")
orch = Orchestrator()


class ScanPayload(BaseModel):
    host: str
    ports: str = Field(default_factory=lambda: settings.default_ports)
    concurrency: int = Field(default_factory=lambda: settings.concurrency)
    dial_timeout_ms: int = Field(default_factory=lambda: settings.dial_timeout_ms)
    banner_read_bytes: int = Field(default_factory=lambda: settings.banner_read_bytes)


@app.post("/api/scan")
def api_scan(payload: ScanPayload):
    try:
        config = ScanConfig(
            host=payload.host,
            port_spec=payload.ports,
            concurrency=payload.concurrency,
            dial_timeout_ms=payload.dial_timeout_ms,
            banner_read_bytes=payload.banner_read_bytes,
        )
        report = orch.scan(config)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except Exception as exc:  # noqa: BLE001
        log.exception("scan failed")
        raise HTTPException(status_code=500, detail="scan failed") from exc
    return {
        "summary": report.summary(),
        "outcomes": [o.to_doc() for o in report.outcomes],
        "degraded": report.degraded,
    }


@app.get("/api/report")
def api_report(host: Optional[str] = Query(None)):
    try:
        return {"outcomes": orch.report(host)}
    except Exception as exc:  # noqa: BLE001
        log.exception("report failed")
        raise HTTPException(status_code=500, detail="report failed") from exc


@app.get("/api/health")
def api_health():
    try:
        return orch.verify()
    except Exception as exc:  # noqa: BLE001
        log.exception("health check failed")
        raise HTTPException(status_code=500, detail="health check failed") from exc
