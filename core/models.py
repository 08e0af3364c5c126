"""
Shared data models for the scan pipeline and its sinks.
Config -> Job -> Outcome -> Report; everything past the config is frozen once built.
"""

from __future__ import annotations

import datetime as dt
from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field, field_validator

from core.config import settings


class ScanConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    host: str
    port_spec: str = Field(default_factory=lambda: settings.default_ports)
    concurrency: int = Field(default_factory=lambda: settings.concurrency, ge=1)
    dial_timeout_ms: int = Field(default_factory=lambda: settings.dial_timeout_ms, ge=1)
    banner_read_bytes: int = Field(default_factory=lambda: settings.banner_read_bytes, ge=0)

    @field_validator("host")
    @classmethod
    def validate_host(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("host is required")
        return v

    @property
    def dial_timeout_s(self) -> float:
        return self.dial_timeout_ms / 1000.0


class ScanJob(BaseModel):
    model_config = ConfigDict(frozen=True)

    host: str
    port: int


class ScanOutcome(BaseModel):
    model_config = ConfigDict(frozen=True)

    host: str
    port: int
    open: bool
    banner: str = ""
    duration_ms: int = Field(0, ge=0)

    def to_doc(self) -> Dict[str, Any]:
        doc = self.model_dump()
        if not doc["banner"]:
            doc.pop("banner")
        return doc


class ScanReport(BaseModel):
    model_config = ConfigDict(frozen=True)

    host: str
    port_spec: str
    outcomes: List[ScanOutcome] = Field(default_factory=list)
    started_at: dt.datetime = Field(default_factory=lambda: dt.datetime.now(dt.timezone.utc))
    duration_ms: int = 0
    cancelled: bool = False
    degraded: bool = False

    @property
    def open_count(self) -> int:
        return sum(1 for o in self.outcomes if o.open)

    def open_ports(self) -> List[int]:
        return [o.port for o in self.outcomes if o.open]

    def summary(self) -> Dict[str, Any]:
        return {
            "host": self.host,
            "port_spec": self.port_spec,
            "started_at": self.started_at.isoformat(),
            "ports_scanned": len(self.outcomes),
            "ports_open": self.open_ports(),
            "duration_ms": self.duration_ms,
            "cancelled": self.cancelled,
            "degraded": self.degraded,
        }
