"""
Pydantic-based configuration for the scanner.

Every knob is exposed via a PORTSWEEP_* environment variable (or a .env
file) so the CLI and the API share the same defaults.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        case_sensitive=False,
        env_file=".env",
        env_prefix="PORTSWEEP_",
        extra="ignore",
    )

    # Scan defaults
    concurrency: int = Field(200, description="worker count")
    dial_timeout_ms: int = Field(300, description="TCP connect timeout")
    banner_read_bytes: int = Field(128, description="0 disables the banner read")
    default_ports: str = Field("1-1024")
    poll_interval_s: float = Field(0.2, description="how often idle workers re-check the stop event")

    # Output
    report_path: str = Field("scan_results.json")
    log_level: str = Field("INFO")

    # Elasticsearch
    elasticsearch_url: Optional[str] = None
    elasticsearch_user: Optional[str] = None
    elasticsearch_pass: Optional[str] = None
    elasticsearch_api_key: Optional[str] = None
    elasticsearch_verify_certs: bool = True
    elasticsearch_ca_cert: Optional[str] = None
    elasticsearch_index: str = "portsweep-outcomes"
    bulk_batch_size: int = 500

    @field_validator("concurrency")
    @classmethod
    def validate_concurrency(cls, v: int) -> int:
        if v < 1:
            raise ValueError("concurrency must be >= 1")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        v = v.upper()
        if v not in _LOG_LEVELS:
            raise ValueError(f"log_level must be one of {sorted(_LOG_LEVELS)}")
        return v


@lru_cache()
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
