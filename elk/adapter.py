"""
Elasticsearch sink for scan outcomes: chunked bulk writes with a short
exponential backoff, plus a per-host lookup for the report endpoint.
"""

from __future__ import annotations

import logging
import random
import time
from typing import Any, Dict, Iterable, Iterator, List

from elasticsearch import Elasticsearch, helpers

from core.config import settings

log = logging.getLogger(__name__)


def _client_from_settings() -> Elasticsearch:
    if not settings.elasticsearch_url:
        raise ValueError("PORTSWEEP_ELASTICSEARCH_URL is required for ElasticsearchAdapter")

    kwargs: Dict[str, Any] = {"verify_certs": settings.elasticsearch_verify_certs}
    if settings.elasticsearch_api_key:
        kwargs["api_key"] = settings.elasticsearch_api_key
    elif settings.elasticsearch_user and settings.elasticsearch_pass:
        kwargs["basic_auth"] = (settings.elasticsearch_user, settings.elasticsearch_pass)
    if settings.elasticsearch_ca_cert:
        kwargs["ca_certs"] = settings.elasticsearch_ca_cert
    return Elasticsearch(settings.elasticsearch_url, **kwargs)


def _chunks(seq: List[Dict], size: int) -> Iterator[List[Dict]]:
    for i in range(0, len(seq), size):
        yield seq[i : i + size]


class ElasticsearchAdapter:
    def __init__(self, client: Elasticsearch | None = None):
        self.client = client if client is not None else _client_from_settings()
        self.index = settings.elasticsearch_index
        self.batch_size = settings.bulk_batch_size

    def ping(self) -> bool:
        try:
            return bool(self.client.ping())
        except Exception:  # noqa: BLE001
            return False

    def _bulk_with_backoff(self, actions: List[Dict], max_attempts: int, backoff_base: float) -> None:
        attempt = 1
        while True:
            try:
                helpers.bulk(self.client, actions, stats_only=True, raise_on_error=True, max_retries=0, request_timeout=30)
                return
            except Exception:  # noqa: BLE001
                if attempt >= max_attempts:
                    raise
                delay = backoff_base * 2 ** (attempt - 1) + random.random()
                log.warning("bulk write failed (attempt %d/%d), sleeping %.1fs", attempt, max_attempts, delay)
                time.sleep(delay)
                attempt += 1

    def bulk_index(self, index: str, docs: Iterable[Dict], max_attempts: int = 3, backoff_base: float = 1.0):
        doc_list = list(docs)
        for chunk in _chunks(doc_list, self.batch_size):
            self._bulk_with_backoff([{"_index": index, "_source": d} for d in chunk], max_attempts, backoff_base)
        if doc_list:
            log.debug("indexed %d docs into %s", len(doc_list), index)

    def search_by_host(self, index: str, host: str, size: int = 100) -> List[Dict]:
        try:
            res = self.client.search(
                index=index,
                size=size,
                query={"term": {"host.keyword": host}},
                sort=[{"port": {"order": "asc"}}],
            )
        except Exception:  # noqa: BLE001
            log.warning("search on %s failed for host %s", index, host)
            return []
        return [h.get("_source", {}) for h in res.get("hits", {}).get("hits", [])]
