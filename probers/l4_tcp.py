"""
TCP connect scanner using a plain connect() without crafting raw packets.
Network failures are results, not errors: a probe always returns an outcome.
"""

import logging
import socket
import time
from typing import Iterator, List

from core.models import ScanOutcome

log = logging.getLogger(__name__)

BANNER_READ_TIMEOUT_S = 0.5


def _elapsed_ms(start: float) -> int:
    return max(0, int((time.perf_counter() - start) * 1000))


def _read_banner(sock: socket.socket, nbytes: int) -> str:
    sock.settimeout(BANNER_READ_TIMEOUT_S)
    try:
        data = sock.recv(nbytes)
    except OSError:  # socket.timeout included
        return ""
    return data.decode(errors="ignore").strip()


def tcp_probe(host: str, port: int, timeout: float = 0.3, banner_read_bytes: int = 128) -> ScanOutcome:
    start = time.perf_counter()
    try:
        sock = socket.create_connection((host, port), timeout=timeout)
    except (OSError, ValueError) as exc:
        log.debug("%s:%d closed (%s)", host, port, exc)
        return ScanOutcome(host=host, port=port, open=False, duration_ms=_elapsed_ms(start))

    with sock:
        banner = _read_banner(sock, banner_read_bytes) if banner_read_bytes > 0 else ""
    log.debug("%s:%d open", host, port)
    return ScanOutcome(host=host, port=port, open=True, banner=banner, duration_ms=_elapsed_ms(start))


def scan_ports(host: str, ports: List[int], timeout: float = 0.3, banner_read_bytes: int = 128) -> Iterator[ScanOutcome]:
    for port in ports:
        yield tcp_probe(host, port, timeout=timeout, banner_read_bytes=banner_read_bytes)
