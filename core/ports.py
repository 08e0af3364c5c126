"""
Port specification parsing.

Accepts comma separated tokens, each either a single port ("80") or an
inclusive range ("8000-8100"). Range endpoints are clamped into 1..65535,
single ports outside that window are dropped, and the result is sorted
with duplicates removed.
"""

from __future__ import annotations

import re
from typing import List, Set

MIN_PORT = 1
MAX_PORT = 65535

_INT = re.compile(r"\+?\d+", re.ASCII)
_RANGE = re.compile(r"([+-]?\d+)\s*-\s*([+-]?\d+)", re.ASCII)


class PortSpecError(ValueError):
    """Raised when a port specification cannot be parsed."""


class BadRange(PortSpecError):
    pass


class BadPort(PortSpecError):
    pass


def _to_int(text: str) -> int:
    text = text.strip()
    if not _INT.fullmatch(text):
        raise ValueError(text)
    return int(text)


def parse_ports(spec: str) -> List[int]:
    """
    Parses a port specification string into an ascending list of ports.
    Supports:
    - Single ports: "80"
    - Ranges: "1-1024" (an inverted range such as "90-80" yields nothing)
    - Comma-separated: "22,80,443"
    - Mixed: "1-1024,8080,9000-9005"
    """
    ports: Set[int] = set()
    for part in spec.split(","):
        part = part.strip()
        if not part:
            continue
        if "-" in part:
            m = _RANGE.fullmatch(part)
            if not m:
                raise BadRange(f"bad range: {part}")
            lo, hi = int(m.group(1)), int(m.group(2))
            lo = max(lo, MIN_PORT)
            hi = min(hi, MAX_PORT)
            ports.update(range(lo, hi + 1))
        else:
            try:
                p = _to_int(part)
            except ValueError:
                raise BadPort(f"bad port: {part}") from None
            if MIN_PORT <= p <= MAX_PORT:
                ports.add(p)

    return sorted(ports)
