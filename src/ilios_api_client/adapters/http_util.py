"""Shared HTTP client utilities (e.g. timeouts, header lines)."""

from __future__ import annotations

import httpx


def timeouts_for(seconds: float) -> httpx.Timeout:
    """Build httpx.Timeout with bounded connect/pool for fail-fast on unreachable upstreams."""
    total = float(seconds)
    connect = min(5.0, total)
    return httpx.Timeout(connect=connect, read=total, write=total, pool=connect)


def parse_header_lines(lines: list[str]) -> dict[str, str]:
    """
    Turn ``"Name: value"`` lines into a header mapping.
    Lines without a colon are ignored; later lines win for repeated names.
    """
    headers: dict[str, str] = {}
    for line in lines:
        name, sep, value = line.partition(":")
        if not sep or not name.strip():
            continue
        headers[name.strip()] = value.strip()
    return headers
