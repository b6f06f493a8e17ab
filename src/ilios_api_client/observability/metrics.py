from __future__ import annotations

from prometheus_client import Counter, Histogram

requests_total = Counter(
    "ilios_requests_total",
    "Number of requests issued to the Ilios API.",
    labelnames=("entity_type",),
)
records_total = Counter(
    "ilios_records_total",
    "Number of entity records received from the Ilios API.",
    labelnames=("entity_type",),
)
failures_total = Counter(
    "ilios_failures_total",
    "Number of failed Ilios API calls, by error kind.",
    labelnames=("kind",),
)

request_seconds = Histogram(
    "ilios_request_seconds",
    "Seconds spent waiting for a single Ilios API response.",
)
