# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

from prometheus_client import Counter, Histogram

# Request metrics, labelled by HTTP method
REQUESTS = Counter("stockalert_requests_total", "API requests sent", ["method"])
ERRORS = Counter("stockalert_errors_total", "Failed API attempts", ["method", "code"])
LATENCY = Histogram("stockalert_request_latency_seconds", "Request latency", ["method"])

RETRIES = Counter("stockalert_retries_total", "Retried attempts", ["method", "reason"])

# Client-side bookkeeping
RATE_LIMIT_REJECTIONS = Counter(
    "stockalert_rate_limit_rejections_total",
    "Requests rejected locally because a rate-limit cooldown was in effect",
)
DEDUPLICATED_REQUESTS = Counter(
    "stockalert_deduplicated_requests_total",
    "GET requests served by an identical in-flight request",
)

__all__ = [
    "REQUESTS",
    "ERRORS",
    "LATENCY",
    "RETRIES",
    "RATE_LIMIT_REJECTIONS",
    "DEDUPLICATED_REQUESTS",
]
