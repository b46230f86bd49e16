from __future__ import annotations

from prometheus_client import Counter, Histogram

REQUEST_COUNT = Counter(
    "dailyjournal_requests_total",
    "Total HTTP requests processed by DailyJournal",
    ("method", "path", "status"),
)

REQUEST_LATENCY = Histogram(
    "dailyjournal_request_latency_seconds",
    "HTTP request latency in seconds",
    ("method", "path"),
)

REQUEST_ERRORS = Counter(
    "dailyjournal_request_errors_total",
    "HTTP requests resulting in server errors",
    ("method", "path", "status"),
)

USER_API_COUNTER = Counter(
    "dailyjournal_api_hits_total",
    "API hits per endpoint",
    ("endpoint",),
)

ANALYTICS_RUNS = Counter(
    "dailyjournal_analytics_runs_total",
    "Analytics computations by operation and outcome",
    ("operation", "result"),
)

ANALYTICS_LATENCY = Histogram(
    "dailyjournal_analytics_latency_seconds",
    "Time spent fetching entries and computing dashboard analytics",
)

__all__ = [
    "ANALYTICS_LATENCY",
    "ANALYTICS_RUNS",
    "REQUEST_COUNT",
    "REQUEST_ERRORS",
    "REQUEST_LATENCY",
    "USER_API_COUNTER",
]
