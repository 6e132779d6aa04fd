"""
Prometheus metrics registration and helpers.

Exports:
- observe_request(...): record HTTP request metrics
- observe_relay(...): record upstream chat-completion calls
- observe_router_check(...): record router health check outcomes
- metrics_latest(): return text exposition from correct registry (handles multiprocess)
- CONTENT_TYPE_LATEST: correct Prometheus content type
"""

import os
from prometheus_client import Counter, Histogram, CollectorRegistry, generate_latest, CONTENT_TYPE_LATEST
from prometheus_client import multiprocess


REQUEST_COUNTER = Counter(
    'rh_http_requests_total', 'Total HTTP requests', ['endpoint', 'status']
)

REQUEST_LATENCY = Histogram(
    'rh_http_request_latency_seconds', 'HTTP request latency seconds', ['endpoint']
)

RELAY_CALLS = Counter(
    'rh_relay_upstream_calls_total', 'Upstream chat-completion calls', ['provider', 'outcome']
)

RELAY_LATENCY = Histogram(
    'rh_relay_upstream_latency_seconds', 'Upstream chat-completion latency seconds', ['provider']
)

ROUTER_CHECKS = Counter(
    'rh_router_health_checks_total', 'Router health checks by resulting status', ['status']
)


def observe_request(endpoint: str, status: int, latency_seconds: float) -> None:
    REQUEST_COUNTER.labels(endpoint=endpoint, status=str(status)).inc()
    REQUEST_LATENCY.labels(endpoint=endpoint).observe(latency_seconds)


def observe_relay(provider: str, outcome: str, latency_seconds: float = None) -> None:
    RELAY_CALLS.labels(provider=provider or 'unknown', outcome=outcome).inc()
    if latency_seconds is not None:
        RELAY_LATENCY.labels(provider=provider or 'unknown').observe(latency_seconds)


def observe_router_check(status: str) -> None:
    ROUTER_CHECKS.labels(status=status).inc()


def metrics_latest() -> bytes:
    """Return the Prometheus text exposition, multiprocess-aware if configured."""
    prom_mp_dir = os.getenv('PROMETHEUS_MULTIPROC_DIR')
    if prom_mp_dir:
        registry = CollectorRegistry()
        multiprocess.MultiProcessCollector(registry)
        return generate_latest(registry)
    # Default registry
    return generate_latest()
