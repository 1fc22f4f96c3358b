"""Prometheus metrics for the CardCycle service.

Metrics are organized into two categories:

Business Metrics:
- cardcycle_cycle_computations_total: Per-account computations by outcome
- cardcycle_payments_detected_total: Statements detected as already paid

Technical Metrics:
- cardcycle_cycle_computation_latency_seconds: Per-user computation latency
- cardcycle_account_failures_total: Per-account failures by error type
- cardcycle_statement_fetch_total: Statement provider requests by status
- cardcycle_statement_fetch_latency_seconds: Statement provider latency
- cardcycle_statement_cache_total: Statement cache lookups by result
- cardcycle_http_requests_total: HTTP requests by endpoint/status
"""

import time
from contextlib import contextmanager
from typing import Generator

from prometheus_client import Counter, Histogram, REGISTRY, generate_latest
from prometheus_client.exposition import CONTENT_TYPE_LATEST


# =============================================================================
# Business Metrics
# =============================================================================

cycle_computations_total = Counter(
    "cardcycle_cycle_computations_total",
    "Total number of per-account billing cycle computations",
    ["outcome"],  # ok, skipped, failed
)

payments_detected_total = Counter(
    "cardcycle_payments_detected_total",
    "Total number of statements detected as paid after close",
)


# =============================================================================
# Technical Metrics
# =============================================================================

cycle_computation_latency = Histogram(
    "cardcycle_cycle_computation_latency_seconds",
    "Billing cycle computation latency in seconds",
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)

account_failures_total = Counter(
    "cardcycle_account_failures_total",
    "Total number of per-account computation failures",
    ["error_type"],  # persistence_conflict, domain_error, unexpected
)

statement_fetch_total = Counter(
    "cardcycle_statement_fetch_total",
    "Total number of statement provider requests",
    ["status"],  # success, failure
)

statement_fetch_latency = Histogram(
    "cardcycle_statement_fetch_latency_seconds",
    "Statement provider fetch latency in seconds",
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

statement_cache_total = Counter(
    "cardcycle_statement_cache_total",
    "Statement period cache lookups by result",
    ["result"],  # hit, miss, stale
)

http_requests_total = Counter(
    "cardcycle_http_requests_total",
    "Total HTTP requests by endpoint and status",
    ["method", "endpoint", "status"],
)

http_request_latency = Histogram(
    "cardcycle_http_request_latency_seconds",
    "HTTP request latency by endpoint",
    ["method", "endpoint"],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)


# =============================================================================
# Helper Functions
# =============================================================================

def record_cycle_computation(outcome: str) -> None:
    """Record a per-account computation outcome."""
    cycle_computations_total.labels(outcome=outcome).inc()


def record_account_failure(error_type: str) -> None:
    """Record a per-account failure."""
    cycle_computations_total.labels(outcome="failed").inc()
    account_failures_total.labels(error_type=error_type).inc()


def record_payment_detected() -> None:
    """Record a statement detected as paid after close."""
    payments_detected_total.inc()


@contextmanager
def track_cycle_computation_latency() -> Generator[None, None, None]:
    """Context manager to track billing cycle computation latency."""
    start = time.perf_counter()
    try:
        yield
    finally:
        duration = time.perf_counter() - start
        cycle_computation_latency.observe(duration)


@contextmanager
def track_statement_fetch_latency() -> Generator[None, None, None]:
    """Context manager to track statement provider latency."""
    start = time.perf_counter()
    try:
        yield
    finally:
        duration = time.perf_counter() - start
        statement_fetch_latency.observe(duration)


def record_statement_fetch_success() -> None:
    """Record a successful statement provider fetch."""
    statement_fetch_total.labels(status="success").inc()


def record_statement_fetch_failure() -> None:
    """Record a statement provider fetch failure."""
    statement_fetch_total.labels(status="failure").inc()


def record_statement_cache(result: str) -> None:
    """Record a statement cache lookup (hit, miss, stale)."""
    statement_cache_total.labels(result=result).inc()


def record_http_request(method: str, endpoint: str, status: int, duration: float) -> None:
    """Record an HTTP request."""
    http_requests_total.labels(method=method, endpoint=endpoint, status=str(status)).inc()
    http_request_latency.labels(method=method, endpoint=endpoint).observe(duration)


def get_metrics() -> bytes:
    """Get current metrics in Prometheus format."""
    return generate_latest(REGISTRY)


def get_metrics_content_type() -> str:
    """Get the content type for metrics response."""
    return CONTENT_TYPE_LATEST
