"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at /metrics endpoint.
"""

from prometheus_client import Counter, Histogram, Gauge, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

# Booking metrics
booking_attempts = Counter(
    'booking_attempts_total',
    'Total booking attempts',
    ['status']  # success, conflict, error
)

booking_latency = Histogram(
    'booking_latency_seconds',
    'Booking admission latency, including time spent waiting on the showing lock',
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5]
)

cancellations = Counter(
    'booking_cancellations_total',
    'Bookings cancelled'
)

# Showing lock metrics
showing_lock_wait = Histogram(
    'showing_lock_wait_seconds',
    'Time spent waiting to acquire a showing lock',
    ['strategy'],
    buckets=[0.0001, 0.0005, 0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0]
)

# Database metrics
db_operations = Counter(
    'db_operations_total',
    'Total database operations',
    ['operation']  # read, write, retry
)

db_retries = Counter(
    'db_retry_attempts_total',
    'Admission retries caused by seat claim constraint violations'
)

storage_failures = Counter(
    'storage_failures_total',
    'Storage failures surfaced to clients',
    ['kind']  # error, timeout
)

# Redis metrics
redis_connection_errors = Counter(
    'redis_connection_errors_total',
    'Redis connection errors'
)

redis_circuit_breaker_open = Gauge(
    'redis_circuit_breaker_open',
    'Redis circuit breaker state (1=open, 0=closed)'
)


def metrics_endpoint() -> Response:
    """Render all collectors in the Prometheus text format."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


def record_booking_attempt(status: str):
    """Record booking attempt. Status: success, conflict, error"""
    booking_attempts.labels(status=status).inc()


def record_db_operation(operation: str):
    """Record database operation. Operation: read, write, retry"""
    db_operations.labels(operation=operation).inc()


def record_storage_failure(kind: str):
    storage_failures.labels(kind=kind).inc()
