"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at /metrics endpoint.
"""

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

# Reservation metrics
reservation_attempts = Counter(
    'reservation_attempts_total',
    'Total reservation attempts',
    ['kind', 'status']  # hotel/track; success, rejected, conflict
)

reservation_latency = Histogram(
    'reservation_latency_seconds',
    'Reservation request latency',
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5]
)

# Booking lifecycle metrics
booking_approvals = Counter(
    'booking_approvals_total',
    'Bookings approved by an admin or auto-accepted',
    ['source']  # admin, auto
)

booking_denials = Counter(
    'booking_denials_total',
    'Bookings cancelled',
    ['reason']  # user, admin, overBooking, expiration
)

# Optimistic lock retries on the service row
service_version_retries = Counter(
    'service_version_retries_total',
    'Reservation retries due to service version conflicts'
)

# Wallet metrics
wallet_operations = Counter(
    'wallet_operations_total',
    'Wallet ledger operations',
    ['operation', 'result']  # credit/debit, ok/rejected
)

# Cache metrics
cache_operations = Counter(
    'cache_operations_total',
    'Cache operations',
    ['operation', 'result']  # get/set, hit/miss
)

notification_failures = Counter(
    'notification_failures_total',
    'Notifications that could not be delivered',
    ['kind']
)


def metrics_endpoint() -> Response:
    """Prometheus metrics endpoint."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


def record_reservation_attempt(kind: str, status: str):
    """Record reservation attempt. Status: success, rejected, conflict"""
    reservation_attempts.labels(kind=kind, status=status).inc()


def record_approval(source: str):
    booking_approvals.labels(source=source).inc()


def record_denial(reason: str):
    booking_denials.labels(reason=reason).inc()


def record_wallet_operation(operation: str, ok: bool):
    wallet_operations.labels(operation=operation, result="ok" if ok else "rejected").inc()


def record_cache_operation(operation: str, hit: bool):
    """Record cache operation."""
    result = "hit" if hit else "miss"
    cache_operations.labels(operation=operation, result=result).inc()
