"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at /metrics endpoint.
"""

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

# Booking metrics
booking_attempts = Counter(
    'booking_attempts_total',
    'Total studio booking attempts',
    ['status']  # success, or the domain error code (slot_unavailable, payment_failed, ...)
)

booking_latency = Histogram(
    'booking_latency_seconds',
    'Booking request latency (includes the payment round-trip)',
    buckets=[0.005, 0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0]
)

booking_transitions = Counter(
    'booking_status_transitions_total',
    'Booking status transitions',
    ['target']  # confirmed, cancelled, completed
)

# Credit metrics
credit_movements = Counter(
    'credit_movements_total',
    'Credit ledger entries',
    ['type']  # granted, used
)

credit_amount = Counter(
    'credit_amount_dollars_total',
    'Dollar value moved through the credit ledger',
    ['type']
)

# Payment metrics
payment_outcomes = Counter(
    'payment_outcomes_total',
    'Card charge outcomes',
    ['result']  # completed, failed
)

refunds_processed = Counter(
    'refunds_processed_total',
    'Refunds processed',
    ['kind']  # full, partial, reversal
)

# Event metrics
rsvp_requests = Counter(
    'event_rsvp_requests_total',
    'Event RSVP requests',
    ['result']  # added, duplicate, full, removed
)

db_retries = Counter(
    'db_retry_attempts_total',
    'Database retry attempts due to version conflicts',
    ['entity']  # credit_account, event
)

# Cache metrics
cache_operations = Counter(
    'cache_operations_total',
    'Cache operations',
    ['operation', 'result']  # get/set, hit/miss
)

redis_connection_errors = Counter(
    'redis_connection_errors_total',
    'Redis connection errors'
)


def metrics_endpoint() -> Response:
    """Prometheus metrics endpoint."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


def record_booking_attempt(status: str):
    """Record booking attempt. Status: success or a DomainError code."""
    booking_attempts.labels(status=status).inc()


def record_credit_movement(kind: str, amount):
    credit_movements.labels(type=kind).inc()
    credit_amount.labels(type=kind).inc(float(amount))


def record_payment(succeeded: bool):
    payment_outcomes.labels(result="completed" if succeeded else "failed").inc()


def record_cache_operation(operation: str, hit: bool):
    """Record cache operation."""
    result = "hit" if hit else "miss"
    cache_operations.labels(operation=operation, result=result).inc()
