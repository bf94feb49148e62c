"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at /metrics endpoint.
"""

from fastapi import Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest

# Hold metrics
hold_attempts = Counter(
    'villa_hold_attempts_total',
    'Total hold attempts',
    ['result']  # success, conflict, declined, invalid, error
)

hold_latency = Histogram(
    'villa_hold_latency_seconds',
    'Hold creation latency',
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5]
)

# Lifecycle transitions
booking_transitions = Counter(
    'booking_transitions_total',
    'Booking state transitions',
    ['transition', 'result']  # confirm/expire/cancel, success/rejected/error
)

refunds_issued = Counter(
    'booking_refunds_total',
    'Refunds issued on cancellation'
)

refund_reconciliation = Counter(
    'booking_refund_reconciliation_total',
    'Refunds issued for cancellations that did not complete'
)

# Calendar lock metrics
calendar_lock_wait = Histogram(
    'calendar_lock_wait_seconds',
    'Time spent waiting for the per-villa calendar lock',
    buckets=[0.0001, 0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0]
)

calendar_conflicts = Counter(
    'calendar_conflicts_total',
    'Reservations rejected because of overlapping events',
    ['event_type']
)

# Sweeper metrics
sweeper_passes = Counter(
    'hold_sweeper_passes_total',
    'Completed sweeper passes'
)

sweeper_expired = Counter(
    'hold_sweeper_expired_total',
    'Holds expired by the sweeper'
)

sweeper_errors = Counter(
    'hold_sweeper_errors_total',
    'Holds the sweeper failed to expire (retried next pass)'
)


def metrics_endpoint() -> Response:
    """
    Prometheus metrics endpoint.

    Usage:
        @app.get("/metrics")
        def metrics():
            return metrics_endpoint()
    """
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


def record_hold_attempt(result: str):
    """Record hold attempt. Result: success, conflict, declined, invalid, error"""
    hold_attempts.labels(result=result).inc()


def record_transition(transition: str, result: str):
    """Record a lifecycle transition outcome."""
    booking_transitions.labels(transition=transition, result=result).inc()


def record_conflict(event_type: str):
    calendar_conflicts.labels(event_type=event_type).inc()
