"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at /metrics endpoint.
"""

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

# Booking metrics
booking_attempts = Counter(
    'booking_attempts_total',
    'Total booking attempts',
    ['status']  # success, unavailable, price_rejected, conflict
)

booking_latency = Histogram(
    'booking_latency_seconds',
    'Booking request latency',
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0]
)

booking_status_changes = Counter(
    'booking_status_changes_total',
    'Booking status transitions',
    ['to_status']
)

# Availability metrics
availability_checks = Counter(
    'availability_checks_total',
    'Availability checks by outcome',
    ['result']  # available, insufficient, holiday, closed, invalid_slot
)

capacity_retries = Counter(
    'capacity_retry_attempts_total',
    'Capacity reservation retries due to version conflicts'
)

# Voucher metrics
voucher_redemptions = Counter(
    'voucher_redemptions_total',
    'Voucher usage increments at booking confirmation',
    ['result']  # success, duplicate, limit_reached
)

# Payment metrics
payment_verifications = Counter(
    'payment_verifications_total',
    'Payment signature verifications',
    ['result']  # valid, invalid
)

# Notification metrics
notifications_sent = Counter(
    'notifications_sent_total',
    'Outbound notifications',
    ['channel', 'result']  # email/whatsapp, sent/skipped/failed
)

# Cache metrics
cache_operations = Counter(
    'cache_operations_total',
    'Cache operations',
    ['operation', 'result']  # get/set, hit/miss
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


# Convenience functions for instrumentation
def record_booking_attempt(status: str):
    """Record booking attempt. Status: success, unavailable, price_rejected, conflict"""
    booking_attempts.labels(status=status).inc()


def record_status_change(to_status: str):
    booking_status_changes.labels(to_status=to_status).inc()


def record_availability_check(result: str):
    availability_checks.labels(result=result).inc()


def record_capacity_retry():
    capacity_retries.inc()


def record_voucher_redemption(result: str):
    voucher_redemptions.labels(result=result).inc()


def record_payment_verification(valid: bool):
    payment_verifications.labels(result="valid" if valid else "invalid").inc()


def record_notification(channel: str, result: str):
    """Record notification outcome. Result: sent, skipped, failed"""
    notifications_sent.labels(channel=channel, result=result).inc()


def record_cache_operation(operation: str, hit: bool):
    """Record cache operation."""
    result = "hit" if hit else "miss"
    cache_operations.labels(operation=operation, result=result).inc()
