"""Prometheus metrics for monitoring payment initiation, rate limiting and queue depth"""

from prometheus_client import Counter, Histogram, Gauge

# Checkout metrics
payment_initiation_counter = Counter(
    "checkout_payment_initiation_total",
    "Payment initiation attempts by outcome",
    ["outcome"],  # redirected | rate_limited | gateway_unavailable | payment_rejected | ...
)

rate_limited_counter = Counter(
    "checkout_rate_limited_total",
    "Signing requests throttled by the gateway",
)

fallback_offered_counter = Counter(
    "checkout_fallback_offered_total",
    "Sessions escalated to the manual payment path",
)

manual_payment_counter = Counter(
    "checkout_manual_payment_total",
    "Manual payment requests recorded",
)

# Signing service metrics
signing_latency_histogram = Histogram(
    "signing_latency_seconds",
    "Gateway signing service response time",
    buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 15.0],
)

# Queue metrics
queue_depth_gauge = Gauge(
    "payment_queue_depth",
    "Payment requests waiting for their turn",
)

queue_wait_histogram = Histogram(
    "payment_queue_wait_seconds",
    "Time between enqueue and gateway call start",
    buckets=[0.1, 1.0, 5.0, 15.0, 30.0, 60.0, 120.0, 300.0],
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_initiation(outcome: str) -> None:
    """Record the outcome of one checkout submission"""
    payment_initiation_counter.labels(outcome=outcome).inc()
    if outcome == "rate_limited":
        rate_limited_counter.inc()
