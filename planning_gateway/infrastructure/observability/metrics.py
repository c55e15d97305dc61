"""Prometheus metrics for schedule generation, payment confirmation and ledger delivery"""

from prometheus_client import Counter, Histogram

# Schedule metrics
schedule_generated_counter = Counter(
    "planning_schedule_generated_total",
    "Debt schedules generated or regenerated",
)

schedule_entries_counter = Counter(
    "planning_schedule_entries_total",
    "Schedule entries created by the generator",
)

payment_confirmed_counter = Counter(
    "planning_payment_confirmed_total",
    "Debt payment confirmations",
    ["outcome"],  # confirmed | already_paid
)

conflict_counter = Counter(
    "planning_conflicts_total",
    "Writes rejected because a concurrent write won",
)

# Webhook metrics
webhook_latency_histogram = Histogram(
    "webhook_latency_seconds",
    "Ledger webhook response time",
    buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

webhook_failure_counter = Counter(
    "webhook_failures_total",
    "Failed webhook deliveries",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_schedule_generated(entries_created: int) -> None:
    """Record one schedule generation and the number of entries it produced"""
    schedule_generated_counter.inc()
    schedule_entries_counter.inc(entries_created)


def record_payment_confirmed(already_paid: bool) -> None:
    outcome = "already_paid" if already_paid else "confirmed"
    payment_confirmed_counter.labels(outcome=outcome).inc()
