"""Prometheus metrics for monitoring lifecycle runs, transitions and notification delivery"""

from prometheus_client import Counter, Histogram

from rental_lifecycle.domain.models import RunSummary

# Run metrics
run_counter = Counter(
    "lifecycle_runs_total",
    "Automation runs by outcome",
    ["outcome"],  # completed | load_failed
)

run_duration_histogram = Histogram(
    "lifecycle_run_duration_seconds",
    "Wall time of a full automation run",
    buckets=[0.1, 0.5, 1.0, 5.0, 15.0, 30.0, 60.0, 300.0],
)

transition_counter = Counter(
    "lifecycle_transitions_total",
    "Lifecycle transitions applied",
    ["kind"],  # expire | warn | mark_overdue | auto_decide
)

entity_error_counter = Counter(
    "lifecycle_entity_errors_total",
    "Entities whose processing failed",
    ["entity_type"],
)

conflict_counter = Counter(
    "lifecycle_write_conflicts_total",
    "Conditional writes lost to a concurrent run",
    ["entity_type"],
)

# Notification metrics
notification_latency_histogram = Histogram(
    "notification_delivery_latency_seconds",
    "Notification service response time",
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)

notification_counter = Counter(
    "notifications_total",
    "Notification delivery attempts by final outcome",
    ["outcome"],  # delivered | failed
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_run(summary: RunSummary, duration_seconds: float) -> None:
    """Record aggregate run metrics so rising error counts show up on dashboards"""
    run_counter.labels(outcome="completed" if summary.success else "load_failed").inc()
    run_duration_histogram.observe(duration_seconds)

    for kind, count in (
        ("expire", summary.expired),
        ("warn", summary.warnings_sent),
        ("mark_overdue", summary.overdue_marked),
        ("auto_decide", summary.auto_processed),
    ):
        if count:
            transition_counter.labels(kind=kind).inc(count)
