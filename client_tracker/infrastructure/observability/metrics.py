"""Prometheus metrics for monitoring payment transitions, score movement and sweeps"""

from prometheus_client import Counter, Histogram

# Lifecycle metrics
transition_counter = Counter(
    "client_tracker_payment_transitions_total",
    "Committed payment status transitions",
    ["operation", "new_status"],
)

transition_failure_counter = Counter(
    "client_tracker_payment_transition_failures_total",
    "Rejected or rolled back payment transitions",
    ["operation", "error"],  # not_found | invalid_transition | invalid_input | transaction_failure
)

score_change_histogram = Histogram(
    "client_tracker_score_change",
    "Score delta applied per ledger entry",
    buckets=[-50, -30, -20, -10, -1, 0, 10, 15, 20, 50],
)

# Sweep metrics
sweep_marked_counter = Counter(
    "client_tracker_sweep_marked_total",
    "Payments marked outstanding by the sweep",
)

sweep_failure_counter = Counter(
    "client_tracker_sweep_failures_total",
    "Payments the sweep failed to mark outstanding",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)

_ERROR_LABELS = {
    "NotFoundError": "not_found",
    "InvalidTransitionError": "invalid_transition",
    "InvalidInputError": "invalid_input",
    "TransactionFailureError": "transaction_failure",
}


def record_transition(operation: str, new_status: str, score_change: int) -> None:
    """Record a committed transition and the score delta it applied"""
    transition_counter.labels(operation=operation, new_status=new_status).inc()
    score_change_histogram.observe(score_change)


def record_transition_failure(operation: str, error: Exception) -> None:
    label = _ERROR_LABELS.get(type(error).__name__, "other")
    transition_failure_counter.labels(operation=operation, error=label).inc()
