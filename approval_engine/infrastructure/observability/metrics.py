"""Prometheus metrics for approval throughput, bulk outcomes and list fetches"""

from prometheus_client import Counter, Histogram

# Transition metrics
transition_counter = Counter(
    "approval_transition_total",
    "Status transitions attempted",
    ["kind", "action", "outcome"],  # outcome: success | failure
)

rollback_counter = Counter(
    "approval_optimistic_rollbacks_total",
    "Optimistic updates undone after a failed request",
    ["kind"],
)

# Bulk metrics
bulk_run_counter = Counter(
    "approval_bulk_runs_total",
    "Bulk actions executed",
    ["action", "outcome"],  # complete | partial | failed
)

bulk_size_histogram = Histogram(
    "approval_bulk_size",
    "Targets per bulk action",
    buckets=[1, 2, 5, 10, 25, 50, 100],
)

# Fetch metrics
fetch_latency_histogram = Histogram(
    "approval_fetch_latency_seconds",
    "Approval list fetch time",
    buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

fetch_failures_counter = Counter(
    "approval_fetch_failures_total",
    "Failed approval list fetches",
)

stale_response_counter = Counter(
    "approval_stale_responses_total",
    "Fetch responses discarded because a newer fetch was issued",
)


def record_transition(kind: str, action: str, success: bool) -> None:
    transition_counter.labels(kind=kind, action=action, outcome="success" if success else "failure").inc()


def record_bulk_run(action: str, succeeded: int, failed: int) -> None:
    """Record bulk outcome bucketed by how many targets failed"""
    if failed == 0:
        outcome = "complete"
    elif succeeded == 0:
        outcome = "failed"
    else:
        outcome = "partial"

    bulk_run_counter.labels(action=action, outcome=outcome).inc()
    bulk_size_histogram.observe(succeeded + failed)
