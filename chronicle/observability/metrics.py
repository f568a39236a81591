"""Prometheus metrics for Chronicle.

Counts persisted and skipped change records and times hook dispatch.
"""

from prometheus_client import Counter, Histogram

RECORDS_PERSISTED = Counter(
    "chronicle_records_persisted_total",
    "Total number of change records persisted",
    labelnames=["event"],
)

RECORDINGS_SKIPPED = Counter(
    "chronicle_recordings_skipped_total",
    "Recordings abandoned before persistence",
    labelnames=["event", "reason"],
)

EXCEPTION_RECORDING_FAILURES = Counter(
    "chronicle_exception_recording_failures_total",
    "Exception records that could not be persisted",
)

HOOK_DISPATCH_LATENCY = Histogram(
    "chronicle_hook_dispatch_latency_seconds",
    "Time spent running recording hook subscribers",
    labelnames=["channel"],
    buckets=(0.0005, 0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0),
)
