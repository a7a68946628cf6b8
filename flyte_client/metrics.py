"""Prometheus metrics for the pack runtime."""
from __future__ import annotations

from prometheus_client import Counter, Histogram

ACTIONS_TAKEN = Counter(
    "flyte_pack_actions_taken_total",
    "Actions taken from the flyte api",
)

ACTIONS_COMPLETED = Counter(
    "flyte_pack_actions_completed_total",
    "Actions completed, by outcome",
    labelnames=("command", "outcome"),
)

COMPLETION_FAILURES = Counter(
    "flyte_pack_action_completion_failures_total",
    "Action results that could not be posted back to the flyte api",
    labelnames=("command",),
)

POLL_ERRORS = Counter(
    "flyte_pack_poll_errors_total",
    "Failed attempts to take the next action",
)

REGISTRATION_ATTEMPTS = Counter(
    "flyte_pack_registration_attempts_total",
    "Pack registration attempts, by result",
    labelnames=("result",),
)

HANDLER_LATENCY = Histogram(
    "flyte_pack_handler_duration_ms",
    "Command handler execution time (milliseconds)",
    labelnames=("command",),
    buckets=(1, 5, 10, 50, 100, 500, 1000, 5000, 10000, 60000),
)
