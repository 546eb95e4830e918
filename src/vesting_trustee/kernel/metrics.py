"""
Prometheus metrics for the vesting trustee.

Amounts are exported as floats, which is lossy for 18-decimal token units.
They are meant for dashboards; the event log stays the exact record.
"""

import time
from collections.abc import Callable
from functools import wraps
from typing import ParamSpec, TypeVar

from prometheus_client import Counter, Gauge, Histogram, start_http_server

# ============================================================================
# Event Store Metrics
# ============================================================================

events_appended_total = Counter(
    "trustee_events_appended_total",
    "Total number of events appended to the event store",
    ["stream_type", "event_type"],
)

stream_version_conflicts_total = Counter(
    "trustee_stream_version_conflicts_total",
    "Total number of optimistic locking version conflicts",
    ["stream_type"],
)

# ============================================================================
# Command Processing Metrics
# ============================================================================

command_duration_seconds = Histogram(
    "trustee_command_duration_seconds",
    "Duration of command processing in seconds",
    ["command_type"],
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5),
)

commands_processed_total = Counter(
    "trustee_commands_processed_total",
    "Total number of commands processed",
    ["command_type", "status"],  # status: success, failure
)

# ============================================================================
# Grant Metrics
# ============================================================================

grants_created_total = Counter(
    "trustee_grants_created_total",
    "Total number of grants created",
    ["stream_type"],
)

grants_revoked_total = Counter(
    "trustee_grants_revoked_total",
    "Total number of grants revoked",
    ["stream_type"],
)

tokens_unlocked_total = Counter(
    "trustee_tokens_unlocked_total",
    "Total token units released to holders",
    ["stream_type"],
)

tokens_refunded_total = Counter(
    "trustee_tokens_refunded_total",
    "Total token units refunded to admins on revocation",
    ["stream_type"],
)

total_vesting_units = Gauge(
    "trustee_total_vesting_units",
    "Outstanding (granted but not yet transferred) token units",
    ["trustee_id"],
)

# ============================================================================
# System Metrics
# ============================================================================

projection_rebuild_duration_seconds = Histogram(
    "trustee_projection_rebuild_duration_seconds",
    "Duration of projection rebuild in seconds",
    ["projection_name"],
    buckets=(0.01, 0.05, 0.1, 0.5, 1.0, 5.0, 10.0, 30.0),
)

# ============================================================================
# Helper Functions
# ============================================================================

P = ParamSpec("P")
R = TypeVar("R")


def track_command_duration(command_type: str) -> Callable[[Callable[P, R]], Callable[P, R]]:
    """
    Decorator to track command processing duration and outcome.

    Args:
        command_type: Type of command being processed

    Returns:
        Decorated function that tracks duration
    """

    def decorator(func: Callable[P, R]) -> Callable[P, R]:
        @wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            start = time.perf_counter()
            status = "success"
            try:
                return func(*args, **kwargs)
            except Exception:
                status = "failure"
                raise
            finally:
                duration = time.perf_counter() - start
                command_duration_seconds.labels(command_type=command_type).observe(duration)
                commands_processed_total.labels(
                    command_type=command_type, status=status
                ).inc()

        return wrapper

    return decorator


def record_appended_events(stream_type: str, event_types: list[str]) -> None:
    """Count appended events by stream and event type."""
    for event_type in event_types:
        events_appended_total.labels(stream_type=stream_type, event_type=event_type).inc()


def record_grant_activity(
    stream_type: str, event_type: str, payload: dict
) -> None:
    """Update grant counters for one emitted event."""
    if event_type == "NewGrant":
        grants_created_total.labels(stream_type=stream_type).inc()
    elif event_type == "TokensUnlocked":
        tokens_unlocked_total.labels(stream_type=stream_type).inc(float(payload["value"]))
    elif event_type == "GrantRevoked":
        grants_revoked_total.labels(stream_type=stream_type).inc()
        tokens_refunded_total.labels(stream_type=stream_type).inc(float(payload["refund"]))
    elif event_type == "GrantClosed":
        grants_revoked_total.labels(stream_type=stream_type).inc()


def update_total_vesting(trustee_id: str, total_vesting: int) -> None:
    """Set the outstanding units gauge for a trustee."""
    total_vesting_units.labels(trustee_id=trustee_id).set(float(total_vesting))


def start_metrics_server(port: int = 9090) -> None:
    """
    Start Prometheus metrics HTTP server.

    Args:
        port: Port to listen on (default: 9090)
    """
    start_http_server(port)
