"""
Base Event model for event sourcing

Events are immutable facts about what happened to a trustee. The event log
is the source of truth: grant books are rebuilt from it on start-up, and the
events a command produced are what the caller gets back as notifications.
"""

from typing import Any

from pydantic import BaseModel, Field


class Event(BaseModel):
    """
    Base event class - all trustee events are instances of this

    The combination of stream_id + version provides optimistic locking,
    while command_id ensures idempotency.
    """

    event_id: str = Field(
        ...,
        description="Unique event identifier (UUIDv7-like)",
    )

    stream_id: str = Field(
        ...,
        description="Trustee identity the event belongs to",
    )

    stream_type: str = Field(
        ...,
        description="Kind of trustee: 'trustee' or 'foundation'",
    )

    event_type: str = Field(
        ...,
        description="Specific event type: 'NewGrant', 'TokensUnlocked', etc.",
    )

    occurred_at: int = Field(
        ...,
        description="Unix time (seconds) the command was evaluated at",
    )

    actor_id: str | None = Field(
        default=None,
        description="Authenticated caller who triggered this event",
    )

    command_id: str = Field(
        ...,
        description="ID of command that caused this event (idempotency key)",
    )

    payload: dict[str, Any] = Field(
        default_factory=dict,
        description="Event-specific data (must be JSON-serializable)",
    )

    version: int = Field(
        ...,
        description="Stream version after this event (monotonically increasing)",
        ge=1,
    )

    model_config = {
        "frozen": True,
        "json_schema_extra": {
            "examples": [
                {
                    "event_id": "01908e9a-3b87-7000-8000-123456789abc",
                    "stream_id": "vesting-trustee",
                    "stream_type": "trustee",
                    "event_type": "NewGrant",
                    "occurred_at": 1736935200,
                    "actor_id": "admin",
                    "command_id": "cmd-123",
                    "payload": {"granter": "admin", "holder": "alice", "value": 1000},
                    "version": 1,
                }
            ]
        },
    }


def create_event(
    *,
    event_id: str,
    stream_id: str,
    stream_type: str,
    event_type: str,
    occurred_at: int,
    command_id: str,
    version: int,
    actor_id: str | None = None,
    payload: dict[str, Any] | None = None,
) -> Event:
    """Factory function for creating events with all required fields"""
    return Event(
        event_id=event_id,
        stream_id=stream_id,
        stream_type=stream_type,
        event_type=event_type,
        occurred_at=occurred_at,
        actor_id=actor_id,
        command_id=command_id,
        payload=payload or {},
        version=version,
    )
