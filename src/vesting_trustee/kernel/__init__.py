"""
Kernel - Core event sourcing infrastructure

The kernel provides the machinery the grant modules build upon: the event
model and store, time and id providers, the ledger and authority
collaborators, configuration, errors, logging and metrics.

Like a paper ledger, the event log is never erased. A revocation is a new
entry, not a deleted one.
"""

from vesting_trustee.kernel.authority import Authority, StaticAuthority
from vesting_trustee.kernel.config import TrusteeConfig
from vesting_trustee.kernel.errors import (
    AuthorizationError,
    CommandIdempotencyViolation,
    ConflictError,
    EventStoreError,
    ResourceError,
    StreamVersionConflict,
    TrusteeError,
    ValidationError,
)
from vesting_trustee.kernel.event_store import SQLiteEventStore
from vesting_trustee.kernel.events import Event
from vesting_trustee.kernel.ids import generate_id
from vesting_trustee.kernel.ledger import AssetLedger, InMemoryLedger, SQLiteLedger
from vesting_trustee.kernel.time import RealTimeProvider, TestTimeProvider, TimeProvider

__all__ = [
    # IDs
    "generate_id",
    # Time
    "TimeProvider",
    "RealTimeProvider",
    "TestTimeProvider",
    # Events & storage
    "Event",
    "SQLiteEventStore",
    # Collaborators
    "AssetLedger",
    "InMemoryLedger",
    "SQLiteLedger",
    "Authority",
    "StaticAuthority",
    # Configuration
    "TrusteeConfig",
    # Errors
    "TrusteeError",
    "ValidationError",
    "AuthorizationError",
    "ConflictError",
    "ResourceError",
    "EventStoreError",
    "CommandIdempotencyViolation",
    "StreamVersionConflict",
]
