"""
Custom exceptions for the vesting trustee

Every rejection has its own exception class so callers (and tests) can tell
exactly which precondition failed. The four families mirror how a caller is
expected to react:

- ValidationError: the request itself is malformed, fix the parameters
- AuthorizationError: the caller may not perform this operation
- ConflictError: the request clashes with the current grant state
- ResourceError: custody cannot back the request, or the ledger refused a move

All of them are raised before any state is touched.
"""


class TrusteeError(Exception):
    """Base exception for all vesting trustee errors"""

    pass


# Validation


class ValidationError(TrusteeError):
    """Base class for malformed grant parameters"""

    pass


class InvalidHolder(ValidationError):
    """Raised when a grant holder is empty or is the trustee itself"""

    def __init__(self, holder: str | None, reason: str) -> None:
        self.holder = holder
        self.reason = reason
        super().__init__(f"Invalid grant holder {holder!r}: {reason}")


class ZeroGrantValue(ValidationError):
    """Raised when a grant would promise nothing"""

    def __init__(self, value: int) -> None:
        self.value = value
        super().__init__(f"Grant value must be positive, got {value}")


class CliffBeforeStart(ValidationError):
    """Raised when the cliff precedes the vesting start"""

    def __init__(self, start: int, cliff: int) -> None:
        self.start = start
        self.cliff = cliff
        super().__init__(f"Cliff {cliff} is before vesting start {start}")


class CliffAfterEnd(ValidationError):
    """Raised when the cliff falls after the end of vesting"""

    def __init__(self, cliff: int, end: int) -> None:
        self.cliff = cliff
        self.end = end
        super().__init__(f"Cliff {cliff} is after vesting end {end}")


class ZeroInstallmentLength(ValidationError):
    """Raised when the installment length is not positive"""

    def __init__(self, installment_length: int) -> None:
        self.installment_length = installment_length
        super().__init__(
            f"Installment length must be positive, got {installment_length}"
        )


class InstallmentExceedsVestingPeriod(ValidationError):
    """Raised when one installment is longer than the whole vesting period"""

    def __init__(self, installment_length: int, vesting_period: int) -> None:
        self.installment_length = installment_length
        self.vesting_period = vesting_period
        super().__init__(
            f"Installment length {installment_length} exceeds vesting period "
            f"{vesting_period}"
        )


class InvalidStartTime(ValidationError):
    """Raised when the foundation grant start time is not positive"""

    def __init__(self, start_time: int) -> None:
        self.start_time = start_time
        super().__init__(f"Start time must be positive, got {start_time}")


# Authorization


class AuthorizationError(TrusteeError):
    """Base class for callers acting outside their rights"""

    pass


class NotAdmin(AuthorizationError):
    """Raised when an admin-only operation is called by someone else"""

    def __init__(self, caller: str, operation: str) -> None:
        self.caller = caller
        self.operation = operation
        super().__init__(f"{caller!r} is not an admin and cannot {operation}")


class NotGrantHolder(AuthorizationError):
    """Raised when someone other than the holder tries to unlock"""

    def __init__(self, caller: str, holder: str) -> None:
        self.caller = caller
        self.holder = holder
        super().__init__(
            f"{caller!r} cannot unlock tokens granted to {holder!r}"
        )


# Conflict


class ConflictError(TrusteeError):
    """Base class for requests that clash with current grant state"""

    pass


class GrantAlreadyExists(ConflictError):
    """Raised when a holder already has a grant"""

    def __init__(self, holder: str) -> None:
        self.holder = holder
        super().__init__(f"{holder!r} already has a grant")


class GrantNotFound(ConflictError):
    """Raised when no active grant exists for a holder"""

    def __init__(self, holder: str, message: str = "") -> None:
        self.holder = holder
        super().__init__(message or f"No active grant for {holder!r}")


class GrantRevoked(GrantNotFound):
    """Raised when the grant existed but has been revoked"""

    def __init__(self, holder: str) -> None:
        super().__init__(holder, f"Grant for {holder!r} has been revoked")


class GrantNotRevocable(ConflictError):
    """Raised when revoking a grant created as non-revocable"""

    def __init__(self, holder: str) -> None:
        self.holder = holder
        super().__init__(f"Grant for {holder!r} is not revocable")


class GrantExhausted(ConflictError):
    """Raised when revoking a grant whose whole value was already paid out"""

    def __init__(self, holder: str, value: int) -> None:
        self.holder = holder
        self.value = value
        super().__init__(
            f"Grant for {holder!r} is fully unlocked ({value}), nothing to revoke"
        )


# Resource


class ResourceError(TrusteeError):
    """Base class for custody and ledger failures"""

    pass


class InsufficientCustody(ResourceError):
    """Raised when custody cannot back a new grant"""

    def __init__(self, value: int, custody_balance: int, total_vesting: int) -> None:
        self.value = value
        self.custody_balance = custody_balance
        self.total_vesting = total_vesting
        self.available = custody_balance - total_vesting
        super().__init__(
            f"Grant of {value} exceeds uncommitted custody {self.available} "
            f"(balance: {custody_balance}, outstanding: {total_vesting})"
        )


class LedgerTransferFailed(ResourceError):
    """Raised when the asset ledger refuses a transfer"""

    def __init__(self, sender: str, to: str, units: int) -> None:
        self.sender = sender
        self.to = to
        self.units = units
        super().__init__(f"Ledger refused transfer of {units} from {sender!r} to {to!r}")


# Event store


class EventStoreError(TrusteeError):
    """Base class for event store errors"""

    pass


class CommandIdempotencyViolation(EventStoreError):
    """
    Raised when a command_id was already used for a different stream

    A repeat on the same stream is not an error: the stored events are
    returned instead.
    """

    def __init__(self, command_id: str, message: str = "") -> None:
        self.command_id = command_id
        super().__init__(message or f"Command {command_id} already processed")


class StreamVersionConflict(EventStoreError):
    """
    Raised when stream version doesn't match expected (optimistic locking)

    Another writer changed the trustee in between; the operation was not
    applied and the caller should reload before deciding again.
    """

    def __init__(
        self, stream_id: str, expected_version: int, actual_version: int
    ) -> None:
        self.stream_id = stream_id
        self.expected_version = expected_version
        self.actual_version = actual_version
        super().__init__(
            f"Stream {stream_id} version mismatch: "
            f"expected {expected_version}, got {actual_version}"
        )
