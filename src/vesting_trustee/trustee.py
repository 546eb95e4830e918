"""
VestingTrustee - Main façade class

This is the primary interface to the trustee. It hides event sourcing,
projections and command handling behind plain method calls, and it is the
only place where tokens actually move on the asset ledger.

Every mutating call follows the same path:
1. Catch the projection up with the event stream
2. Let the handler decide (validations, then events)
3. Move tokens for TokensUnlocked / GrantRevoked
4. Append the events with optimistic locking
5. Apply them to the projection and return them as notifications

If step 3 or 4 fails, transfers already made are reversed and nothing is
recorded.

Example:
    >>> from vesting_trustee import VestingTrustee
    >>> from vesting_trustee.kernel.ledger import InMemoryLedger
    >>> ledger = InMemoryLedger({"vesting-trustee": 1000})
    >>> trustee = VestingTrustee("trustee.db", ledger)
    >>> trustee.grant("alice", 1000, start=0, cliff=30, end=360,
    ...               installment_length=1, caller="admin", now=0)
    >>> trustee.unlock_vested_tokens(caller="alice", now=180)
"""

from collections.abc import Callable
from pathlib import Path
from time import perf_counter

from vesting_trustee.foundation.commands import (
    CreateFoundationGrant,
    RevokeFoundationGrant,
    UnlockFoundationTokens,
)
from vesting_trustee.foundation.handlers import FoundationCommandHandlers
from vesting_trustee.foundation.models import FoundationGrant
from vesting_trustee.foundation.projections import FoundationLedger
from vesting_trustee.foundation.schedule import AnnualSchedule
from vesting_trustee.grants.calculator import vested_amount
from vesting_trustee.grants.commands import CreateGrant, RevokeGrant, UnlockVestedTokens
from vesting_trustee.grants.handlers import GrantCommandHandlers
from vesting_trustee.grants.models import Grant
from vesting_trustee.grants.projections import GrantBook
from vesting_trustee.kernel.authority import Authority, StaticAuthority
from vesting_trustee.kernel.config import TrusteeConfig
from vesting_trustee.kernel.errors import (
    CommandIdempotencyViolation,
    LedgerTransferFailed,
    StreamVersionConflict,
)
from vesting_trustee.kernel.event_store import SQLiteEventStore
from vesting_trustee.kernel.events import Event
from vesting_trustee.kernel.ids import generate_id
from vesting_trustee.kernel.ledger import AssetLedger
from vesting_trustee.kernel.logging import LogOperation, get_logger
from vesting_trustee.kernel.metrics import (
    projection_rebuild_duration_seconds,
    record_appended_events,
    record_grant_activity,
    stream_version_conflicts_total,
    track_command_duration,
    update_total_vesting,
)
from vesting_trustee.kernel.retry import retry_projection_rebuild
from vesting_trustee.kernel.time import RealTimeProvider, TimeProvider

logger = get_logger(__name__)

Projection = GrantBook | FoundationLedger
Transfer = tuple[str, str, int]


class VestingTrustee:
    """
    Vesting trustee façade

    Hosts two trustees over one event store and one ledger:
    - the generic grant book (any number of holders, cliff/linear/installments)
    - the foundation trustee (one beneficiary, annual depleting schedule)

    Each has its own custody identity and event stream, named in the config.
    """

    def __init__(
        self,
        sqlite_path: str | Path,
        ledger: AssetLedger,
        config: TrusteeConfig | None = None,
        authority: Authority | None = None,
        time_provider: TimeProvider | None = None,
    ) -> None:
        """
        Initialize the trustee

        Args:
            sqlite_path: Path to SQLite event database
            ledger: Asset ledger holding custody
            config: Deployment parameters (uses defaults if None)
            authority: Admin checks (uses config.admins if None)
            time_provider: Fallback clock when a call omits now (real time if None)
        """
        self.sqlite_path = Path(sqlite_path)
        self.ledger = ledger
        self.config = config or TrusteeConfig()
        self.authority = authority or StaticAuthority(self.config.admins)
        self.time_provider = time_provider or RealTimeProvider()

        self.schedule = AnnualSchedule.generate(
            self.config.foundation_allocation,
            self.config.schedule_years,
            self.config.annual_installment_percent,
        )

        self.event_store = SQLiteEventStore(self.sqlite_path)
        self.grant_handlers = GrantCommandHandlers(self.config.trustee_id, self.authority)
        self.foundation_handlers = FoundationCommandHandlers(
            self.config.foundation_trustee_id,
            self.config.foundation_beneficiary,
            self.schedule,
            self.authority,
            day_length=self.config.day_length,
            days_in_year=self.config.days_in_year,
        )

        self.grant_book = GrantBook(self.config.trustee_id)
        self.foundation_ledger = FoundationLedger(self.config.foundation_trustee_id)

        self._rebuild_projections()

    @retry_projection_rebuild()
    def _rebuild_projections(self) -> None:
        """Rebuild all projections from the event store"""
        started = perf_counter()
        self.grant_book = GrantBook(self.config.trustee_id)
        self.foundation_ledger = FoundationLedger(self.config.foundation_trustee_id)

        for event in self.event_store.load_all_events():
            self.grant_book.apply_event(event)
            self.foundation_ledger.apply_event(event)

        projection_rebuild_duration_seconds.labels(projection_name="all").observe(
            perf_counter() - started
        )
        update_total_vesting(self.config.trustee_id, self.grant_book.total_vesting)
        update_total_vesting(
            self.config.foundation_trustee_id, self.foundation_ledger.total_vesting
        )

    def _catch_up(self, projection: Projection) -> None:
        """Apply events appended to the stream by other writers"""
        if self.event_store.get_stream_version(projection.trustee_id) == projection.version:
            return
        for event in self.event_store.load_stream(projection.trustee_id):
            if event.version > projection.version:
                projection.apply_event(event)

    def _now(self, now: int | None) -> int:
        return self.time_provider.now() if now is None else now

    # ========== Command execution ==========

    def _execute(
        self,
        operation: str,
        projection: Projection,
        caller: str,
        command_id: str | None,
        decide: Callable[[str], list[Event]],
    ) -> list[Event]:
        """
        Decide, settle, append and apply one command

        Args:
            operation: Name for logs
            projection: State the command is decided against
            caller: Authenticated caller
            command_id: Idempotency key (generated if None)
            decide: Runs the handler for a command id

        Returns:
            The events emitted (the notifications), possibly empty
        """
        command_id = command_id or generate_id()
        stream_id = projection.trustee_id

        stored = self.event_store.get_events_by_command_id(command_id)
        if stored:
            if any(event.stream_id != stream_id for event in stored):
                raise CommandIdempotencyViolation(command_id)
            logger.info(
                "Command already processed", operation=operation, command_id=command_id
            )
            return stored

        with LogOperation(
            logger, operation, command_id=command_id, stream_id=stream_id, caller=caller
        ):
            self._catch_up(projection)
            events = decide(command_id)
            if not events:
                return []

            transfers = self._settle(events)
            try:
                appended = self.event_store.append(stream_id, projection.version, events)
            except StreamVersionConflict:
                stream_version_conflicts_total.labels(stream_type=events[0].stream_type).inc()
                self._reverse(transfers)
                raise
            except Exception:
                self._reverse(transfers)
                raise

            if appended is not events:
                # A concurrent writer already recorded this command id
                self._reverse(transfers)
                self._catch_up(projection)
                return appended

            for event in events:
                projection.apply_event(event)
                record_grant_activity(event.stream_type, event.event_type, event.payload)
            record_appended_events(events[0].stream_type, [e.event_type for e in events])
            update_total_vesting(stream_id, projection.total_vesting)

            return events

    def _settle(self, events: list[Event]) -> list[Transfer]:
        """
        Move the tokens the events describe

        Raises:
            LedgerTransferFailed: If the ledger refuses a transfer (earlier
                transfers of the same command are reversed first)
        """
        done: list[Transfer] = []
        for event in events:
            if event.event_type == "TokensUnlocked":
                transfer = (event.stream_id, event.payload["holder"], event.payload["value"])
            elif event.event_type == "GrantRevoked":
                transfer = (
                    event.stream_id,
                    event.payload["revoked_by"],
                    event.payload["refund"],
                )
            else:
                continue

            if not self.ledger.transfer(*transfer):
                self._reverse(done)
                raise LedgerTransferFailed(*transfer)
            done.append(transfer)
        return done

    def _reverse(self, transfers: list[Transfer]) -> None:
        for sender, to, units in reversed(transfers):
            if not self.ledger.transfer(to, sender, units):
                logger.error(
                    "Failed to reverse ledger transfer",
                    sender=sender,
                    to=to,
                )

    # ========== Generic grants ==========

    @track_command_duration("CreateGrant")
    def grant(
        self,
        holder: str,
        value: int,
        start: int,
        cliff: int,
        end: int,
        installment_length: int,
        revocable: bool = True,
        *,
        caller: str,
        now: int | None = None,
        command_id: str | None = None,
    ) -> list[Event]:
        """
        Grant tokens in custody to a holder (admin only)

        Returns:
            [NewGrant]
        """
        command = CreateGrant(
            holder=holder,
            value=value,
            start=start,
            cliff=cliff,
            end=end,
            installment_length=installment_length,
            revocable=revocable,
        )
        at = self._now(now)

        return self._execute(
            "create_grant",
            self.grant_book,
            caller,
            command_id,
            lambda cid: self.grant_handlers.handle_create_grant(
                command, cid, caller, at, self.grant_book, self.custody_balance()
            ),
        )

    @track_command_duration("UnlockVestedTokens")
    def unlock_vested_tokens(
        self,
        *,
        caller: str,
        holder: str | None = None,
        now: int | None = None,
        command_id: str | None = None,
    ) -> list[Event]:
        """
        Pay the caller everything vested but not yet transferred

        Returns:
            [TokensUnlocked], or [] when nothing new has vested
        """
        command = UnlockVestedTokens(holder=holder)
        at = self._now(now)

        return self._execute(
            "unlock_vested_tokens",
            self.grant_book,
            caller,
            command_id,
            lambda cid: self.grant_handlers.handle_unlock_vested_tokens(
                command, cid, caller, at, self.grant_book
            ),
        )

    @track_command_duration("RevokeGrant")
    def revoke(
        self,
        holder: str,
        *,
        caller: str,
        now: int | None = None,
        command_id: str | None = None,
    ) -> list[Event]:
        """
        Revoke a holder's grant, refunding value - transferred to the caller

        Returns:
            [GrantRevoked], or [GrantClosed] for an exhausted grant
        """
        command = RevokeGrant(holder=holder)
        at = self._now(now)

        return self._execute(
            "revoke_grant",
            self.grant_book,
            caller,
            command_id,
            lambda cid: self.grant_handlers.handle_revoke_grant(
                command, cid, caller, at, self.grant_book
            ),
        )

    def vested_tokens(self, holder: str, time: int | None = None) -> int:
        """Units of the holder's grant vested at time (0 without a grant)"""
        grant = self.grant_book.get_grant(holder)
        if grant is None:
            return 0
        return vested_amount(grant, self._now(time))

    def total_vesting(self) -> int:
        """Units committed to grants and not yet transferred"""
        return self.grant_book.total_vesting

    def get_grant(self, holder: str) -> Grant | None:
        return self.grant_book.get_grant(holder)

    def list_grants(self) -> list[Grant]:
        return [Grant.from_record(record) for record in self.grant_book.list_all()]

    def custody_balance(self) -> int:
        """Ledger balance of the generic trustee"""
        return self.ledger.balance_of(self.config.trustee_id)

    # ========== Foundation grant ==========

    @track_command_duration("CreateFoundationGrant")
    def grant_foundation(
        self,
        start_time: int,
        *,
        caller: str,
        now: int | None = None,
        command_id: str | None = None,
    ) -> list[Event]:
        """
        Grant the whole foundation allocation, vesting from start_time

        Returns:
            [NewGrant]
        """
        command = CreateFoundationGrant(start_time=start_time)
        at = self._now(now)

        return self._execute(
            "create_foundation_grant",
            self.foundation_ledger,
            caller,
            command_id,
            lambda cid: self.foundation_handlers.handle_create_grant(
                command,
                cid,
                caller,
                at,
                self.foundation_ledger,
                self.foundation_custody_balance(),
            ),
        )

    @track_command_duration("UnlockFoundationTokens")
    def unlock_foundation_tokens(
        self,
        *,
        caller: str,
        now: int | None = None,
        command_id: str | None = None,
    ) -> list[Event]:
        """
        Pay the beneficiary everything vested but not yet transferred

        Returns:
            [TokensUnlocked], or [] when nothing new has vested
        """
        command = UnlockFoundationTokens()
        at = self._now(now)

        return self._execute(
            "unlock_foundation_tokens",
            self.foundation_ledger,
            caller,
            command_id,
            lambda cid: self.foundation_handlers.handle_unlock(
                command, cid, caller, at, self.foundation_ledger
            ),
        )

    @track_command_duration("RevokeFoundationGrant")
    def revoke_foundation_grant(
        self,
        *,
        caller: str,
        now: int | None = None,
        command_id: str | None = None,
    ) -> list[Event]:
        """
        Revoke the foundation grant, refunding allocation - transferred

        Returns:
            [GrantRevoked]
        """
        command = RevokeFoundationGrant()
        at = self._now(now)

        return self._execute(
            "revoke_foundation_grant",
            self.foundation_ledger,
            caller,
            command_id,
            lambda cid: self.foundation_handlers.handle_revoke(
                command, cid, caller, at, self.foundation_ledger
            ),
        )

    def foundation_vested_tokens(self, time: int | None = None) -> int:
        """Units of the foundation grant vested at time (0 without a grant)"""
        grant = self.foundation_ledger.grant
        if grant is None:
            return 0
        return self.foundation_handlers.vested_tokens(grant["start_time"], self._now(time))

    def foundation_grant(self) -> FoundationGrant | None:
        return self.foundation_ledger.get_grant()

    def foundation_total_vesting(self) -> int:
        return self.foundation_ledger.total_vesting

    def foundation_custody_balance(self) -> int:
        """Ledger balance of the foundation trustee"""
        return self.ledger.balance_of(self.config.foundation_trustee_id)

    def annual_schedule(self) -> list[int]:
        return list(self.schedule.buckets)
