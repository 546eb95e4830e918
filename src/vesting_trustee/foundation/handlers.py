"""
Foundation Module Handlers - Command→Event transformation

Same contract as the generic handlers: validate everything, then return
events. The beneficiary, schedule and calendar are fixed at construction.
"""

from vesting_trustee.foundation.calculator import calculate_foundation_vested_tokens
from vesting_trustee.foundation.commands import (
    CreateFoundationGrant,
    RevokeFoundationGrant,
    UnlockFoundationTokens,
)
from vesting_trustee.foundation.events import GrantRevoked, NewFoundationGrant, TokensUnlocked
from vesting_trustee.foundation.invariants import (
    validate_beneficiary,
    validate_grant_active,
    validate_never_granted,
    validate_not_exhausted,
    validate_start_time,
)
from vesting_trustee.foundation.projections import FoundationLedger
from vesting_trustee.foundation.schedule import AnnualSchedule
from vesting_trustee.grants.invariants import validate_admin, validate_custody
from vesting_trustee.kernel.authority import Authority
from vesting_trustee.kernel.events import Event, create_event
from vesting_trustee.kernel.ids import generate_id
from vesting_trustee.kernel.time import DAY

STREAM_TYPE = "foundation"


class FoundationCommandHandlers:
    """Command handlers for the single annual-schedule grant"""

    def __init__(
        self,
        trustee_id: str,
        beneficiary: str,
        schedule: AnnualSchedule,
        authority: Authority,
        day_length: int = DAY,
        days_in_year: int = 365,
    ) -> None:
        """
        Args:
            trustee_id: Custody identity and stream id of the trustee
            beneficiary: The only identity that may unlock
            schedule: Yearly buckets of the allocation
            authority: Answers admin checks
            day_length: Seconds per day
            days_in_year: Days per schedule year
        """
        self.trustee_id = trustee_id
        self.beneficiary = beneficiary
        self.schedule = schedule
        self.authority = authority
        self.day_length = day_length
        self.days_in_year = days_in_year

    def vested_tokens(self, start_time: int, now: int) -> int:
        return calculate_foundation_vested_tokens(
            self.schedule.buckets,
            start_time,
            now,
            day_length=self.day_length,
            days_in_year=self.days_in_year,
        )

    def _event(
        self,
        event_type: str,
        payload: dict,
        command_id: str,
        caller: str,
        now: int,
        version: int,
    ) -> Event:
        return create_event(
            event_id=generate_id(),
            stream_id=self.trustee_id,
            stream_type=STREAM_TYPE,
            event_type=event_type,
            occurred_at=now,
            command_id=command_id,
            actor_id=caller,
            payload=payload,
            version=version,
        )

    def handle_create_grant(
        self,
        command: CreateFoundationGrant,
        command_id: str,
        caller: str,
        now: int,
        ledger: FoundationLedger,
        custody_balance: int,
    ) -> list[Event]:
        """
        Handle CreateFoundationGrant command

        Returns:
            [NewGrant] for the whole allocation

        Raises:
            NotAdmin: If caller is not an admin
            InvalidStartTime: If start_time is not positive
            GrantAlreadyExists: If a grant was ever made
            InsufficientCustody: If custody holds less than the allocation
        """
        validate_admin(caller, self.authority, "grant the foundation allocation")
        validate_start_time(command.start_time)
        validate_never_granted(ledger, self.beneficiary)
        validate_custody(self.schedule.allocation, custody_balance, ledger.total_vesting)

        payload = NewFoundationGrant(
            granter=caller,
            holder=self.beneficiary,
            value=self.schedule.allocation,
            start_time=command.start_time,
            granted_at=now,
        ).model_dump(mode="json")

        return [self._event("NewGrant", payload, command_id, caller, now, ledger.version + 1)]

    def handle_unlock(
        self,
        command: UnlockFoundationTokens,
        command_id: str,
        caller: str,
        now: int,
        ledger: FoundationLedger,
    ) -> list[Event]:
        """
        Handle UnlockFoundationTokens command

        Before the start time, or twice on the same day, nothing new has
        vested and no events are returned.

        Returns:
            [TokensUnlocked] or []

        Raises:
            NotGrantHolder: If caller is not the beneficiary
            GrantRevoked: If the grant was revoked
            GrantNotFound: If no grant was made yet
        """
        validate_beneficiary(caller, self.beneficiary)
        grant = validate_grant_active(ledger, self.beneficiary)

        vested = self.vested_tokens(grant["start_time"], now)
        delta = max(vested - grant["transferred"], 0)
        if delta == 0:
            return []

        payload = TokensUnlocked(
            holder=self.beneficiary,
            value=delta,
            transferred_total=grant["transferred"] + delta,
            unlocked_at=now,
        ).model_dump(mode="json")

        return [
            self._event("TokensUnlocked", payload, command_id, caller, now, ledger.version + 1)
        ]

    def handle_revoke(
        self,
        command: RevokeFoundationGrant,
        command_id: str,
        caller: str,
        now: int,
        ledger: FoundationLedger,
    ) -> list[Event]:
        """
        Handle RevokeFoundationGrant command

        Refunds allocation - transferred to the revoking admin, vested or not.

        Returns:
            [GrantRevoked]

        Raises:
            NotAdmin: If caller is not an admin
            GrantRevoked: If the grant was already revoked
            GrantNotFound: If no grant was made yet
            GrantExhausted: If everything was already unlocked
        """
        validate_admin(caller, self.authority, "revoke the foundation grant")
        grant = validate_grant_active(ledger, self.beneficiary)
        validate_not_exhausted(grant)

        payload = GrantRevoked(
            holder=self.beneficiary,
            refund=grant["allocation"] - grant["transferred"],
            transferred=grant["transferred"],
            revoked_by=caller,
            revoked_at=now,
        ).model_dump(mode="json")

        return [
            self._event("GrantRevoked", payload, command_id, caller, now, ledger.version + 1)
        ]
