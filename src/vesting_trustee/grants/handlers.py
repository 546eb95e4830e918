"""
Grant Module Handlers - Command→Event transformation

Handlers are the decision-making layer of the generic trustee. They:
1. Read current state from the GrantBook
2. Validate every precondition (admin, parameters, book, custody)
3. Build events if all checks pass
4. Return the events; the facade moves tokens and appends them

Handlers never read a clock, the ledger or the store. "now", the caller and
the custody balance are passed in, which keeps every decision replayable.
"""

from vesting_trustee.grants.calculator import unlockable_amount
from vesting_trustee.grants.commands import CreateGrant, RevokeGrant, UnlockVestedTokens
from vesting_trustee.grants.events import GrantClosed, GrantRevoked, NewGrant, TokensUnlocked
from vesting_trustee.grants.invariants import (
    validate_admin,
    validate_caller_is_holder,
    validate_custody,
    validate_grant_exists,
    validate_grant_value,
    validate_holder,
    validate_no_existing_grant,
    validate_revocable,
    validate_vesting_window,
)
from vesting_trustee.grants.models import Grant
from vesting_trustee.grants.projections import GrantBook
from vesting_trustee.kernel.authority import Authority
from vesting_trustee.kernel.events import Event, create_event
from vesting_trustee.kernel.ids import generate_id

STREAM_TYPE = "trustee"


class GrantCommandHandlers:
    """
    Command handlers for the generic grant book

    One instance serves one trustee identity; all events go to the stream
    named after it.
    """

    def __init__(self, trustee_id: str, authority: Authority) -> None:
        """
        Initialize handlers with dependencies

        Args:
            trustee_id: Custody identity and stream id of the trustee
            authority: Answers admin checks
        """
        self.trustee_id = trustee_id
        self.authority = authority

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
        command: CreateGrant,
        command_id: str,
        caller: str,
        now: int,
        book: GrantBook,
        custody_balance: int,
    ) -> list[Event]:
        """
        Handle CreateGrant command

        No tokens move: custody already holds them. The grant's value is
        committed by adding it to total_vesting.

        Args:
            command: CreateGrant command
            command_id: Idempotency key
            caller: Authenticated caller
            now: Evaluation time
            book: Current grant book
            custody_balance: Ledger balance of the trustee

        Returns:
            [NewGrant]

        Raises:
            NotAdmin: If caller is not an admin
            InvalidHolder, ZeroGrantValue, CliffBeforeStart, CliffAfterEnd,
            ZeroInstallmentLength, InstallmentExceedsVestingPeriod: On bad parameters
            GrantAlreadyExists: If the holder already has a grant
            InsufficientCustody: If custody cannot back the value
        """
        validate_admin(caller, self.authority, "create grants")
        validate_holder(command.holder, self.trustee_id)
        validate_grant_value(command.value)
        validate_vesting_window(
            command.start, command.cliff, command.end, command.installment_length
        )
        validate_no_existing_grant(command.holder, book)
        validate_custody(command.value, custody_balance, book.total_vesting)

        payload = NewGrant(
            grant_id=generate_id(),
            granter=caller,
            holder=command.holder,
            value=command.value,
            start=command.start,
            cliff=command.cliff,
            end=command.end,
            installment_length=command.installment_length,
            revocable=command.revocable,
            granted_at=now,
        ).model_dump(mode="json")

        return [self._event("NewGrant", payload, command_id, caller, now, book.version + 1)]

    def handle_unlock_vested_tokens(
        self,
        command: UnlockVestedTokens,
        command_id: str,
        caller: str,
        now: int,
        book: GrantBook,
    ) -> list[Event]:
        """
        Handle UnlockVestedTokens command

        Returns no events when nothing new has vested since the last unlock;
        that is a successful no-op, not an error.

        Args:
            command: UnlockVestedTokens command
            command_id: Idempotency key
            caller: Authenticated caller (the holder)
            now: Evaluation time
            book: Current grant book

        Returns:
            [TokensUnlocked] or []

        Raises:
            NotGrantHolder: If command.holder is set and is not the caller
            GrantRevoked: If the caller's grant was revoked
            GrantNotFound: If the caller has no grant
        """
        validate_caller_is_holder(caller, command.holder)
        record = validate_grant_exists(caller, book)
        grant = Grant.from_record(record)

        delta = unlockable_amount(grant, now)
        if delta == 0:
            return []

        payload = TokensUnlocked(
            holder=caller,
            value=delta,
            transferred_total=grant.transferred + delta,
            unlocked_at=now,
        ).model_dump(mode="json")

        return [
            self._event("TokensUnlocked", payload, command_id, caller, now, book.version + 1)
        ]

    def handle_revoke_grant(
        self,
        command: RevokeGrant,
        command_id: str,
        caller: str,
        now: int,
        book: GrantBook,
    ) -> list[Event]:
        """
        Handle RevokeGrant command

        The refund is value - transferred: vested but unclaimed units are
        forfeited together with the unvested ones. It goes to the revoking
        admin. An exhausted grant has nothing to refund and is closed without
        a GrantRevoked notification.

        Args:
            command: RevokeGrant command
            command_id: Idempotency key
            caller: Authenticated caller
            now: Evaluation time
            book: Current grant book

        Returns:
            [GrantRevoked] or [GrantClosed]

        Raises:
            NotAdmin: If caller is not an admin
            GrantRevoked: If the grant was already revoked
            GrantNotFound: If the holder has no grant
            GrantNotRevocable: If the grant is not revocable
        """
        validate_admin(caller, self.authority, "revoke grants")
        record = validate_grant_exists(command.holder, book)
        validate_revocable(record)

        refund = record["value"] - record["transferred"]
        version = book.version + 1

        if refund == 0:
            payload = GrantClosed(
                holder=command.holder,
                transferred=record["transferred"],
                closed_by=caller,
                closed_at=now,
            ).model_dump(mode="json")
            return [self._event("GrantClosed", payload, command_id, caller, now, version)]

        payload = GrantRevoked(
            holder=command.holder,
            refund=refund,
            transferred=record["transferred"],
            revoked_by=caller,
            revoked_at=now,
        ).model_dump(mode="json")
        return [self._event("GrantRevoked", payload, command_id, caller, now, version)]
