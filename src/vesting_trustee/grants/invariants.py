"""
Grant Module Invariants - admission and lifecycle checks

Pure functions, each enforcing one precondition and raising its own error.
Handlers call them in a fixed order before building any event, so a failed
check never leaves a partial change behind.
"""

from vesting_trustee.grants.projections import GrantBook
from vesting_trustee.kernel.authority import Authority
from vesting_trustee.kernel.errors import (
    CliffAfterEnd,
    CliffBeforeStart,
    GrantAlreadyExists,
    GrantNotFound,
    GrantNotRevocable,
    GrantRevoked,
    InstallmentExceedsVestingPeriod,
    InsufficientCustody,
    InvalidHolder,
    NotAdmin,
    NotGrantHolder,
    ZeroGrantValue,
    ZeroInstallmentLength,
)


def validate_admin(caller: str, authority: Authority, operation: str) -> None:
    """
    Only admins create and revoke grants

    Raises:
        NotAdmin: If caller is not an admin
    """
    if not authority.is_admin(caller):
        raise NotAdmin(caller, operation)


def validate_holder(holder: str | None, trustee_id: str) -> None:
    """
    A grant needs a real holder that is not the trustee itself

    Raises:
        InvalidHolder: If holder is empty or the trustee's own identity
    """
    if holder is None or not holder.strip():
        raise InvalidHolder(holder, "holder identity is required")
    if holder == trustee_id:
        raise InvalidHolder(holder, "the trustee cannot grant to itself")


def validate_grant_value(value: int) -> None:
    """
    Raises:
        ZeroGrantValue: If value is not positive
    """
    if value <= 0:
        raise ZeroGrantValue(value)


def validate_vesting_window(
    start: int, cliff: int, end: int, installment_length: int
) -> None:
    """
    Check start <= cliff <= end and the installment length

    An instant grant (start == cliff == end) has a zero-length vesting
    period; any positive installment length is accepted for it.

    Raises:
        CliffBeforeStart: If cliff < start
        CliffAfterEnd: If cliff > end
        ZeroInstallmentLength: If installment_length <= 0
        InstallmentExceedsVestingPeriod: If installment_length > end - start
    """
    if cliff < start:
        raise CliffBeforeStart(start, cliff)
    if cliff > end:
        raise CliffAfterEnd(cliff, end)
    if installment_length <= 0:
        raise ZeroInstallmentLength(installment_length)
    if end > start and installment_length > end - start:
        raise InstallmentExceedsVestingPeriod(installment_length, end - start)


def validate_no_existing_grant(holder: str, book: GrantBook) -> None:
    """
    At most one grant per holder, including exhausted ones

    Raises:
        GrantAlreadyExists: If the holder is on the book
    """
    if book.get(holder) is not None:
        raise GrantAlreadyExists(holder)


def validate_custody(value: int, custody_balance: int, total_vesting: int) -> None:
    """
    A new grant must fit in custody not yet committed to other grants

    Raises:
        InsufficientCustody: If value > custody_balance - total_vesting
    """
    if value > custody_balance - total_vesting:
        raise InsufficientCustody(value, custody_balance, total_vesting)


def validate_grant_exists(holder: str, book: GrantBook) -> dict:
    """
    Resolve a holder's grant

    Returns:
        The grant record

    Raises:
        GrantRevoked: If the holder's grant was revoked
        GrantNotFound: If the holder never had a grant
    """
    grant = book.get(holder)
    if grant is None:
        if book.is_revoked(holder):
            raise GrantRevoked(holder)
        raise GrantNotFound(holder)
    return grant


def validate_caller_is_holder(caller: str, holder: str | None) -> None:
    """
    Nobody unlocks on behalf of someone else

    Raises:
        NotGrantHolder: If an explicit holder differs from the caller
    """
    if holder is not None and holder != caller:
        raise NotGrantHolder(caller, holder)


def validate_revocable(grant: dict) -> None:
    """
    Raises:
        GrantNotRevocable: If the grant was created non-revocable
    """
    if not grant["revocable"]:
        raise GrantNotRevocable(grant["holder"])
