"""
Foundation Module Invariants

The admin check and the custody check are shared with the generic grant
book; the rest is specific to a single grant that can be made only once.
"""

from vesting_trustee.foundation.projections import FoundationLedger
from vesting_trustee.kernel.errors import (
    GrantAlreadyExists,
    GrantExhausted,
    GrantNotFound,
    GrantRevoked,
    InvalidStartTime,
    NotGrantHolder,
)


def validate_start_time(start_time: int) -> None:
    """
    Raises:
        InvalidStartTime: If start_time is not positive
    """
    if start_time <= 0:
        raise InvalidStartTime(start_time)


def validate_never_granted(ledger: FoundationLedger, beneficiary: str) -> None:
    """
    The foundation grant happens once in the trustee's lifetime

    Raises:
        GrantAlreadyExists: If a grant was made before, even if since revoked
    """
    if ledger.ever_granted:
        raise GrantAlreadyExists(beneficiary)


def validate_beneficiary(caller: str, beneficiary: str) -> None:
    """
    Raises:
        NotGrantHolder: If caller is not the beneficiary
    """
    if caller != beneficiary:
        raise NotGrantHolder(caller, beneficiary)


def validate_grant_active(ledger: FoundationLedger, beneficiary: str) -> dict:
    """
    Returns:
        The active grant record

    Raises:
        GrantRevoked: If the grant was revoked
        GrantNotFound: If no grant was made yet
    """
    if ledger.grant is None:
        if ledger.is_revoked:
            raise GrantRevoked(beneficiary)
        raise GrantNotFound(beneficiary)
    return ledger.grant


def validate_not_exhausted(grant: dict) -> None:
    """
    A fully paid-out grant cannot be revoked

    Raises:
        GrantExhausted: If transferred == allocation
    """
    if grant["transferred"] >= grant["allocation"]:
        raise GrantExhausted(grant["beneficiary"], grant["allocation"])
