"""
Foundation Module Events

The foundation trustee emits the same notifications as the generic one.
Only the grant itself has a different shape: a start time instead of a
cliff and vesting window.
"""

from pydantic import BaseModel

from vesting_trustee.grants.events import GrantRevoked, TokensUnlocked


class NewFoundationGrant(BaseModel):
    """The allocation was granted to the beneficiary (event type NewGrant)"""

    granter: str
    holder: str
    value: int
    start_time: int
    granted_at: int


__all__ = ["NewFoundationGrant", "TokensUnlocked", "GrantRevoked"]
