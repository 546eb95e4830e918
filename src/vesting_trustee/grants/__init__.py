"""
Grants Module - the generic cliff/linear/installment trustee

An admin grants tokens held in custody to holders; holders unlock what has
vested; an admin may revoke, taking back everything not yet unlocked.
"""

from vesting_trustee.grants.calculator import calculate_vested_tokens, vested_amount
from vesting_trustee.grants.models import Grant
from vesting_trustee.grants.projections import GrantBook

__all__ = [
    "Grant",
    "GrantBook",
    "calculate_vested_tokens",
    "vested_amount",
]
