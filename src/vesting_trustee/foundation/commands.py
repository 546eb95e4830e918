"""
Foundation Module Commands

The beneficiary and the allocation are fixed by configuration, so only the
start time is ever chosen by a caller.
"""

from pydantic import BaseModel


class CreateFoundationGrant(BaseModel):
    """
    Grant the whole allocation to the beneficiary (admin only, once ever)

    Requirements:
    - start_time > 0
    - No grant was ever made before, revoked or not
    - Custody holds at least the allocation
    """

    start_time: int


class UnlockFoundationTokens(BaseModel):
    """Pay out everything vested but not yet transferred (beneficiary only)"""

    pass


class RevokeFoundationGrant(BaseModel):
    """Terminate the grant, refunding all untransferred units (admin only)"""

    pass
