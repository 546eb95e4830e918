"""
Grant Module Commands - Intentions to change the grant book

Commands carry what the caller asked for. Who is asking (the caller) and
when (now) are supplied separately by the facade, already authenticated.
Field values are not range-checked here: each bad parameter has its own
rejection in the invariants, raised by the handler.
"""

from pydantic import BaseModel


class CreateGrant(BaseModel):
    """
    Grant tokens to a holder (admin only)

    Requirements:
    - Holder is a real identity other than the trustee itself
    - value > 0 and backed by uncommitted custody
    - start <= cliff <= end
    - 0 < installment_length <= end - start (unless start == cliff == end)
    - Holder has no grant yet
    """

    holder: str | None
    value: int
    start: int
    cliff: int
    end: int
    installment_length: int
    revocable: bool = True


class UnlockVestedTokens(BaseModel):
    """
    Pay out everything vested but not yet transferred (holder only)

    The grant is resolved from the caller. holder may be given to make the
    intent explicit; it must then be the caller.
    """

    holder: str | None = None


class RevokeGrant(BaseModel):
    """
    Terminate a revocable grant, returning all untransferred units to the
    revoking admin (admin only)
    """

    holder: str
