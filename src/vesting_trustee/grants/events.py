"""
Grant Module Events - Facts recorded for the generic trustee

NewGrant, TokensUnlocked and GrantRevoked are also the notifications handed
back to callers. They are only ever emitted with a non-zero amount. Revoking
a grant that was already paid out in full records GrantClosed instead, which
carries no amount.
"""

from pydantic import BaseModel


class NewGrant(BaseModel):
    """A grant was admitted; its value is now committed custody"""

    grant_id: str
    granter: str
    holder: str
    value: int
    start: int
    cliff: int
    end: int
    installment_length: int
    revocable: bool
    granted_at: int


class TokensUnlocked(BaseModel):
    """Vested units moved from custody to the holder"""

    holder: str
    value: int
    transferred_total: int
    unlocked_at: int


class GrantRevoked(BaseModel):
    """
    A grant was terminated early

    refund is everything not yet transferred, vested or not. It went to the
    revoking admin.
    """

    holder: str
    refund: int
    transferred: int
    revoked_by: str
    revoked_at: int


class GrantClosed(BaseModel):
    """An exhausted grant was revoked; nothing was left to refund"""

    holder: str
    transferred: int
    closed_by: str
    closed_at: int
