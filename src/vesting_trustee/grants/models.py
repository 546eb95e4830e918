"""
Grant Domain Model - a time-locked promise of tokens to one holder

A grant vests linearly between start and end, in steps of
installment_length, with nothing vested before the cliff. The holder pulls
vested tokens out with unlock; transferred records how much has left custody.

Lifecycle:
- created by an admin (transferred = 0)
- transferred only ever grows, up to value
- removed on revocation; an exhausted grant (transferred == value) stays
  on the books until revoked
"""

from typing import Any

from pydantic import BaseModel, Field


class Grant(BaseModel):
    """
    A single holder's grant

    Attributes:
        grant_id: Unique identifier of this grant
        holder: Identity the tokens are promised to
        value: Total units promised
        start: Vesting start (unix seconds)
        cliff: Nothing vests before this time
        end: Everything has vested at this time
        installment_length: Vesting step size in seconds
        transferred: Units already paid out
        revocable: Whether an admin may revoke the grant
        granted_by: Admin who created the grant
        granted_at: When the grant was created
    """

    grant_id: str
    holder: str
    value: int = Field(..., gt=0)
    start: int
    cliff: int
    end: int
    installment_length: int = Field(..., gt=0)
    transferred: int = Field(default=0, ge=0)
    revocable: bool = True
    granted_by: str
    granted_at: int

    @property
    def outstanding(self) -> int:
        """Units still held in custody for this grant"""
        return self.value - self.transferred

    @property
    def exhausted(self) -> bool:
        return self.transferred == self.value

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "Grant":
        """Build from a GrantBook record (ignores projection bookkeeping)"""
        return cls(**{k: v for k, v in record.items() if k in cls.model_fields})
