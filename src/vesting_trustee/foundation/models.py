"""
Foundation grant model - the single annual-schedule grant

The foundation trustee holds exactly one grant for exactly one
beneficiary. Its value is the whole allocation of the schedule; only its
start time is chosen when it is granted.
"""

from typing import Any

from pydantic import BaseModel, Field


class FoundationGrant(BaseModel):
    """
    Attributes:
        beneficiary: The only identity that can unlock
        start_time: Start of schedule year 0
        allocation: Total units (sum of the schedule buckets)
        transferred: Units already paid out
        granted_by: Admin who made the grant
        granted_at: When the grant was made
    """

    beneficiary: str
    start_time: int = Field(..., gt=0)
    allocation: int = Field(..., gt=0)
    transferred: int = Field(default=0, ge=0)
    granted_by: str
    granted_at: int

    @property
    def outstanding(self) -> int:
        return self.allocation - self.transferred

    @property
    def exhausted(self) -> bool:
        return self.transferred == self.allocation

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "FoundationGrant":
        return cls(**{k: v for k, v in record.items() if k in cls.model_fields})
