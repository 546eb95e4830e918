"""
Trustee configuration - the fixed parameters of a deployment

The configuration names the trustee identities, the admins and the
foundation allocation with its depletion schedule. These values shape every
grant the trustee will ever admit, so they are validated up front and kept
next to the event log rather than re-entered per command.
"""

import json
from pathlib import Path

from pydantic import BaseModel, Field, model_validator

from vesting_trustee.kernel.time import DAY

# 60% of ten trillion tokens at 18 decimals
KIN_FOUNDATION_ALLOCATION = 10**13 * 10**18 * 60 // 100


class TrusteeConfig(BaseModel):
    """
    Deployment parameters for the generic and foundation trustees

    The schedule parameters (years, percent, day and year length) are only
    read by the foundation variant; the generic calculator works purely off
    each grant's own start, cliff, end and installment length.
    """

    trustee_id: str = Field(
        default="vesting-trustee",
        min_length=1,
        description="Custody identity of the generic trustee (also its stream id)",
    )

    foundation_trustee_id: str = Field(
        default="foundation-trustee",
        min_length=1,
        description="Custody identity of the foundation trustee (also its stream id)",
    )

    foundation_beneficiary: str = Field(
        default="foundation",
        min_length=1,
        description="The single holder of the foundation allocation",
    )

    foundation_allocation: int = Field(
        default=KIN_FOUNDATION_ALLOCATION,
        gt=0,
        description="Total units released by the annual schedule",
    )

    schedule_years: int = Field(
        default=60,
        ge=1,
        le=1000,
        description="Number of yearly buckets in the annual schedule",
    )

    annual_installment_percent: int = Field(
        default=20,
        ge=1,
        le=100,
        description="Share of the remaining allocation released each year",
    )

    day_length: int = Field(
        default=DAY,
        ge=1,
        description="Seconds per day for the foundation day counter",
    )

    days_in_year: int = Field(
        default=365,
        ge=1,
        description="Days per schedule year",
    )

    admins: list[str] = Field(
        default_factory=lambda: ["admin"],
        min_length=1,
        description="Identities allowed to create and revoke grants",
    )

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def identities_are_distinct(self) -> "TrusteeConfig":
        """Each trustee owns its stream and custody balance"""
        if self.trustee_id == self.foundation_trustee_id:
            raise ValueError("trustee_id and foundation_trustee_id must differ")
        if self.foundation_beneficiary in (self.trustee_id, self.foundation_trustee_id):
            raise ValueError("foundation_beneficiary cannot be a trustee identity")
        return self

    @property
    def year_length(self) -> int:
        """Seconds per schedule year"""
        return self.day_length * self.days_in_year

    def save(self, path: str | Path) -> None:
        """Write the configuration as JSON"""
        Path(path).write_text(json.dumps(self.model_dump(), indent=2) + "\n")

    @classmethod
    def load(cls, path: str | Path) -> "TrusteeConfig":
        """Read a configuration written by save()"""
        return cls.model_validate(json.loads(Path(path).read_text()))
