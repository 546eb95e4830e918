"""
Annual schedule generator - yearly buckets of a depleting allocation

Each year releases a fixed percentage of whatever is still locked; the last
year releases the remainder. With the defaults (60 years, 20%):

    bucket[y]  = remaining_y * 20 // 100      for y < 59
    bucket[59] = remaining_59

Everything is integer arithmetic, so the buckets sum to the allocation
exactly and no unit is lost to rounding. The first 59 buckets shrink year by
year; the final bucket, holding the whole remainder, is about four times the
one before it.

The schedule is computed once and then treated as a constant.
"""

from pydantic import BaseModel, model_validator

from vesting_trustee.kernel.config import KIN_FOUNDATION_ALLOCATION

SCHEDULE_YEARS = 60
ANNUAL_INSTALLMENT_PERCENT = 20


def generate_annual_schedule(
    allocation: int,
    years: int = SCHEDULE_YEARS,
    installment_percent: int = ANNUAL_INSTALLMENT_PERCENT,
) -> list[int]:
    """
    Split an allocation into yearly buckets

    Args:
        allocation: Total units to release
        years: Number of buckets
        installment_percent: Share of the remaining units released per year

    Returns:
        List of `years` bucket amounts summing to allocation

    Raises:
        ValueError: On a negative allocation, years < 1 or a percent outside 1..100
    """
    if allocation < 0:
        raise ValueError(f"Allocation must not be negative, got {allocation}")
    if years < 1:
        raise ValueError(f"Schedule needs at least one year, got {years}")
    if not 1 <= installment_percent <= 100:
        raise ValueError(
            f"Installment percent must be between 1 and 100, got {installment_percent}"
        )

    buckets = []
    remaining = allocation
    for _ in range(years - 1):
        bucket = remaining * installment_percent // 100
        buckets.append(bucket)
        remaining -= bucket
    buckets.append(remaining)

    return buckets


class AnnualSchedule(BaseModel):
    """
    A validated annual schedule

    Attributes:
        allocation: Total units released over the schedule
        installment_percent: Yearly depletion rate the buckets were built with
        buckets: Units released in each year, in order
    """

    allocation: int
    installment_percent: int = ANNUAL_INSTALLMENT_PERCENT
    buckets: list[int]

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def check_buckets(self) -> "AnnualSchedule":
        if not self.buckets:
            raise ValueError("Schedule must have at least one bucket")
        if any(bucket < 0 for bucket in self.buckets):
            raise ValueError("Schedule buckets must not be negative")
        if sum(self.buckets) != self.allocation:
            raise ValueError(
                f"Schedule buckets sum to {sum(self.buckets)}, "
                f"expected {self.allocation}"
            )
        depleting = self.buckets[:-1]
        if any(a < b for a, b in zip(depleting, depleting[1:])):
            raise ValueError("Schedule buckets must not increase before the final year")
        return self

    @classmethod
    def generate(
        cls,
        allocation: int,
        years: int = SCHEDULE_YEARS,
        installment_percent: int = ANNUAL_INSTALLMENT_PERCENT,
    ) -> "AnnualSchedule":
        return cls(
            allocation=allocation,
            installment_percent=installment_percent,
            buckets=generate_annual_schedule(allocation, years, installment_percent),
        )

    @property
    def years(self) -> int:
        return len(self.buckets)


KIN_FOUNDATION_SCHEDULE = AnnualSchedule.generate(KIN_FOUNDATION_ALLOCATION)
