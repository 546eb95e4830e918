"""
Foundation Module - one large allocation on a 60-year depleting schedule

Each year a fifth of the remaining allocation vests, day by day. The single
beneficiary unlocks; an admin may revoke once, taking back everything not
yet unlocked.
"""

from vesting_trustee.foundation.calculator import calculate_foundation_vested_tokens
from vesting_trustee.foundation.models import FoundationGrant
from vesting_trustee.foundation.projections import FoundationLedger
from vesting_trustee.foundation.schedule import (
    KIN_FOUNDATION_SCHEDULE,
    AnnualSchedule,
    generate_annual_schedule,
)

__all__ = [
    "AnnualSchedule",
    "FoundationGrant",
    "FoundationLedger",
    "KIN_FOUNDATION_SCHEDULE",
    "calculate_foundation_vested_tokens",
    "generate_annual_schedule",
]
