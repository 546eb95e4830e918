"""
Vesting Trustee - Event-sourced accounting for time-locked token grants

Holds tokens in custody and releases them to holders as they vest: either
on a cliff/linear/installment schedule per grant, or on a 60-year annual
depletion schedule for a single foundation allocation. Admins can revoke,
reclaiming everything not yet unlocked.
"""

from vesting_trustee.trustee import VestingTrustee

__version__ = "0.1.0"
__all__ = ["VestingTrustee", "__version__"]
