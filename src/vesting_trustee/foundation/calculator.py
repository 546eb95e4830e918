"""
Annual-schedule vesting calculator

Within schedule year y the bucket for that year vests day by day:

    vested = sum(buckets[:y]) + buckets[y] * days_elapsed_in_year // days_in_year

Only whole days count; hours and minutes into the current day are ignored.
Once every year has passed the whole allocation has vested.
"""

from collections.abc import Sequence

from vesting_trustee.kernel.time import DAY


def calculate_foundation_vested_tokens(
    buckets: Sequence[int],
    start_time: int,
    now: int,
    day_length: int = DAY,
    days_in_year: int = 365,
) -> int:
    """
    Units of the annual schedule vested at time now

    Args:
        buckets: Yearly release amounts
        start_time: When year 0 begins
        now: Time to evaluate at
        day_length: Seconds per day
        days_in_year: Days per schedule year

    Returns:
        Vested units, between 0 and sum(buckets)
    """
    if now < start_time:
        return 0

    year_length = day_length * days_in_year
    year = (now - start_time) // year_length
    if year >= len(buckets):
        return sum(buckets)

    days = (now - start_time - year * year_length) // day_length

    return sum(buckets[:year]) + buckets[year] * days // days_in_year
