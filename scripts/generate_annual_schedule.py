#!/usr/bin/env python3
"""
Generate the foundation annual schedule

Prints the yearly buckets as a JSON array, one integer per year. The default
is the foundation allocation (60% of ten trillion tokens at 18 decimals)
over 60 years at 20% of the remainder per year.

Run:
    python scripts/generate_annual_schedule.py
    python scripts/generate_annual_schedule.py --allocation 1000000 --years 10
"""

import json
from typing import Optional

import typer
from typing_extensions import Annotated

from vesting_trustee.foundation.schedule import (
    ANNUAL_INSTALLMENT_PERCENT,
    SCHEDULE_YEARS,
    AnnualSchedule,
)
from vesting_trustee.kernel.config import KIN_FOUNDATION_ALLOCATION


def main(
    allocation: Annotated[
        int, typer.Option("--allocation", help="Allocation in base units")
    ] = KIN_FOUNDATION_ALLOCATION,
    years: Annotated[
        int, typer.Option("--years", help="Number of yearly buckets")
    ] = SCHEDULE_YEARS,
    percent: Annotated[
        int, typer.Option("--percent", help="Yearly release percentage")
    ] = ANNUAL_INSTALLMENT_PERCENT,
    indent: Annotated[
        Optional[int], typer.Option("--indent", help="Pretty-print with this indent")
    ] = None,
) -> None:
    """Print the annual schedule buckets as JSON"""
    schedule = AnnualSchedule.generate(allocation, years, percent)
    typer.echo(json.dumps(schedule.buckets, indent=indent))


if __name__ == "__main__":
    typer.run(main)
