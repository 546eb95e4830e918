"""
Generic vesting calculator - cliff, linear vesting and installments

The vested amount is a step function of time. Steps fall on whole
installments counted from start; nothing vests before the cliff and the full
value has vested from end onwards, however far in the future "now" is.

Rounding is floor division, applied after multiplying:

    installments = (now - start) // installment_length
    elapsed      = min(installments * installment_length, end - start)
    vested       = value * elapsed // (end - start)

Python ints are arbitrary precision, so value * elapsed never overflows.
"""

from vesting_trustee.grants.models import Grant


def calculate_vested_tokens(
    value: int,
    start: int,
    cliff: int,
    end: int,
    installment_length: int,
    now: int,
) -> int:
    """
    Units of a grant vested at time now

    Args:
        value: Total grant value
        start: Vesting start
        cliff: No vesting before this time
        end: Full vesting from this time
        installment_length: Step size in seconds
        now: Time to evaluate at

    Returns:
        Vested units, between 0 and value
    """
    if now < cliff:
        return 0

    if now >= end:
        return value

    installments = (now - start) // installment_length
    elapsed = min(installments * installment_length, end - start)

    return value * elapsed // (end - start)


def vested_amount(grant: Grant, now: int) -> int:
    """Units of grant vested at time now"""
    return calculate_vested_tokens(
        grant.value,
        grant.start,
        grant.cliff,
        grant.end,
        grant.installment_length,
        now,
    )


def unlockable_amount(grant: Grant, now: int) -> int:
    """
    Units the holder would receive from an unlock at time now

    Never negative: a clock that runs backwards yields 0, not a clawback.
    """
    return max(vested_amount(grant, now) - grant.transferred, 0)
