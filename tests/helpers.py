"""
Test Helper Functions - Builders and Assertions

Reusable builders for grant records, commands and events, plus assertions
for the accounting identities every trustee state must satisfy.
"""

from typing import Any

from vesting_trustee.grants.commands import CreateGrant
from vesting_trustee.grants.projections import GrantBook
from vesting_trustee.kernel.events import Event, create_event
from vesting_trustee.kernel.ids import generate_id
from vesting_trustee.kernel.ledger import InMemoryLedger
from vesting_trustee.kernel.time import DAY

# 2025-01-15 12:00:00 UTC
START = 1_736_942_400

MONTH = 30 * DAY
YEAR = 12 * MONTH

ADMIN = "admin"
TRUSTEE = "vesting-trustee"
FOUNDATION_TRUSTEE = "foundation-trustee"
BENEFICIARY = "foundation"


def create_grant_command(
    holder: str = "alice",
    value: int = 1000,
    start: int = START,
    cliff: int = START + MONTH,
    end: int = START + YEAR,
    installment_length: int = 1,
    revocable: bool = True,
) -> CreateGrant:
    """
    Builder for CreateGrant commands

    Defaults to a 1000-unit grant over a 12-month year with a one-month
    cliff and per-second installments.
    """
    return CreateGrant(
        holder=holder,
        value=value,
        start=start,
        cliff=cliff,
        end=end,
        installment_length=installment_length,
        revocable=revocable,
    )


def grant_record(
    holder: str = "alice",
    value: int = 1000,
    start: int = START,
    cliff: int = START + MONTH,
    end: int = START + YEAR,
    installment_length: int = 1,
    transferred: int = 0,
    revocable: bool = True,
) -> dict[str, Any]:
    """Builder for GrantBook records"""
    return {
        "grant_id": generate_id(),
        "holder": holder,
        "value": value,
        "start": start,
        "cliff": cliff,
        "end": end,
        "installment_length": installment_length,
        "transferred": transferred,
        "revocable": revocable,
        "granted_by": ADMIN,
        "granted_at": start,
        "version": 1,
    }


def make_event(
    event_type: str,
    payload: dict[str, Any],
    version: int,
    stream_id: str = TRUSTEE,
    stream_type: str = "trustee",
    occurred_at: int = START,
    actor_id: str = ADMIN,
    command_id: str | None = None,
) -> Event:
    """Builder for events with sensible defaults"""
    return create_event(
        event_id=generate_id(),
        stream_id=stream_id,
        stream_type=stream_type,
        event_type=event_type,
        occurred_at=occurred_at,
        command_id=command_id or generate_id(),
        actor_id=actor_id,
        payload=payload,
        version=version,
    )


def new_grant_payload(
    holder: str = "alice",
    value: int = 1000,
    start: int = START,
    cliff: int = START + MONTH,
    end: int = START + YEAR,
    installment_length: int = 1,
    revocable: bool = True,
) -> dict[str, Any]:
    """Payload of a NewGrant event as handlers emit it"""
    return {
        "grant_id": generate_id(),
        "granter": ADMIN,
        "holder": holder,
        "value": value,
        "start": start,
        "cliff": cliff,
        "end": end,
        "installment_length": installment_length,
        "revocable": revocable,
        "granted_at": start,
    }


def book_with_grants(trustee_id: str, *payloads: dict[str, Any]) -> GrantBook:
    """GrantBook with one NewGrant applied per payload"""
    book = GrantBook(trustee_id)
    for version, payload in enumerate(payloads, start=1):
        book.apply_event(make_event("NewGrant", payload, version, stream_id=trustee_id))
    return book


def assert_conservation(
    ledger: InMemoryLedger,
    identities: list[str],
    expected_total: int,
) -> None:
    """
    Assert that no unit was created or destroyed

    Args:
        ledger: Ledger to inspect
        identities: Every identity that may hold units
        expected_total: Units minted at setup
    """
    total = sum(ledger.balance_of(identity) for identity in identities)
    assert total == expected_total, f"Ledger holds {total}, expected {expected_total}"


def assert_book_consistent(book: GrantBook) -> None:
    """total_vesting must equal the sum of value - transferred over all grants"""
    assert book.total_vesting == book.outstanding_sum()
    for grant in book.grants.values():
        assert 0 <= grant["transferred"] <= grant["value"]
