"""
Tests for grant invariants

Each check raises its own error with the offending values attached.
"""

import pytest

from tests.helpers import START, TRUSTEE, book_with_grants, make_event, new_grant_payload
from vesting_trustee.grants.invariants import (
    validate_admin,
    validate_caller_is_holder,
    validate_custody,
    validate_grant_exists,
    validate_grant_value,
    validate_holder,
    validate_no_existing_grant,
    validate_revocable,
    validate_vesting_window,
)
from vesting_trustee.grants.projections import GrantBook
from vesting_trustee.kernel.authority import StaticAuthority
from vesting_trustee.kernel.errors import (
    CliffAfterEnd,
    CliffBeforeStart,
    GrantAlreadyExists,
    GrantNotFound,
    GrantNotRevocable,
    GrantRevoked,
    InstallmentExceedsVestingPeriod,
    InsufficientCustody,
    InvalidHolder,
    NotAdmin,
    NotGrantHolder,
    ValidationError,
    ZeroGrantValue,
    ZeroInstallmentLength,
)


def test_validate_admin() -> None:
    authority = StaticAuthority(["admin"])
    validate_admin("admin", authority, "create grants")

    with pytest.raises(NotAdmin) as exc_info:
        validate_admin("mallory", authority, "create grants")

    assert exc_info.value.caller == "mallory"
    assert exc_info.value.operation == "create grants"


@pytest.mark.parametrize("holder", [None, "", "   "])
def test_validate_holder_requires_identity(holder) -> None:
    with pytest.raises(InvalidHolder):
        validate_holder(holder, TRUSTEE)


def test_validate_holder_rejects_self_grant() -> None:
    with pytest.raises(InvalidHolder) as exc_info:
        validate_holder(TRUSTEE, TRUSTEE)

    assert exc_info.value.holder == TRUSTEE


@pytest.mark.parametrize("value", [0, -1])
def test_validate_grant_value(value: int) -> None:
    with pytest.raises(ZeroGrantValue):
        validate_grant_value(value)


def test_validate_vesting_window_accepts_valid_windows() -> None:
    validate_vesting_window(START, START, START + 100, 100)
    validate_vesting_window(START, START + 50, START + 100, 1)
    validate_vesting_window(START, START + 100, START + 100, 1)


def test_validate_vesting_window_accepts_instant_grant() -> None:
    validate_vesting_window(START, START, START, 1)
    validate_vesting_window(START, START, START, 1000)


def test_cliff_before_start() -> None:
    with pytest.raises(CliffBeforeStart) as exc_info:
        validate_vesting_window(START, START - 1, START + 100, 1)

    assert exc_info.value.start == START
    assert exc_info.value.cliff == START - 1


def test_cliff_after_end() -> None:
    with pytest.raises(CliffAfterEnd) as exc_info:
        validate_vesting_window(START, START + 101, START + 100, 1)

    assert exc_info.value.end == START + 100


@pytest.mark.parametrize("installment_length", [0, -1])
def test_zero_installment_length(installment_length: int) -> None:
    with pytest.raises(ZeroInstallmentLength):
        validate_vesting_window(START, START, START + 100, installment_length)


def test_installment_longer_than_period() -> None:
    with pytest.raises(InstallmentExceedsVestingPeriod) as exc_info:
        validate_vesting_window(START, START, START + 100, 101)

    assert exc_info.value.vesting_period == 100


def test_parameter_errors_share_a_base_class() -> None:
    with pytest.raises(ValidationError):
        validate_vesting_window(START, START - 1, START, 1)


def test_validate_no_existing_grant() -> None:
    book = book_with_grants(TRUSTEE, new_grant_payload(holder="alice"))

    validate_no_existing_grant("bob", book)
    with pytest.raises(GrantAlreadyExists):
        validate_no_existing_grant("alice", book)


def test_validate_custody_boundary() -> None:
    validate_custody(400, custody_balance=1000, total_vesting=600)

    with pytest.raises(InsufficientCustody) as exc_info:
        validate_custody(401, custody_balance=1000, total_vesting=600)

    assert exc_info.value.available == 400
    assert exc_info.value.value == 401


def test_validate_grant_exists_distinguishes_revoked() -> None:
    book = book_with_grants(TRUSTEE, new_grant_payload(holder="alice"))
    book.apply_event(
        make_event(
            "GrantRevoked",
            {
                "holder": "alice",
                "refund": 1000,
                "transferred": 0,
                "revoked_by": "admin",
                "revoked_at": START,
            },
            version=2,
        )
    )

    with pytest.raises(GrantRevoked):
        validate_grant_exists("alice", book)

    with pytest.raises(GrantNotFound) as exc_info:
        validate_grant_exists("bob", book)
    assert not isinstance(exc_info.value, GrantRevoked)


def test_validate_grant_exists_returns_record() -> None:
    book = book_with_grants(TRUSTEE, new_grant_payload(holder="alice", value=700))

    assert validate_grant_exists("alice", book)["value"] == 700


def test_validate_caller_is_holder() -> None:
    validate_caller_is_holder("alice", None)
    validate_caller_is_holder("alice", "alice")

    with pytest.raises(NotGrantHolder):
        validate_caller_is_holder("bob", "alice")


def test_validate_revocable() -> None:
    book = GrantBook(TRUSTEE)
    book.apply_event(make_event("NewGrant", new_grant_payload(revocable=False), version=1))

    with pytest.raises(GrantNotRevocable):
        validate_revocable(book.get("alice"))
