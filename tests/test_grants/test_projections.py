"""Tests for the GrantBook projection"""

from tests.helpers import (
    START,
    TRUSTEE,
    assert_book_consistent,
    book_with_grants,
    make_event,
    new_grant_payload,
)
from vesting_trustee.grants.projections import GrantBook


def unlocked(holder: str, value: int, total: int, version: int):
    return make_event(
        "TokensUnlocked",
        {"holder": holder, "value": value, "transferred_total": total, "unlocked_at": START},
        version=version,
        actor_id=holder,
    )


def revoked(holder: str, refund: int, transferred: int, version: int):
    return make_event(
        "GrantRevoked",
        {
            "holder": holder,
            "refund": refund,
            "transferred": transferred,
            "revoked_by": "admin",
            "revoked_at": START,
        },
        version=version,
    )


def test_empty_book() -> None:
    book = GrantBook(TRUSTEE)

    assert book.total_vesting == 0
    assert book.version == 0
    assert book.list_all() == []
    assert book.get("alice") is None
    assert book.get_grant("alice") is None


def test_new_grant_commits_value() -> None:
    book = book_with_grants(
        TRUSTEE,
        new_grant_payload(holder="bob", value=300),
        new_grant_payload(holder="alice", value=700),
    )

    assert book.total_vesting == 1000
    assert book.version == 2
    assert [g["holder"] for g in book.list_all()] == ["alice", "bob"]
    grant = book.get_grant("alice")
    assert grant.value == 700
    assert grant.transferred == 0
    assert grant.granted_by == "admin"
    assert_book_consistent(book)


def test_unlock_reduces_total_vesting() -> None:
    book = book_with_grants(TRUSTEE, new_grant_payload(value=1000))
    book.apply_event(unlocked("alice", 83, 83, version=2))
    book.apply_event(unlocked("alice", 83, 166, version=3))

    assert book.get("alice")["transferred"] == 166
    assert book.get("alice")["version"] == 3
    assert book.total_vesting == 834
    assert_book_consistent(book)


def test_revoke_removes_grant_and_refund_from_total() -> None:
    book = book_with_grants(
        TRUSTEE,
        new_grant_payload(holder="alice", value=1000),
        new_grant_payload(holder="bob", value=500),
    )
    book.apply_event(unlocked("alice", 200, 200, version=3))
    book.apply_event(revoked("alice", 800, 200, version=4))

    assert book.get("alice") is None
    assert book.is_revoked("alice")
    assert book.revoked["alice"]["refund"] == 800
    assert book.total_vesting == 500
    assert_book_consistent(book)


def test_closing_exhausted_grant() -> None:
    book = book_with_grants(TRUSTEE, new_grant_payload(value=100))
    book.apply_event(unlocked("alice", 100, 100, version=2))
    book.apply_event(
        make_event(
            "GrantClosed",
            {"holder": "alice", "transferred": 100, "closed_by": "admin", "closed_at": START},
            version=3,
        )
    )

    assert book.get("alice") is None
    assert book.is_revoked("alice")
    assert book.revoked["alice"]["refund"] == 0
    assert book.total_vesting == 0


def test_regrant_clears_revoked_mark() -> None:
    book = book_with_grants(TRUSTEE, new_grant_payload(value=100))
    book.apply_event(revoked("alice", 100, 0, version=2))
    book.apply_event(make_event("NewGrant", new_grant_payload(value=50), version=3))

    assert not book.is_revoked("alice")
    assert book.get("alice")["value"] == 50
    assert book.total_vesting == 50


def test_ignores_other_streams() -> None:
    book = GrantBook(TRUSTEE)
    book.apply_event(
        make_event("NewGrant", new_grant_payload(), version=1, stream_id="other-trustee")
    )

    assert book.get("alice") is None
    assert book.version == 0


def test_rebuild_is_deterministic() -> None:
    events = [
        make_event("NewGrant", new_grant_payload(holder="alice", value=1000), version=1),
        make_event("NewGrant", new_grant_payload(holder="bob", value=500), version=2),
        unlocked("alice", 250, 250, version=3),
        revoked("bob", 500, 0, version=4),
    ]

    first = GrantBook(TRUSTEE)
    second = GrantBook(TRUSTEE)
    for event in events:
        first.apply_event(event)
        second.apply_event(event)

    assert first.grants == second.grants
    assert first.revoked == second.revoked
    assert first.total_vesting == second.total_vesting == 750
