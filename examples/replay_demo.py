#!/usr/bin/env python3
"""
Event Replay Demonstration - Deterministic State Reconstruction

The event log is the source of truth. Grant books are only derived from it,
so a trustee opened on the same database rebuilds exactly the same state.

Scenario:
- Fund custody and grant 1000 units to alice (cliff after 1/12 of a year)
- Unlock at the cliff, then revoke
- Grant to bob and let half the period pass
- Open a second trustee on the same database
- Verify both trustees agree on every grant and on total vesting

Run:
    python examples/replay_demo.py
"""

import json
import tempfile
from pathlib import Path

from vesting_trustee import VestingTrustee
from vesting_trustee.kernel.ledger import InMemoryLedger
from vesting_trustee.kernel.time import DAY, TestTimeProvider

MONTH = 30 * DAY
YEAR = 12 * MONTH


def print_section(title: str) -> None:
    """Print section header"""
    print(f"\n{'='*70}")
    print(f"  {title}")
    print(f"{'='*70}\n")


def serialize_state(trustee: VestingTrustee) -> dict:
    """Capture current grant book state for comparison"""
    return {
        "grants": [grant.model_dump() for grant in trustee.list_grants()],
        "total_vesting": trustee.total_vesting(),
        "revoked": sorted(trustee.grant_book.revoked),
    }


def main() -> None:
    """Run replay demonstration"""
    print_section("Event Replay Demonstration - Deterministic Rebuilds")

    with tempfile.TemporaryDirectory() as tmpdir:
        db_path = Path(tmpdir) / "trustee.db"
        start = 1_500_000_000
        clock = TestTimeProvider(start)
        ledger = InMemoryLedger()
        ledger.mint("vesting-trustee", 10_000)

        trustee = VestingTrustee(db_path, ledger, time_provider=clock)

        print("Step 1: grant 1000 to alice, unlock at the cliff, revoke")
        trustee.grant("alice", 1000, start, start + MONTH, start + YEAR, 1, caller="admin")
        clock.advance_seconds(MONTH)
        for event in trustee.unlock_vested_tokens(caller="alice"):
            print(f"  {event.event_type}: {event.payload['value']}")
        for event in trustee.revoke("alice", caller="admin"):
            print(f"  {event.event_type}: refund {event.payload['refund']}")

        print("\nStep 2: grant 3000 to bob and wait half a year")
        now = clock.now()
        trustee.grant("bob", 3000, now, now, now + YEAR, DAY, caller="admin")
        clock.advance_seconds(YEAR // 2)
        print(f"  bob vested: {trustee.vested_tokens('bob')}")

        before = serialize_state(trustee)
        print(f"\nEvents in store: {trustee.event_store.count_events()}")

        print("\nStep 3: open a fresh trustee on the same database")
        replayed = VestingTrustee(db_path, ledger, time_provider=clock)
        after = serialize_state(replayed)

        same = json.dumps(before, sort_keys=True) == json.dumps(after, sort_keys=True)
        print(f"  State identical after replay: {same}")
        print(f"  Ledger: alice={ledger.balance_of('alice')} admin={ledger.balance_of('admin')}")


if __name__ == "__main__":
    main()
