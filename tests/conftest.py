"""
Pytest configuration and shared fixtures

Files named conftest.py are discovered automatically; the fixtures below are
available to every test module in this directory and its subdirectories.
"""

import tempfile
from pathlib import Path
from typing import Iterator

import pytest

from tests.helpers import ADMIN, FOUNDATION_TRUSTEE, START, TRUSTEE
from vesting_trustee.foundation.schedule import AnnualSchedule
from vesting_trustee.grants.projections import GrantBook
from vesting_trustee.kernel.authority import StaticAuthority
from vesting_trustee.kernel.config import TrusteeConfig
from vesting_trustee.kernel.event_store import SQLiteEventStore
from vesting_trustee.kernel.ledger import InMemoryLedger
from vesting_trustee.kernel.time import TestTimeProvider
from vesting_trustee.trustee import VestingTrustee


@pytest.fixture
def temp_db() -> Iterator[Path]:
    """Provide a temporary database file that's cleaned up after test"""
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = Path(f.name)

    yield db_path

    # Cleanup (WAL mode leaves two sidecar files behind)
    for path in (db_path, Path(f"{db_path}-wal"), Path(f"{db_path}-shm")):
        if path.exists():
            path.unlink()


@pytest.fixture
def event_store(temp_db: Path) -> SQLiteEventStore:
    """Provide a fresh event store for each test"""
    return SQLiteEventStore(temp_db)


@pytest.fixture
def test_time() -> TestTimeProvider:
    """
    Provide a controllable clock for deterministic tests

    Starts at 2025-01-15 12:00:00 UTC (unix seconds).
    """
    return TestTimeProvider(START)


@pytest.fixture
def authority() -> StaticAuthority:
    """Single admin, matching the default configuration"""
    return StaticAuthority([ADMIN])


@pytest.fixture
def small_config() -> TrusteeConfig:
    """
    Configuration with a small foundation allocation

    Keeps foundation amounts readable: 1,000,000 units over 60 years at 20%.
    """
    return TrusteeConfig(foundation_allocation=1_000_000)


@pytest.fixture
def small_schedule(small_config: TrusteeConfig) -> AnnualSchedule:
    return AnnualSchedule.generate(small_config.foundation_allocation)


@pytest.fixture
def grant_book() -> GrantBook:
    return GrantBook(TRUSTEE)


@pytest.fixture
def ledger(small_config: TrusteeConfig) -> InMemoryLedger:
    """
    Ledger with both trustees funded

    The generic trustee holds 10,000 units; the foundation trustee holds
    exactly its allocation.
    """
    return InMemoryLedger(
        {
            TRUSTEE: 10_000,
            FOUNDATION_TRUSTEE: small_config.foundation_allocation,
        }
    )


@pytest.fixture
def trustee(
    temp_db: Path,
    ledger: InMemoryLedger,
    small_config: TrusteeConfig,
    test_time: TestTimeProvider,
) -> VestingTrustee:
    """Provide a trustee facade over a fresh database and a funded ledger"""
    return VestingTrustee(temp_db, ledger, small_config, time_provider=test_time)
