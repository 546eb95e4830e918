"""
Time provider abstraction for deterministic testing

All vesting arithmetic works on integer unix seconds. Handlers and
calculators take "now" as an explicit argument; a TimeProvider is only
consulted by the facade when a caller does not supply one.
"""

import time
from typing import Protocol

MINUTE = 60
HOUR = 60 * MINUTE
DAY = 24 * HOUR


class TimeProvider(Protocol):
    """Protocol for time providers - allows deterministic testing"""

    def now(self) -> int:
        """Return current unix time in seconds"""
        ...


class RealTimeProvider:
    """Production time provider using system clock"""

    def now(self) -> int:
        return int(time.time())


class TestTimeProvider:
    """
    Controllable time provider for deterministic tests

    Time never moves on its own. Tests can jump it forward by any amount,
    including far beyond the end of every schedule.
    """

    __test__ = False  # not a pytest test class

    def __init__(self, initial_time: int = 0) -> None:
        """
        Initialize with optional fixed time

        Args:
            initial_time: Starting unix time (defaults to the epoch)
        """
        self._current_time = initial_time

    def now(self) -> int:
        return self._current_time

    def set_time(self, timestamp: int) -> None:
        """Set current time to specific value"""
        self._current_time = timestamp

    def advance_seconds(self, seconds: int) -> None:
        """Advance time by specified seconds"""
        self._current_time += seconds

    def advance_days(self, days: int) -> None:
        """Advance time by specified days"""
        self._current_time += days * DAY


default_time_provider: TimeProvider = RealTimeProvider()
