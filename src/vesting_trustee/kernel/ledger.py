"""
Asset ledger - where custodied tokens actually live

The trustee does not own a token implementation. It holds its custody
balance on an external ledger and asks that ledger to move units when a
holder unlocks or an admin revokes. A transfer either happens completely or
reports failure; it never half-moves.

Two implementations are provided: an in-memory ledger for tests and
embedding, and a SQLite ledger that shares the trustee's database file so
the CLI keeps balances between invocations. Balances are Python ints and are
stored as TEXT, since 18-decimal supplies do not fit in 64 bits.
"""

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Protocol

from vesting_trustee.kernel.logging import get_logger
from vesting_trustee.kernel.retry import retry_on_sqlite_lock

logger = get_logger(__name__)


class AssetLedger(Protocol):
    """Balance lookups and transfers on the underlying asset"""

    def balance_of(self, identity: str) -> int:
        ...

    def transfer(self, sender: str, to: str, units: int) -> bool:
        """Move units from sender to to; False if the move cannot happen"""
        ...


class InMemoryLedger:
    """Dictionary-backed ledger"""

    def __init__(self, balances: dict[str, int] | None = None) -> None:
        self.balances: dict[str, int] = dict(balances or {})

    def balance_of(self, identity: str) -> int:
        return self.balances.get(identity, 0)

    def mint(self, to: str, units: int) -> None:
        """Create units out of thin air (funding custody in tests and demos)"""
        if units < 0:
            raise ValueError(f"Cannot mint a negative amount: {units}")
        self.balances[to] = self.balance_of(to) + units

    def transfer(self, sender: str, to: str, units: int) -> bool:
        if units < 0 or self.balance_of(sender) < units:
            return False
        self.balances[sender] = self.balance_of(sender) - units
        self.balances[to] = self.balance_of(to) + units
        return True


class SQLiteLedger:
    """
    SQLite-backed ledger

    Each transfer runs in its own IMMEDIATE transaction so the balance check
    and both updates see one consistent snapshot.
    """

    def __init__(self, db_path: str | Path) -> None:
        self.db_path = Path(db_path)
        with self._connect() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS balances (
                    identity TEXT PRIMARY KEY,
                    units TEXT NOT NULL
                )
            """)
            conn.commit()

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        conn = sqlite3.connect(str(self.db_path), isolation_level=None)
        try:
            yield conn
        finally:
            conn.close()

    def _balance(self, conn: sqlite3.Connection, identity: str) -> int:
        row = conn.execute(
            "SELECT units FROM balances WHERE identity = ?", (identity,)
        ).fetchone()
        return int(row[0]) if row else 0

    def _set_balance(self, conn: sqlite3.Connection, identity: str, units: int) -> None:
        conn.execute(
            "INSERT INTO balances (identity, units) VALUES (?, ?) "
            "ON CONFLICT(identity) DO UPDATE SET units = excluded.units",
            (identity, str(units)),
        )

    @retry_on_sqlite_lock()
    def balance_of(self, identity: str) -> int:
        with self._connect() as conn:
            return self._balance(conn, identity)

    def mint(self, to: str, units: int) -> None:
        """Create units out of thin air (funding custody from the CLI)"""
        if units < 0:
            raise ValueError(f"Cannot mint a negative amount: {units}")
        with self._connect() as conn:
            conn.execute("BEGIN IMMEDIATE")
            try:
                self._set_balance(conn, to, self._balance(conn, to) + units)
                conn.execute("COMMIT")
            except sqlite3.Error:
                conn.execute("ROLLBACK")
                raise

    def transfer(self, sender: str, to: str, units: int) -> bool:
        with self._connect() as conn:
            conn.execute("BEGIN IMMEDIATE")
            try:
                sender_balance = self._balance(conn, sender)
                if units < 0 or sender_balance < units:
                    conn.execute("ROLLBACK")
                    logger.warning(
                        "Ledger transfer refused",
                        reason="insufficient balance" if units >= 0 else "negative amount",
                    )
                    return False
                self._set_balance(conn, sender, sender_balance - units)
                self._set_balance(conn, to, self._balance(conn, to) + units)
                conn.execute("COMMIT")
                return True
            except sqlite3.Error:
                conn.execute("ROLLBACK")
                raise
