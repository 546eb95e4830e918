"""
SQLite Event Store - Append-only event log for trustee streams

Every grant, unlock and revocation is recorded here first; grant books are
only ever derived from this log. The store provides:
- Append-only semantics (events never modified or deleted)
- Optimistic locking via stream versioning
- Idempotent appends per command_id and stream
- Global ordering by insertion position for replay

Token amounts can exceed 64 bits (the foundation allocation is 6e30 base
units), so they live in the JSON payload and occurred_at is stored as TEXT.
Nothing numeric that can grow without bound goes into an INTEGER column.
"""

import json
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from vesting_trustee.kernel.errors import (
    CommandIdempotencyViolation,
    EventStoreError,
    StreamVersionConflict,
)
from vesting_trustee.kernel.events import Event
from vesting_trustee.kernel.retry import retry_on_sqlite_lock

_EVENT_COLUMNS = """
    event_id, stream_id, stream_type, version,
    command_id, event_type, occurred_at, actor_id, payload_json
"""


class SQLiteEventStore:
    """
    SQLite-based event store with append-only semantics

    Uses WAL (Write-Ahead Logging) mode for crash safety and concurrent reads.

    Schema:
    - events table: append-only event log, position is the global order
    - Unique constraint: (stream_id, version)
    - Indices: stream, event_type, command_id
    """

    def __init__(self, db_path: str | Path) -> None:
        """
        Initialize event store with SQLite database

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = Path(db_path)
        self._initialize_schema()

    def _initialize_schema(self) -> None:
        """Create tables and indices if they don't exist"""
        with self._connect() as conn:
            conn.execute("PRAGMA journal_mode=WAL")
            conn.execute("PRAGMA synchronous=NORMAL")

            conn.execute("""
                CREATE TABLE IF NOT EXISTS events (
                    position INTEGER PRIMARY KEY AUTOINCREMENT,
                    event_id TEXT NOT NULL UNIQUE,
                    stream_id TEXT NOT NULL,
                    stream_type TEXT NOT NULL,
                    version INTEGER NOT NULL,
                    command_id TEXT NOT NULL,
                    event_type TEXT NOT NULL,
                    occurred_at TEXT NOT NULL,
                    actor_id TEXT,
                    payload_json TEXT NOT NULL,

                    UNIQUE(stream_id, version)
                )
            """)

            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_events_stream "
                "ON events(stream_id, version)"
            )
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_events_type ON events(event_type)"
            )
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_events_command ON events(command_id)"
            )

            conn.commit()

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        """Context manager for database connections"""
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        try:
            yield conn
        finally:
            conn.close()

    def append(
        self,
        stream_id: str,
        expected_version: int,
        events: list[Event],
    ) -> list[Event]:
        """
        Append events to a stream with optimistic locking

        All events are written in one transaction or not at all. The
        expected_version check is what serializes concurrent commands on the
        same trustee: whoever appends second has to reload and re-decide.

        Args:
            stream_id: Trustee stream identifier
            expected_version: Stream version the events were decided against
            events: Events to append (sequential versions after expected_version)

        Returns:
            The appended events, or the previously stored ones if this
            command_id was already appended to this stream

        Raises:
            StreamVersionConflict: If stream version doesn't match expected
            CommandIdempotencyViolation: If the command_id is used by another stream
            EventStoreError: On other database errors
        """
        if not events:
            return []

        command_id = events[0].command_id
        existing = self.get_events_by_command_id(command_id)
        existing_in_stream = [e for e in existing if e.stream_id == stream_id]
        if existing_in_stream:
            return existing_in_stream
        if existing:
            raise CommandIdempotencyViolation(
                command_id,
                f"Command {command_id} already processed for stream "
                f"{existing[0].stream_id}",
            )

        with self._connect() as conn:
            try:
                current_version = self._get_stream_version(conn, stream_id)
                if current_version != expected_version:
                    raise StreamVersionConflict(stream_id, expected_version, current_version)

                for event in events:
                    conn.execute(
                        f"""
                        INSERT INTO events ({_EVENT_COLUMNS})
                        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                        (
                            event.event_id,
                            event.stream_id,
                            event.stream_type,
                            event.version,
                            event.command_id,
                            event.event_type,
                            str(event.occurred_at),
                            event.actor_id,
                            json.dumps(event.payload),
                        ),
                    )

                conn.commit()
                return events

            except sqlite3.IntegrityError as e:
                conn.rollback()
                error_msg = str(e).lower()

                # Another writer got the same version in first
                if "stream_id" in error_msg and "version" in error_msg:
                    current = self._get_stream_version(conn, stream_id)
                    raise StreamVersionConflict(stream_id, expected_version, current) from e

                raise EventStoreError(f"Failed to append events: {e}") from e

            except StreamVersionConflict:
                raise

            except Exception as e:
                conn.rollback()
                raise EventStoreError(f"Unexpected error appending events: {e}") from e

    @retry_on_sqlite_lock()
    def load_stream(self, stream_id: str) -> list[Event]:
        """
        Load all events for a stream in version order

        Args:
            stream_id: Trustee stream identifier

        Returns:
            List of events in version order (empty if stream doesn't exist)
        """
        with self._connect() as conn:
            cursor = conn.execute(
                f"""
                SELECT {_EVENT_COLUMNS}
                FROM events
                WHERE stream_id = ?
                ORDER BY version ASC
            """,
                (stream_id,),
            )
            return [self._row_to_event(row) for row in cursor.fetchall()]

    @retry_on_sqlite_lock()
    def load_all_events(
        self,
        from_event_id: str | None = None,
        limit: int | None = None,
    ) -> list[Event]:
        """
        Load events in append order (for projection rebuilding)

        Args:
            from_event_id: Start after this event (exclusive), or None for all events
            limit: Maximum number of events to return, or None for all

        Returns:
            List of events in the order they were appended
        """
        with self._connect() as conn:
            params: list = []
            where_clause = ""
            if from_event_id:
                row = conn.execute(
                    "SELECT position FROM events WHERE event_id = ?", (from_event_id,)
                ).fetchone()
                if not row:
                    return []
                where_clause = "WHERE position > ?"
                params.append(row["position"])

            query = f"""
                SELECT {_EVENT_COLUMNS}
                FROM events
                {where_clause}
                ORDER BY position ASC
            """
            if limit:
                query += " LIMIT ?"
                params.append(limit)

            cursor = conn.execute(query, params)
            return [self._row_to_event(row) for row in cursor.fetchall()]

    @retry_on_sqlite_lock()
    def query_events(
        self,
        *,
        stream_type: str | None = None,
        event_type: str | None = None,
        limit: int | None = None,
    ) -> list[Event]:
        """
        Query events by stream type and/or event type

        Args:
            stream_type: Filter by stream type ("trustee" or "foundation")
            event_type: Filter by event type (e.g., "TokensUnlocked")
            limit: Maximum number of events to return

        Returns:
            List of matching events in append order
        """
        with self._connect() as conn:
            conditions = []
            params: list = []

            if stream_type:
                conditions.append("stream_type = ?")
                params.append(stream_type)

            if event_type:
                conditions.append("event_type = ?")
                params.append(event_type)

            where_clause = " AND ".join(conditions) if conditions else "1=1"

            query = f"""
                SELECT {_EVENT_COLUMNS}
                FROM events
                WHERE {where_clause}
                ORDER BY position ASC
            """
            if limit:
                query += " LIMIT ?"
                params.append(limit)

            cursor = conn.execute(query, params)
            return [self._row_to_event(row) for row in cursor.fetchall()]

    @retry_on_sqlite_lock()
    def get_stream_version(self, stream_id: str) -> int:
        """
        Get current version of a stream

        Returns:
            Current stream version (0 if stream doesn't exist)
        """
        with self._connect() as conn:
            return self._get_stream_version(conn, stream_id)

    def _get_stream_version(self, conn: sqlite3.Connection, stream_id: str) -> int:
        """Internal helper to get stream version within a connection"""
        cursor = conn.execute(
            "SELECT MAX(version) FROM events WHERE stream_id = ?",
            (stream_id,),
        )
        row = cursor.fetchone()
        return row[0] if row[0] is not None else 0

    @retry_on_sqlite_lock()
    def get_events_by_command_id(self, command_id: str) -> list[Event]:
        """Get events produced by a command (for idempotency checking)"""
        with self._connect() as conn:
            cursor = conn.execute(
                f"""
                SELECT {_EVENT_COLUMNS}
                FROM events
                WHERE command_id = ?
                ORDER BY position ASC
            """,
                (command_id,),
            )
            return [self._row_to_event(row) for row in cursor.fetchall()]

    def _row_to_event(self, row: sqlite3.Row) -> Event:
        """Convert SQLite row to Event object"""
        return Event(
            event_id=row["event_id"],
            stream_id=row["stream_id"],
            stream_type=row["stream_type"],
            version=row["version"],
            command_id=row["command_id"],
            event_type=row["event_type"],
            occurred_at=int(row["occurred_at"]),
            actor_id=row["actor_id"],
            payload=json.loads(row["payload_json"]),
        )

    @retry_on_sqlite_lock()
    def count_events(self) -> int:
        """Get total number of events in store"""
        with self._connect() as conn:
            cursor = conn.execute("SELECT COUNT(*) FROM events")
            return cursor.fetchone()[0]

    @retry_on_sqlite_lock()
    def count_streams(self) -> int:
        """Get total number of distinct streams"""
        with self._connect() as conn:
            cursor = conn.execute("SELECT COUNT(DISTINCT stream_id) FROM events")
            return cursor.fetchone()[0]
