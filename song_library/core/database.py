"""
Pooled SQLite store for song records.

One table, `songs`, holds every SongRecord. Rows are never physically
removed: deletion stamps `deleted_at` and every read filters those rows out.

Schema evolution is additive only: migrate() creates the table when it is
missing and adds any column the current code knows about but the file does
not have. Columns are never dropped or retyped.

Connections come from a bounded pool shared by all request workers:
    - at most `max_open_connections` connections exist at once; callers
      block until one is released
    - at most `max_idle_connections` are kept open while unused
    - connections older than `connection_max_lifetime` seconds are closed
      on release or reuse (0 keeps them forever)

Usage:
    db = SongDatabase(Path("songs.db"))

    record = db.find_song("Muse", "Uprising")
    if record is None:
        record = db.create_song("Muse", "Uprising", date(2009, 9, 7), text, link)

    db.close()
"""

import sqlite3
import threading
import time
from contextlib import contextmanager
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Generator

from song_library.core.exceptions import StorageError
from song_library.core.logger import get_logger
from song_library.songs.models import SongRecord, format_release_date, parse_release_date

logger = get_logger(__name__)


SONGS_TABLE = "songs"

# Column name -> declaration used when the column has to be added.
# New columns go at the end and must be nullable or carry a default.
_SONG_COLUMNS: dict[str, str] = {
    "id": "INTEGER PRIMARY KEY AUTOINCREMENT",
    "group_name": "TEXT NOT NULL",
    "song": "TEXT NOT NULL",
    "text": "TEXT NOT NULL DEFAULT ''",
    "release_date": "TEXT",
    "link": "TEXT NOT NULL DEFAULT ''",
    "created_at": "TEXT",
    "updated_at": "TEXT",
    "deleted_at": "TEXT",
}

_INDEX_SQL = f"""
CREATE INDEX IF NOT EXISTS idx_songs_group_song ON {SONGS_TABLE}(group_name, song);
CREATE INDEX IF NOT EXISTS idx_songs_deleted_at ON {SONGS_TABLE}(deleted_at);
"""

# Fields update_song() accepts, mapped to their column
_UPDATABLE_FIELDS = {
    "group": "group_name",
    "title": "song",
    "release_date": "release_date",
    "text": "text",
    "link": "link",
}


class ConnectionPool:
    """
    Bounded pool of SQLite connections.

    A connection is used by one thread at a time but may be handed to a
    different thread on its next checkout, so connections are opened with
    check_same_thread=False.

    Attributes:
        db_path: Database file path.
        max_open: Maximum number of connections open at once.
        max_idle: Maximum number of unused connections kept open.
        max_lifetime: Seconds a connection may live. 0 means forever.
    """

    def __init__(
        self,
        db_path: Path,
        max_open: int = 10,
        max_idle: int = 5,
        max_lifetime: float = 0.0
    ) -> None:
        if max_open < 1 or max_idle < 0:
            raise ValueError("max_open must be >= 1 and max_idle must be >= 0")

        self.db_path = db_path
        self.max_open = max_open
        self.max_idle = min(max_idle, max_open)
        self.max_lifetime = max_lifetime

        self._cond = threading.Condition()
        self._idle: list[tuple[sqlite3.Connection, float]] = []
        self._open_count = 0
        self._closed = False

    @property
    def open_count(self) -> int:
        with self._cond:
            return self._open_count

    @property
    def idle_count(self) -> int:
        with self._cond:
            return len(self._idle)

    def _expired(self, opened_at: float) -> bool:
        return self.max_lifetime > 0 and time.monotonic() - opened_at >= self.max_lifetime

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self.db_path), timeout=30.0, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode = WAL")
        return conn

    def acquire(self) -> tuple[sqlite3.Connection, float]:
        """
        Check out a connection, blocking while the pool is exhausted.

        Returns:
            The connection and the monotonic time it was opened at.

        Raises:
            StorageError: If the pool is closed or a new connection cannot be opened.
        """
        with self._cond:
            while True:
                if self._closed:
                    raise StorageError("Connection pool is closed")

                while self._idle:
                    conn, opened_at = self._idle.pop()
                    if not self._expired(opened_at):
                        return conn, opened_at
                    conn.close()
                    self._open_count -= 1

                if self._open_count < self.max_open:
                    self._open_count += 1
                    break

                self._cond.wait()

        # Open outside the lock; the slot is already reserved
        try:
            return self._connect(), time.monotonic()
        except sqlite3.Error as e:
            with self._cond:
                self._open_count -= 1
                self._cond.notify()
            raise StorageError(
                f"Failed to open database connection: {e}",
                details={"path": str(self.db_path)}
            ) from e

    def release(self, conn: sqlite3.Connection, opened_at: float) -> None:
        """Return a connection; it is closed if expired or the idle set is full."""
        with self._cond:
            if self._closed or self._expired(opened_at) or len(self._idle) >= self.max_idle:
                conn.close()
                self._open_count -= 1
            else:
                self._idle.append((conn, opened_at))
            self._cond.notify()

    @contextmanager
    def connection(self) -> Generator[sqlite3.Connection, None, None]:
        """
        Check out a connection for the duration of a with-block.

        The transaction is committed when the block exits normally and
        rolled back when it raises.
        """
        conn, opened_at = self.acquire()
        try:
            yield conn
            conn.commit()
        except BaseException:
            conn.rollback()
            raise
        finally:
            self.release(conn, opened_at)

    def close(self) -> None:
        """Close idle connections; checked-out ones close when released."""
        with self._cond:
            self._closed = True
            for conn, _ in self._idle:
                conn.close()
                self._open_count -= 1
            self._idle.clear()
            self._cond.notify_all()


class SongDatabase:
    """
    Song record store backed by a pooled SQLite database.

    Constructed explicitly at startup and passed to whatever needs it.
    Every public method wraps sqlite3 errors in StorageError.

    Example:
        db = SongDatabase(config.database.path,
                          max_open_connections=config.database.max_open_connections)
        resolver = SongResolver(db, provider, enrichment)
    """

    def __init__(
        self,
        db_path: Path,
        max_open_connections: int = 10,
        max_idle_connections: int = 5,
        connection_max_lifetime: float = 0.0,
        migrate_on_open: bool = True
    ) -> None:
        self.db_path = db_path

        if not db_path.parent.exists():
            raise StorageError(
                f"Parent directory does not exist: {db_path.parent}",
                details={"path": str(db_path.parent)}
            )

        self._pool = ConnectionPool(
            db_path,
            max_open=max_open_connections,
            max_idle=max_idle_connections,
            max_lifetime=connection_max_lifetime,
        )
        if migrate_on_open:
            self.migrate()

    @property
    def pool(self) -> ConnectionPool:
        return self._pool

    def close(self) -> None:
        self._pool.close()

    @contextmanager
    def _connection(self, action: str, **details: Any) -> Generator[sqlite3.Connection, None, None]:
        try:
            with self._pool.connection() as conn:
                yield conn
        except sqlite3.Error as e:
            raise StorageError(
                f"Failed to {action}: {e}",
                details={**details, "original_error": str(e)}
            ) from e

    # =========================================================================
    # Schema
    # =========================================================================

    def migrate(self) -> list[str]:
        """
        Create the songs table and add missing columns.

        Returns:
            Names of the columns added to an existing table (empty when the
            table was just created or was already current).
        """
        added: list[str] = []

        with self._connection("migrate database", path=str(self.db_path)) as conn:
            columns_sql = ",\n    ".join(
                f"{name} {declaration}" for name, declaration in _SONG_COLUMNS.items()
            )
            conn.execute(f"CREATE TABLE IF NOT EXISTS {SONGS_TABLE} (\n    {columns_sql}\n)")

            existing = {
                row["name"] for row in conn.execute(f"PRAGMA table_info({SONGS_TABLE})")
            }
            for name, declaration in _SONG_COLUMNS.items():
                if name in existing:
                    continue
                # SQLite cannot add a PRIMARY KEY column; id always exists from CREATE
                conn.execute(f"ALTER TABLE {SONGS_TABLE} ADD COLUMN {name} {declaration}")
                added.append(name)

            conn.executescript(_INDEX_SQL)

        if added:
            logger.info(f"Migration added columns to '{SONGS_TABLE}': {', '.join(added)}")
        else:
            logger.debug("Migration completed, schema is current")

        return added

    # =========================================================================
    # Row conversion
    # =========================================================================

    @staticmethod
    def _now_iso() -> str:
        return datetime.now(timezone.utc).isoformat()

    @staticmethod
    def _row_to_record(row: sqlite3.Row) -> SongRecord:
        return SongRecord(
            id=row["id"],
            group=row["group_name"],
            title=row["song"],
            release_date=parse_release_date(row["release_date"]),
            text=row["text"] or "",
            link=row["link"] or "",
            created_at=row["created_at"],
            updated_at=row["updated_at"],
            deleted_at=row["deleted_at"],
        )

    # =========================================================================
    # Song operations
    # =========================================================================

    def create_song(
        self,
        group: str,
        title: str,
        release_date: date,
        text: str = "",
        link: str = ""
    ) -> SongRecord:
        """Insert a new record and return it with its assigned id."""
        now = self._now_iso()

        with self._connection("add new song to the database", group=group, song=title) as conn:
            cursor = conn.execute(
                f"""
                INSERT INTO {SONGS_TABLE}
                    (group_name, song, text, release_date, link, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (group, title, text, format_release_date(release_date), link, now, now)
            )
            song_id = cursor.lastrowid

        logger.debug(f"Saved song with ID: {song_id}")
        return SongRecord(
            id=song_id,
            group=group,
            title=title,
            release_date=release_date,
            text=text,
            link=link,
            created_at=now,
            updated_at=now,
        )

    def find_song(self, group: str, title: str) -> SongRecord | None:
        """Exact, case-sensitive lookup by (group, title); the lowest id wins."""
        with self._connection("look up song", group=group, song=title) as conn:
            row = conn.execute(
                f"""
                SELECT * FROM {SONGS_TABLE}
                WHERE group_name = ? AND song = ? AND deleted_at IS NULL
                ORDER BY id LIMIT 1
                """,
                (group, title)
            ).fetchone()

        return self._row_to_record(row) if row else None

    def get_song(self, song_id: int) -> SongRecord | None:
        with self._connection("retrieve song", song_id=song_id) as conn:
            row = conn.execute(
                f"SELECT * FROM {SONGS_TABLE} WHERE id = ? AND deleted_at IS NULL",
                (song_id,)
            ).fetchone()

        return self._row_to_record(row) if row else None

    def list_songs(self, page: int | None = None, limit: int | None = None) -> list[SongRecord]:
        """
        List live records ordered by id.

        Args:
            page: 1-based page number. Ignored unless limit is given.
            limit: Records per page. None returns every record.
        """
        query = f"SELECT * FROM {SONGS_TABLE} WHERE deleted_at IS NULL ORDER BY id"
        params: tuple[int, ...] = ()

        if limit is not None:
            offset = max((page or 1) - 1, 0) * limit
            query += " LIMIT ? OFFSET ?"
            params = (limit, offset)

        with self._connection("fetch songs", page=page, limit=limit) as conn:
            rows = conn.execute(query, params).fetchall()

        return [self._row_to_record(row) for row in rows]

    def update_song(self, song_id: int, **fields: Any) -> SongRecord | None:
        """
        Overwrite the given fields of a live record.

        Args:
            song_id: Record id.
            **fields: Any of group, title, release_date (a date), text, link.

        Returns:
            The updated record, or None if no live record has that id.

        Raises:
            ValueError: If an unknown field name is given or release_date is None.
        """
        unknown = set(fields) - set(_UPDATABLE_FIELDS)
        if unknown:
            raise ValueError(f"Unknown song fields: {', '.join(sorted(unknown))}")

        values = dict(fields)
        if "release_date" in values:
            if values["release_date"] is None:
                raise ValueError("release_date cannot be cleared")
            values["release_date"] = format_release_date(values["release_date"])

        assignments = [f"{_UPDATABLE_FIELDS[name]} = ?" for name in values]
        assignments.append("updated_at = ?")
        params = [*values.values(), self._now_iso(), song_id]

        with self._connection("update song", song_id=song_id) as conn:
            cursor = conn.execute(
                f"UPDATE {SONGS_TABLE} SET {', '.join(assignments)} "
                f"WHERE id = ? AND deleted_at IS NULL",
                params
            )
            if cursor.rowcount == 0:
                return None
            row = conn.execute(f"SELECT * FROM {SONGS_TABLE} WHERE id = ?", (song_id,)).fetchone()

        return self._row_to_record(row)

    def delete_song(self, song_id: int) -> bool:
        """Soft-delete a record. Returns False if no live record had that id."""
        with self._connection("delete song", song_id=song_id) as conn:
            cursor = conn.execute(
                f"UPDATE {SONGS_TABLE} SET deleted_at = ? WHERE id = ? AND deleted_at IS NULL",
                (self._now_iso(), song_id)
            )
            return cursor.rowcount > 0
