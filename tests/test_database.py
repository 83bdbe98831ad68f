"""Test the song database and its connection pool"""

import sqlite3
import threading
import time
from datetime import date

import pytest

from song_library.core.database import ConnectionPool, SongDatabase
from song_library.core.exceptions import StorageError


class TestSongDatabase:
    """Test song operations"""

    def test_create_assigns_id_and_timestamps(self, database):
        record = database.create_song("Muse", "Uprising", date(2009, 9, 7), "text", "http://muse")

        assert record.id >= 1
        assert record.created_at is not None
        assert record.created_at == record.updated_at
        assert record.deleted_at is None

    def test_find_song(self, database, stored_song):
        found = database.find_song("Radiohead", "Creep")

        assert found == stored_song

    def test_find_song_is_exact(self, database, stored_song):
        assert database.find_song("radiohead", "Creep") is None
        assert database.find_song("Radiohead", "Creep ") is None

    def test_first_match_wins(self, database):
        first = database.create_song("Muse", "Uprising", date(2009, 9, 7), "first", "")
        database.create_song("Muse", "Uprising", date(2009, 9, 7), "second", "")

        assert database.find_song("Muse", "Uprising").id == first.id

    def test_get_song(self, database, stored_song):
        assert database.get_song(stored_song.id) == stored_song
        assert database.get_song(stored_song.id + 100) is None

    def test_release_date_cannot_be_cleared(self, database, stored_song):
        with pytest.raises(ValueError):
            database.update_song(stored_song.id, release_date=None)

        assert database.get_song(stored_song.id).release_date == date(1992, 9, 21)

    def test_list_songs(self, database):
        for i in range(5):
            database.create_song("Group", f"Song {i}", date(2000, 1, i + 1))

        assert [song.title for song in database.list_songs()] == [f"Song {i}" for i in range(5)]
        assert [song.title for song in database.list_songs(page=2, limit=2)] == ["Song 2", "Song 3"]
        assert database.list_songs(page=4, limit=2) == []

    def test_update_song(self, database, stored_song):
        updated = database.update_song(stored_song.id, text="new text", release_date=date(1993, 1, 1))

        assert updated.text == "new text"
        assert updated.release_date == date(1993, 1, 1)
        assert updated.link == stored_song.link
        assert updated.updated_at >= stored_song.updated_at
        assert database.get_song(stored_song.id) == updated

    def test_update_unknown_song(self, database):
        assert database.update_song(42, text="x") is None

    def test_update_rejects_unknown_fields(self, database, stored_song):
        with pytest.raises(ValueError):
            database.update_song(stored_song.id, id=99)

    def test_delete_is_soft(self, database, stored_song):
        assert database.delete_song(stored_song.id) is True

        assert database.get_song(stored_song.id) is None
        assert database.find_song("Radiohead", "Creep") is None
        assert database.list_songs() == []
        assert database.update_song(stored_song.id, text="x") is None
        assert database.delete_song(stored_song.id) is False

        with sqlite3.connect(database.db_path) as conn:
            row = conn.execute("SELECT deleted_at FROM songs WHERE id = ?", (stored_song.id,)).fetchone()
        assert row[0] is not None

    def test_missing_parent_directory(self, temp_dir):
        with pytest.raises(StorageError):
            SongDatabase(temp_dir / "missing" / "songs.db")

    def test_closed_database_raises_storage_error(self, temp_dir):
        db = SongDatabase(temp_dir / "songs.db")
        db.close()

        with pytest.raises(StorageError):
            db.list_songs()


class TestMigration:
    """Test additive schema evolution"""

    def test_fresh_database_needs_no_columns(self, database):
        assert database.migrate() == []

    def test_missing_columns_are_added(self, temp_dir):
        path = temp_dir / "old.db"
        with sqlite3.connect(path) as conn:
            conn.execute("""
                CREATE TABLE songs (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    group_name TEXT NOT NULL,
                    song TEXT NOT NULL,
                    text TEXT NOT NULL DEFAULT '',
                    release_date TEXT,
                    created_at TEXT,
                    updated_at TEXT
                )
            """)
            conn.execute(
                "INSERT INTO songs (group_name, song, text, release_date) VALUES (?, ?, ?, ?)",
                ("Muse", "Uprising", "la", "2009-09-07")
            )
        conn.close()

        db = SongDatabase(path, migrate_on_open=False)
        try:
            assert db.migrate() == ["link", "deleted_at"]

            record = db.find_song("Muse", "Uprising")
            assert record.link == ""
            assert record.deleted_at is None
            assert record.text == "la"
        finally:
            db.close()


class TestConnectionPool:
    """Test connection pool bounds"""

    def test_idle_connections_are_reused(self, temp_dir):
        pool = ConnectionPool(temp_dir / "pool.db", max_open=2, max_idle=1)

        conn, opened_at = pool.acquire()
        pool.release(conn, opened_at)
        again, _ = pool.acquire()

        assert again is conn
        assert pool.open_count == 1
        pool.release(again, opened_at)
        pool.close()

    def test_idle_bound(self, temp_dir):
        pool = ConnectionPool(temp_dir / "pool.db", max_open=3, max_idle=1)

        checked_out = [pool.acquire() for _ in range(3)]
        assert pool.open_count == 3

        for conn, opened_at in checked_out:
            pool.release(conn, opened_at)

        assert pool.idle_count == 1
        assert pool.open_count == 1
        pool.close()

    def test_zero_idle_closes_on_release(self, temp_dir):
        pool = ConnectionPool(temp_dir / "pool.db", max_open=2, max_idle=0)

        conn, opened_at = pool.acquire()
        pool.release(conn, opened_at)

        assert pool.idle_count == 0
        assert pool.open_count == 0
        pool.close()

    def test_acquire_blocks_when_exhausted(self, temp_dir):
        pool = ConnectionPool(temp_dir / "pool.db", max_open=1, max_idle=1)
        conn, opened_at = pool.acquire()
        acquired = threading.Event()

        def worker():
            other, other_opened_at = pool.acquire()
            acquired.set()
            pool.release(other, other_opened_at)

        thread = threading.Thread(target=worker)
        thread.start()

        assert not acquired.wait(0.2)
        pool.release(conn, opened_at)
        assert acquired.wait(5)
        thread.join(5)

        assert pool.open_count == 1
        pool.close()

    def test_expired_connections_are_closed(self, temp_dir):
        pool = ConnectionPool(temp_dir / "pool.db", max_open=2, max_idle=2, max_lifetime=0.05)

        conn, opened_at = pool.acquire()
        time.sleep(0.1)
        pool.release(conn, opened_at)

        assert pool.idle_count == 0
        assert pool.open_count == 0
        pool.close()

    def test_zero_lifetime_never_expires(self, temp_dir):
        pool = ConnectionPool(temp_dir / "pool.db", max_open=1, max_idle=1, max_lifetime=0)

        conn, opened_at = pool.acquire()
        pool.release(conn, opened_at - 10_000)

        assert pool.idle_count == 1
        pool.close()

    def test_rollback_on_error(self, temp_dir):
        pool = ConnectionPool(temp_dir / "pool.db")
        with pool.connection() as conn:
            conn.execute("CREATE TABLE t (x INTEGER)")

        with pytest.raises(RuntimeError):
            with pool.connection() as conn:
                conn.execute("INSERT INTO t VALUES (1)")
                raise RuntimeError("boom")

        with pool.connection() as conn:
            assert conn.execute("SELECT COUNT(*) FROM t").fetchone()[0] == 0
        pool.close()
