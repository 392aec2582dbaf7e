"""SQLite-based cache of the reference license corpus.

This module persists canonical license texts downloaded from the SPDX
license list, together with the list version they came from, so the
classifier can load its corpus without network access.
"""

import contextlib
import sqlite3
from datetime import UTC, datetime
from pathlib import Path
from typing import Optional


class CorpusCache:
    """SQLite cache for canonical license texts.

    Attributes:
        db_path: Path to the SQLite database file.
    """

    def __init__(self, db_path: Optional[Path] = None):
        """Initialize the corpus cache.

        Args:
            db_path: Path to SQLite database. If None, uses
                ~/.cache/license_bom/corpus.db.
        """
        if db_path is None:
            cache_dir = Path.home() / ".cache" / "license_bom"
            cache_dir.mkdir(parents=True, exist_ok=True)
            db_path = cache_dir / "corpus.db"

        self.db_path = db_path
        self._conn: Optional[sqlite3.Connection] = None
        self._init_database()

    def __enter__(self) -> "CorpusCache":
        """Enter context manager, keeping connection open."""
        self._conn = sqlite3.connect(self.db_path)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Exit context manager, closing connection."""
        if self._conn:
            self._conn.close()
            self._conn = None

    @contextlib.contextmanager
    def _connect(self):
        """Get a database connection.

        Reuses the open connection inside a ``with`` block, otherwise opens
        a new one and closes it after use.
        """
        if self._conn:
            yield self._conn
        else:
            conn = sqlite3.connect(self.db_path)
            try:
                yield conn
            finally:
                conn.close()

    def _init_database(self) -> None:
        """Initialize the database schema if it doesn't exist."""
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                CREATE TABLE IF NOT EXISTS license_texts (
                    spdx_id TEXT PRIMARY KEY,
                    text TEXT NOT NULL,
                    list_version TEXT NOT NULL,
                    fetched_at TEXT NOT NULL
                )
                """
            )
            cursor.execute(
                """
                CREATE TABLE IF NOT EXISTS corpus_meta (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                )
                """
            )
            conn.commit()

    @property
    def version(self) -> Optional[str]:
        """Return the license list version of the cached corpus, if any."""
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT value FROM corpus_meta WHERE key = 'list_version'")
            row = cursor.fetchone()
        return row[0] if row else None

    def get(self, spdx_id: str) -> Optional[str]:
        """Return the cached text of a license, or None on a miss."""
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT text FROM license_texts WHERE spdx_id = ?",
                (spdx_id,),
            )
            row = cursor.fetchone()
        return row[0] if row else None

    def texts(self) -> dict[str, str]:
        """Return every cached license text keyed by identifier."""
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT spdx_id, text FROM license_texts ORDER BY spdx_id")
            return dict(cursor.fetchall())

    def set(self, spdx_id: str, text: str, version: str) -> None:
        """Store a single license text.

        Args:
            spdx_id: SPDX identifier of the license.
            text: Canonical license text.
            version: License list version the text belongs to.
        """
        self.set_batch({spdx_id: text}, version)

    def set_batch(self, texts: dict[str, str], version: str) -> None:
        """Store many license texts and record the list version.

        Args:
            texts: Mapping of SPDX identifier to canonical license text.
            version: License list version the texts belong to.
        """
        if not texts:
            return

        fetched_at = datetime.now(UTC).isoformat()
        rows = [
            (spdx_id, text, version, fetched_at) for spdx_id, text in texts.items()
        ]

        with self._connect() as conn:
            cursor = conn.cursor()
            # REPLACE handles both insert and update
            cursor.executemany(
                """
                REPLACE INTO license_texts (spdx_id, text, list_version, fetched_at)
                VALUES (?, ?, ?, ?)
                """,
                rows,
            )
            cursor.execute(
                "REPLACE INTO corpus_meta (key, value) VALUES ('list_version', ?)",
                (version,),
            )
            conn.commit()

    def replace_all(self, texts: dict[str, str], version: str) -> None:
        """Replace the whole corpus with ``texts`` in a single transaction.

        Readers see either the previous corpus or the new one, never an
        empty or partially written cache.

        Args:
            texts: Mapping of SPDX identifier to canonical license text.
            version: License list version the texts belong to.
        """
        fetched_at = datetime.now(UTC).isoformat()
        rows = [
            (spdx_id, text, version, fetched_at) for spdx_id, text in texts.items()
        ]

        with self._connect() as conn:
            cursor = conn.cursor()
            try:
                cursor.execute("DELETE FROM license_texts")
                cursor.execute("DELETE FROM corpus_meta")
                cursor.executemany(
                    """
                    INSERT INTO license_texts (spdx_id, text, list_version, fetched_at)
                    VALUES (?, ?, ?, ?)
                    """,
                    rows,
                )
                cursor.execute(
                    "INSERT INTO corpus_meta (key, value) VALUES ('list_version', ?)",
                    (version,),
                )
            except sqlite3.Error:
                conn.rollback()
                raise
            conn.commit()

    def clear(self, spdx_id: Optional[str] = None) -> None:
        """Clear cache entries.

        Args:
            spdx_id: If specified, clear only this license. If None, clear
                everything, including the recorded version.
        """
        with self._connect() as conn:
            cursor = conn.cursor()
            if spdx_id is None:
                cursor.execute("DELETE FROM license_texts")
                cursor.execute("DELETE FROM corpus_meta")
            else:
                cursor.execute(
                    "DELETE FROM license_texts WHERE spdx_id = ?",
                    (spdx_id,),
                )
            conn.commit()

    def info(self) -> dict:
        """Get cache statistics.

        Returns:
            Dictionary with cache information:
                - path: Path to cache database file
                - count: Number of cached license texts
                - size_bytes: Database file size in bytes
                - version: License list version, or None if empty
        """
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT COUNT(*) FROM license_texts")
            count = cursor.fetchone()[0]

        size_bytes = self.db_path.stat().st_size if self.db_path.exists() else 0

        return {
            "path": str(self.db_path),
            "count": count,
            "size_bytes": size_bytes,
            "version": self.version,
        }
