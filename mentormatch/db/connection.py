"""Database connection factory for SQLite (local) and PostgreSQL (cloud)."""

import sqlite3
from collections.abc import Generator
from contextlib import contextmanager
from datetime import UTC, datetime
from typing import Any

import psycopg2
from psycopg2.extras import RealDictCursor

from mentormatch.config import DATA_DIR, DATABASE_URL, DB_PATH


class DatabaseConnection:
    """Wrapper for database connections that provides a consistent interface."""

    def __init__(self, conn: Any, is_postgres: bool = False):
        self.conn = conn
        self.is_postgres = is_postgres
        self._cursor = None

    def cursor(self, dictionary: bool = False) -> Any:
        """Get a cursor for executing database operations.

        Args:
            dictionary: If True, rows are returned as dict-like objects
                (RealDictCursor on PostgreSQL, sqlite3.Row on SQLite) so
                columns can be read by name.

        Returns:
            Database cursor object for executing queries and fetching results.
        """
        if self.is_postgres:
            self._cursor = self.conn.cursor(cursor_factory=RealDictCursor if dictionary else None)
        else:
            self._cursor = self.conn.cursor()
        return self._cursor

    def execute(self, query: str, params: tuple | list | None = None) -> Any:
        """Execute a query."""
        cursor = self.cursor()
        if params:
            cursor.execute(query, params)
        else:
            cursor.execute(query)
        return cursor

    def commit(self) -> None:
        """Commit the transaction."""
        self.conn.commit()

    def rollback(self) -> None:
        """Roll back the current transaction."""
        self.conn.rollback()

    def close(self) -> None:
        """Close the connection."""
        if self._cursor:
            self._cursor.close()
        self.conn.close()

    @property
    def placeholder(self) -> str:
        """Return the parameter placeholder for this database."""
        return "%s" if self.is_postgres else "?"

    def timestamp(self, value: datetime) -> datetime | str:
        """Convert a datetime to the parameter form this database stores.

        SQLite keeps fixed-width UTC ISO strings so they compare correctly
        as text; PostgreSQL takes the datetime itself.
        """
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        value = value.astimezone(UTC)
        if self.is_postgres:
            return value
        return value.isoformat(timespec="microseconds")


@contextmanager
def get_connection() -> Generator[DatabaseConnection, None, None]:
    """Get a database connection.

    Uses PostgreSQL if DATABASE_URL is set, otherwise falls back to SQLite.

    Yields:
        DatabaseConnection wrapper with consistent interface.
    """
    if DATABASE_URL:
        conn = psycopg2.connect(DATABASE_URL)
        db = DatabaseConnection(conn, is_postgres=True)
    else:
        DATA_DIR.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(DB_PATH, check_same_thread=False)
        conn.execute("PRAGMA journal_mode=WAL")
        conn.execute("PRAGMA busy_timeout=5000")
        conn.row_factory = sqlite3.Row
        db = DatabaseConnection(conn, is_postgres=False)

    try:
        yield db
    finally:
        db.close()


def init_tables() -> None:
    """Initialize database tables.

    Creates all required tables if they don't exist.
    Uses appropriate syntax for PostgreSQL or SQLite.
    """
    with get_connection() as db:
        if db.is_postgres:
            _init_postgres_tables(db)
        else:
            _init_sqlite_tables(db)
        db.commit()


def _init_postgres_tables(db: DatabaseConnection) -> None:
    """Create PostgreSQL tables."""
    cursor = db.cursor()

    # Mentee preferences (one per seeker)
    cursor.execute("""
        CREATE TABLE IF NOT EXISTS mentee_preferences (
            seeker_id TEXT PRIMARY KEY,
            industry TEXT,
            role TEXT,
            seniority TEXT,
            previous_roles TEXT,
            mentoring_style TEXT,
            years_experience INTEGER,
            cultural_background TEXT,
            availability TEXT,
            factor_order JSONB,
            tags JSONB,
            updated_at TIMESTAMPTZ DEFAULT NOW()
        )
    """)

    # Mentor profiles (one per candidate)
    cursor.execute("""
        CREATE TABLE IF NOT EXISTS mentor_profiles (
            candidate_id TEXT PRIMARY KEY,
            industry TEXT,
            role TEXT,
            seniority_level TEXT,
            previous_roles TEXT,
            mentoring_style TEXT,
            years_experience INTEGER,
            cultural_background TEXT,
            availability TEXT,
            tags JSONB,
            updated_at TIMESTAMPTZ DEFAULT NOW()
        )
    """)

    # Match rankings (upsert target, one row per pair)
    cursor.execute("""
        CREATE TABLE IF NOT EXISTS match_rankings (
            id SERIAL PRIMARY KEY,
            seeker_id TEXT NOT NULL,
            candidate_id TEXT NOT NULL,
            score INTEGER NOT NULL,
            preference_score INTEGER NOT NULL,
            tag_score FLOAT DEFAULT 0,
            breakdown TEXT,
            updated_at TIMESTAMPTZ DEFAULT NOW(),
            UNIQUE (seeker_id, candidate_id)
        )
    """)

    # Index for faster ranking lookups
    cursor.execute("""
        CREATE INDEX IF NOT EXISTS idx_match_rankings_seeker_score
        ON match_rankings(seeker_id, score DESC)
    """)

    # Incremental refresh watermark (lastPaired)
    cursor.execute("""
        CREATE TABLE IF NOT EXISTS seeker_watermarks (
            seeker_id TEXT PRIMARY KEY,
            last_paired TIMESTAMPTZ NOT NULL
        )
    """)


def _init_sqlite_tables(db: DatabaseConnection) -> None:
    """Create SQLite tables (for local development/testing)."""
    cursor = db.cursor()

    # Mentee preferences (one per seeker)
    cursor.execute("""
        CREATE TABLE IF NOT EXISTS mentee_preferences (
            seeker_id TEXT PRIMARY KEY,
            industry TEXT,
            role TEXT,
            seniority TEXT,
            previous_roles TEXT,
            mentoring_style TEXT,
            years_experience INTEGER,
            cultural_background TEXT,
            availability TEXT,
            factor_order TEXT,
            tags TEXT,
            updated_at TEXT NOT NULL
        )
    """)

    # Mentor profiles (one per candidate)
    cursor.execute("""
        CREATE TABLE IF NOT EXISTS mentor_profiles (
            candidate_id TEXT PRIMARY KEY,
            industry TEXT,
            role TEXT,
            seniority_level TEXT,
            previous_roles TEXT,
            mentoring_style TEXT,
            years_experience INTEGER,
            cultural_background TEXT,
            availability TEXT,
            tags TEXT,
            updated_at TEXT NOT NULL
        )
    """)

    # Match rankings (upsert target, one row per pair)
    cursor.execute("""
        CREATE TABLE IF NOT EXISTS match_rankings (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            seeker_id TEXT NOT NULL,
            candidate_id TEXT NOT NULL,
            score INTEGER NOT NULL,
            preference_score INTEGER NOT NULL,
            tag_score REAL DEFAULT 0,
            breakdown TEXT,
            updated_at TEXT DEFAULT CURRENT_TIMESTAMP,
            UNIQUE (seeker_id, candidate_id)
        )
    """)

    cursor.execute("""
        CREATE INDEX IF NOT EXISTS idx_match_rankings_seeker_score
        ON match_rankings(seeker_id, score DESC)
    """)

    # Incremental refresh watermark (lastPaired)
    cursor.execute("""
        CREATE TABLE IF NOT EXISTS seeker_watermarks (
            seeker_id TEXT PRIMARY KEY,
            last_paired TEXT NOT NULL
        )
    """)
