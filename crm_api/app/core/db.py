"""
SQLite database integration and simple migration system.

This module provides functions for obtaining a database connection
(``get_connection``) and applying migrations on application start
(``init_db``).  The schema is defined once here, as explicit SQL, and is
shared by every service.  Applied migration versions are stored in the
``migrations`` table and new migrations are executed in order.

Connections are cheap and short-lived: services open one per call and
close it when done.  SQLite serialises writers on the database file,
which is what makes the conditional ``UPDATE`` used by the claim
workflow atomic.
"""

import logging
import os
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator

from .config import Settings
from .errors import ConfigError


logger = logging.getLogger(__name__)

MIGRATIONS: list[tuple[int, str]] = [
    # Migration 1: employees and enquiries
    (
        1,
        """
        CREATE TABLE IF NOT EXISTS employees (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL,
            email TEXT NOT NULL UNIQUE,
            password TEXT NOT NULL,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS enquiries (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL,
            email TEXT NOT NULL,
            course_interest TEXT,
            claimed INTEGER NOT NULL DEFAULT 0,
            counselor_id INTEGER,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL,
            FOREIGN KEY(counselor_id) REFERENCES employees(id),
            -- claimed and counselor_id move together
            CHECK ((claimed = 0 AND counselor_id IS NULL)
                OR (claimed = 1 AND counselor_id IS NOT NULL))
        );
        """,
    ),
    # Migration 2: indices backing the two listing queries
    (
        2,
        """
        CREATE INDEX IF NOT EXISTS idx_enquiries_claimed_created
            ON enquiries(claimed, created_at);
        CREATE INDEX IF NOT EXISTS idx_enquiries_counselor_updated
            ON enquiries(counselor_id, updated_at);
        """,
    ),
]


def utcnow() -> str:
    """Current UTC time as an ISO-8601 string with microseconds."""
    return datetime.now(timezone.utc).isoformat(timespec="microseconds")


def check_database_settings(settings: Settings) -> None:
    """Reject database settings this service cannot connect with.

    A server dialect needs at least ``DB_NAME`` and ``DB_USER``; a
    configuration without them is reported as such before the dialect
    itself is considered.  Only ``sqlite`` has a driver here, so any
    complete server configuration is still refused.
    """
    if settings.db_dialect == "sqlite":
        return
    if not settings.db_name or not settings.db_user:
        raise ConfigError("Database credentials are missing. Check your ENV settings.")
    raise ConfigError(
        f"Unsupported database dialect {settings.db_dialect!r}; only 'sqlite' is available"
    )


def get_database_path(settings: Settings) -> str:
    """Compute the path to the SQLite database file.

    If ``settings.db_storage`` is an absolute path, use
    it directly.  Otherwise resolve it relative to the project root.
    """
    check_database_settings(settings)
    storage = settings.db_storage
    if os.path.isabs(storage):
        return storage
    base_dir = Path(__file__).resolve().parent.parent.parent.parent  # project root
    return str((base_dir / storage).resolve())


def get_connection(settings: Settings) -> sqlite3.Connection:
    """Create and return a new SQLite connection.

    Rows are returned as ``sqlite3.Row`` so columns can be accessed by
    name.  Foreign key enforcement is switched on for the connection,
    and every statement is logged at DEBUG level when ``db_logging`` is
    set.
    """
    conn = sqlite3.connect(get_database_path(settings), timeout=settings.db_timeout)
    conn.row_factory = sqlite3.Row
    # Foreign keys are off by default in SQLite and must be enabled per
    # connection.
    conn.execute("PRAGMA foreign_keys = ON")
    if settings.db_logging:
        conn.set_trace_callback(lambda sql: logger.debug("[sqlite] %s", sql))
    return conn


@contextmanager
def get_cursor(settings: Settings) -> Iterator[sqlite3.Cursor]:
    """Context manager that yields a cursor inside a write transaction.

    The transaction is opened with ``BEGIN IMMEDIATE`` so the write lock
    is taken up front: concurrent writers queue on the busy timeout
    instead of failing with "database is locked" when two deferred
    transactions both try to upgrade their read locks.  Commits on
    success, rolls back on any exception and always closes the
    connection.
    """
    conn = get_connection(settings)
    conn.isolation_level = None
    try:
        conn.execute("BEGIN IMMEDIATE")
        try:
            yield conn.cursor()
        except BaseException:
            conn.execute("ROLLBACK")
            raise
        conn.execute("COMMIT")
    finally:
        conn.close()


def init_db(settings: Settings) -> None:
    """Initialise the database and apply pending migrations.

    Creates the ``migrations`` table if it does not exist, checks the
    current schema version, and applies any new entries of
    ``MIGRATIONS``.  New migrations must be appended with an
    incremented version number.
    """
    conn = get_connection(settings)
    try:
        cursor = conn.cursor()
        cursor.execute(
            "CREATE TABLE IF NOT EXISTS migrations (version INTEGER PRIMARY KEY)"
        )
        cursor.execute("SELECT MAX(version) AS version FROM migrations")
        row = cursor.fetchone()
        current_version = row["version"] if row and row["version"] is not None else 0

        for version, sql in MIGRATIONS:
            if version > current_version:
                logger.info("Applying database migration %s", version)
                # executescript commits any pending transaction first
                cursor.executescript(sql)
                cursor.execute(
                    "INSERT INTO migrations (version) VALUES (?)", (version,)
                )
                conn.commit()
                current_version = version
    finally:
        conn.close()
