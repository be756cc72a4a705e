"""Database connection management.

Simple SQLite connection handling with schema initialization.
"""

import logging
import sqlite3
from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path

logger = logging.getLogger(__name__)

# Default database path
DEFAULT_DB_PATH = Path(__file__).parent.parent.parent / "data" / "streamarr.db"

# Schema file location
SCHEMA_PATH = Path(__file__).parent / "schema.sql"

DEFAULT_TIMEOUT_SECONDS = 30.0


def get_connection(
    db_path: Path | str | None = None,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
) -> sqlite3.Connection:
    """Get a database connection.

    Args:
        db_path: Path to database file. Uses DEFAULT_DB_PATH if not specified.
        timeout: Seconds to wait on a locked database before failing

    Returns:
        SQLite connection with row factory set to sqlite3.Row
    """
    path = Path(db_path) if db_path else DEFAULT_DB_PATH
    path.parent.mkdir(parents=True, exist_ok=True)

    # check_same_thread=False: writes run on the store's worker threads
    conn = sqlite3.connect(path, timeout=timeout, check_same_thread=False)
    conn.row_factory = sqlite3.Row

    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute(f"PRAGMA busy_timeout={int(timeout * 1000)}")
    conn.execute("PRAGMA foreign_keys = ON")

    return conn


@contextmanager
def get_db(
    db_path: Path | str | None = None,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
) -> Generator[sqlite3.Connection, None, None]:
    """Context manager for database connections.

    Commits on success, rolls back on any exception.

    Usage:
        with get_db() as conn:
            rows = conn.execute("SELECT * FROM stream_sources").fetchall()
    """
    conn = get_connection(db_path, timeout)
    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def init_db(db_path: Path | str | None = None) -> None:
    """Initialize database with schema and seed the mapping version history.

    Creates tables if they don't exist. Safe to call multiple times.

    Args:
        db_path: Path to database file. Uses DEFAULT_DB_PATH if not specified.
    """
    from streamarr.database.mapping_versions import seed_mapping_versions

    schema_sql = SCHEMA_PATH.read_text()
    with get_db(db_path) as conn:
        conn.executescript(schema_sql)
        seeded = seed_mapping_versions(conn)

    path = Path(db_path) if db_path else DEFAULT_DB_PATH
    if seeded:
        logger.info("[DB] Seeded %d mapping versions", seeded)
    logger.info("[DB] Database initialized at %s", path)


def reset_db(db_path: Path | str | None = None) -> None:
    """Drop all tables and re-create them. Destroys every override."""
    with get_db(db_path) as conn:
        conn.execute("DROP TABLE IF EXISTS stream_sources")
        conn.execute("DROP TABLE IF EXISTS mapping_versions")
    init_db(db_path)
    logger.warning("[DB] Database reset")
