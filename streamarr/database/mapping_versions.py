"""Mapping version history.

Each row marks an upstream renumbering event. Versions are strictly
increasing; recording a version at or below the latest is rejected.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from sqlite3 import Connection, Row

logger = logging.getLogger(__name__)


@dataclass
class MappingVersionRecord:
    """A recorded renumbering event."""

    version: int
    note: str | None = None
    created_at: datetime | None = None


def _row_to_record(row: Row) -> MappingVersionRecord:
    created_at = row["created_at"]
    if isinstance(created_at, str):
        try:
            created_at = datetime.fromisoformat(created_at)
        except ValueError:
            created_at = None
    return MappingVersionRecord(version=row["version"], note=row["note"], created_at=created_at)


def list_mapping_versions(conn: Connection) -> list[MappingVersionRecord]:
    """All recorded versions, oldest first."""
    cursor = conn.execute("SELECT * FROM mapping_versions ORDER BY version")
    return [_row_to_record(row) for row in cursor.fetchall()]


def get_latest_mapping_version(conn: Connection) -> int | None:
    """Highest recorded version, or None when the table is empty."""
    row = conn.execute("SELECT MAX(version) AS version FROM mapping_versions").fetchone()
    return row["version"] if row else None


def record_mapping_version(conn: Connection, version: int, note: str | None = None) -> None:
    """Record a renumbering event.

    Args:
        conn: Database connection
        version: New version number
        note: What moved

    Raises:
        ValueError: If version is not above the latest recorded one
    """
    latest = get_latest_mapping_version(conn)
    if latest is not None and version <= latest:
        raise ValueError(f"Mapping version {version} must be greater than {latest}")
    conn.execute(
        "INSERT INTO mapping_versions (version, note) VALUES (?, ?)",
        (version, note),
    )
    logger.info("[DB] Recorded mapping version %d: %s", version, note or "")


def seed_mapping_versions(conn: Connection) -> int:
    """Insert the built-in version history. Returns how many rows were added."""
    from streamarr.registry import MAPPING_VERSIONS

    added = 0
    for version in sorted(MAPPING_VERSIONS):
        cursor = conn.execute(
            "INSERT OR IGNORE INTO mapping_versions (version, note) VALUES (?, ?)",
            (version, MAPPING_VERSIONS[version].note),
        )
        added += cursor.rowcount
    return added
