"""Database operations for stream source overrides.

Rows are snake_case at rest; display_name is stored in the `name` column.
Timestamps are ISO-8601 strings in UTC.
"""

import logging
from datetime import UTC, datetime
from sqlite3 import Connection, Row

from streamarr.core.types import LeagueId, StreamSource, as_utc

logger = logging.getLogger(__name__)

_EPOCH = datetime.fromtimestamp(0, UTC)


def _parse_timestamp(value) -> datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return as_utc(value)
    try:
        return as_utc(datetime.fromisoformat(str(value)))
    except ValueError:
        logger.warning("[DB] Unparseable timestamp in stream_sources: %r", value)
        return None


def _format_timestamp(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def _row_to_source(row: Row) -> StreamSource:
    """Convert a database row to StreamSource.

    Raises:
        ValueError: If the row has an unknown league
    """
    league_id = LeagueId.parse(row["league_id"])
    if league_id is None:
        raise ValueError(f"Unknown league_id {row['league_id']!r} for stream {row['id']}")
    created_at = _parse_timestamp(row["created_at"])
    return StreamSource(
        id=row["id"],
        display_name=row["name"],
        team_name=row["team_name"],
        league_id=league_id,
        url=row["url"],
        is_active=bool(row["is_active"]),
        priority=row["priority"] or 0,
        description=row["description"],
        created_at=created_at,
        # Rows are persisted by definition, so updated_at is never None
        updated_at=_parse_timestamp(row["updated_at"]) or created_at or _EPOCH,
    )


def source_to_row(source: StreamSource) -> dict:
    """Snake_case column mapping for a StreamSource."""
    return {
        "id": source.id,
        "name": source.display_name,
        "team_name": source.team_name,
        "url": source.url,
        "league_id": source.league_id.value,
        "is_active": 1 if source.is_active else 0,
        "priority": source.priority,
        "description": source.description,
        "created_at": _format_timestamp(source.created_at),
        "updated_at": _format_timestamp(source.updated_at),
    }


def list_stream_sources(conn: Connection, league: LeagueId | None = None) -> list[StreamSource]:
    """List all persisted overrides.

    Rows that fail conversion are logged and skipped.

    Args:
        conn: Database connection
        league: Optional league filter

    Returns:
        List of StreamSource ordered by id
    """
    if league:
        cursor = conn.execute(
            "SELECT * FROM stream_sources WHERE league_id = ? ORDER BY id", (league.value,)
        )
    else:
        cursor = conn.execute("SELECT * FROM stream_sources ORDER BY id")

    sources = []
    for row in cursor.fetchall():
        try:
            sources.append(_row_to_source(row))
        except ValueError as e:
            logger.warning("[DB] Skipping stream_sources row: %s", e)
    return sources


def get_stream_source(conn: Connection, stream_id: int) -> StreamSource | None:
    """Get a single override by stream ID."""
    row = conn.execute("SELECT * FROM stream_sources WHERE id = ?", (stream_id,)).fetchone()
    return _row_to_source(row) if row else None


def upsert_stream_source(conn: Connection, source: StreamSource) -> None:
    """Insert or replace the row for source.id.

    created_at is kept from the existing row when the incoming record has none.
    """
    row = source_to_row(source)
    conn.execute(
        """
        INSERT INTO stream_sources
            (id, name, team_name, url, league_id, is_active, priority,
             description, created_at, updated_at)
        VALUES
            (:id, :name, :team_name, :url, :league_id, :is_active, :priority,
             :description, :created_at, :updated_at)
        ON CONFLICT(id) DO UPDATE SET
            name = excluded.name,
            team_name = excluded.team_name,
            url = excluded.url,
            league_id = excluded.league_id,
            is_active = excluded.is_active,
            priority = excluded.priority,
            description = excluded.description,
            created_at = COALESCE(stream_sources.created_at, excluded.created_at),
            updated_at = excluded.updated_at
        """,
        row,
    )


def delete_stream_source(conn: Connection, stream_id: int) -> bool:
    """Delete an override.

    Returns:
        True if a row was deleted
    """
    cursor = conn.execute("DELETE FROM stream_sources WHERE id = ?", (stream_id,))
    return cursor.rowcount > 0
