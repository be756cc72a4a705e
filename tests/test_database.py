"""Tests for the SQLite layer: stream_sources and mapping_versions tables."""

import sqlite3
from datetime import UTC, datetime, timedelta, timezone

import pytest

from streamarr.core.types import LeagueId, StreamSource
from streamarr.database import (
    delete_stream_source,
    get_latest_mapping_version,
    get_stream_source,
    init_db,
    list_mapping_versions,
    list_stream_sources,
    record_mapping_version,
    reset_db,
    upsert_stream_source,
)

CREATED = datetime(2025, 2, 1, tzinfo=UTC)


def _source(stream_id: int, league_id: LeagueId = LeagueId.MLB, **overrides) -> StreamSource:
    values = {
        "id": stream_id,
        "display_name": f"{league_id.value.upper()} - Team {stream_id}",
        "team_name": f"Team {stream_id}",
        "league_id": league_id,
        "url": f"https://x.test/{stream_id}.m3u8",
        "created_at": CREATED,
        "updated_at": CREATED,
    }
    values.update(overrides)
    return StreamSource(**values)


# =============================================================================
# STREAM SOURCES
# =============================================================================


class TestStreamSources:
    """CRUD against stream_sources."""

    def test_upsert_and_get(self, db_factory):
        with db_factory() as conn:
            upsert_stream_source(conn, _source(210, description="main feed"))
            source = get_stream_source(conn, 210)
        assert source.description == "main feed"
        assert source.league_id == LeagueId.MLB
        assert source.updated_at == CREATED

    def test_upsert_keeps_created_at(self, db_factory):
        later = CREATED + timedelta(days=3)
        with db_factory() as conn:
            upsert_stream_source(conn, _source(210))
            upsert_stream_source(
                conn, _source(210, priority=4, created_at=None, updated_at=later)
            )
            source = get_stream_source(conn, 210)
        assert source.priority == 4
        assert source.created_at == CREATED
        assert source.updated_at == later

    def test_list_with_league_filter(self, db_factory):
        with db_factory() as conn:
            upsert_stream_source(conn, _source(210))
            upsert_stream_source(conn, _source(8, LeagueId.NHL))
            everything = list_stream_sources(conn)
            nhl = list_stream_sources(conn, league=LeagueId.NHL)
        assert [s.id for s in everything] == [8, 210]
        assert [s.id for s in nhl] == [8]

    def test_delete(self, db_factory):
        with db_factory() as conn:
            upsert_stream_source(conn, _source(210))
            assert delete_stream_source(conn, 210) is True
            assert delete_stream_source(conn, 210) is False
            assert get_stream_source(conn, 210) is None

    def test_offset_timestamps_normalized(self, db_factory):
        eastern = timezone(timedelta(hours=-5))
        with db_factory() as conn:
            upsert_stream_source(
                conn, _source(210, updated_at=datetime(2025, 2, 1, 7, tzinfo=eastern))
            )
            source = get_stream_source(conn, 210)
        assert source.updated_at == datetime(2025, 2, 1, 12, tzinfo=UTC)

    def test_null_timestamps_still_persisted(self, db_factory):
        with db_factory() as conn:
            conn.execute(
                "INSERT INTO stream_sources (id, name, team_name, url, league_id) "
                "VALUES (210, 'n', 't', 'u', 'mlb')"
            )
            source = get_stream_source(conn, 210)
        assert not source.is_synthesized

    @pytest.mark.parametrize(
        "column,value",
        [("id", 0), ("url", ""), ("league_id", "cricket")],
    )
    def test_constraints(self, db_factory, column, value):
        row = {"id": 210, "url": "u", "league_id": "mlb"}
        row[column] = value
        with pytest.raises(sqlite3.IntegrityError):
            with db_factory() as conn:
                conn.execute(
                    "INSERT INTO stream_sources (id, name, team_name, url, league_id) "
                    "VALUES (:id, 'n', 't', :url, :league_id)",
                    row,
                )


# =============================================================================
# MAPPING VERSIONS
# =============================================================================


class TestMappingVersions:
    """Renumbering history."""

    def test_seeded_on_init(self, db_factory):
        with db_factory() as conn:
            versions = [r.version for r in list_mapping_versions(conn)]
            assert get_latest_mapping_version(conn) == 4
        assert versions == [1, 2, 3, 4]

    def test_init_is_idempotent(self, db_path, db_factory):
        init_db(db_path)
        with db_factory() as conn:
            assert len(list_mapping_versions(conn)) == 4

    def test_record_increasing_version(self, db_factory):
        with db_factory() as conn:
            record_mapping_version(conn, 5, "NBA moved")
            latest = list_mapping_versions(conn)[-1]
        assert latest.version == 5
        assert latest.note == "NBA moved"

    @pytest.mark.parametrize("version", [4, 3])
    def test_non_increasing_rejected(self, db_factory, version):
        with db_factory() as conn:
            with pytest.raises(ValueError):
                record_mapping_version(conn, version)

    def test_reset(self, db_path, db_factory):
        with db_factory() as conn:
            upsert_stream_source(conn, _source(210))
        reset_db(db_path)
        with db_factory() as conn:
            assert list_stream_sources(conn) == []
            assert get_latest_mapping_version(conn) == 4
