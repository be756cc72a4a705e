"""Tests for the override store: merge rules, persistence layers, index, failure handling."""

import sqlite3
import threading
from contextlib import contextmanager
from dataclasses import replace
from datetime import UTC, datetime
from unittest.mock import MagicMock

import pytest

from streamarr.core.types import LeagueId, StreamSource
from streamarr.database import StreamSourceFileCache, get_stream_source, upsert_stream_source
from streamarr.services import OverrideExistsError, OverrideStore

CANONICAL = "https://vpt.pixelsport.to:443/psportsgate/psportsgate100"


# =============================================================================
# READS
# =============================================================================


class TestReads:
    """Catalog coverage and registry fallback."""

    def test_get_all_covers_catalog_with_empty_stores(self, store, registry):
        sources = store.get_all()
        assert [s.id for s in sources] == list(registry.catalog_ids())
        assert len(sources) >= 35
        assert all(s.is_synthesized for s in sources)

    def test_get_falls_back_to_registry(self, store):
        source = store.get(210)
        assert source.team_name == "Boston Red Sox"
        assert source.url == f"{CANONICAL}/210.m3u8"

    def test_get_unknown_id(self, store):
        assert store.get(9999) is None

    def test_url_for(self, store):
        assert store.url_for(201) == f"{CANONICAL}/201.m3u8"
        store.upsert(201, {"is_active": False})
        assert store.url_for(201) is None


# =============================================================================
# UPSERT
# =============================================================================


class TestUpsert:
    """Merge semantics and validation."""

    def test_upsert_then_get(self, store):
        legacy = "https://vp.pixelsport.to:443/psportsgate/psportsgate100/210.m3u8"
        store.upsert(210, {"url": legacy})
        source = store.get(210)
        assert source.url == f"{CANONICAL}/210.m3u8"
        assert not source.is_synthesized

    def test_unsupplied_fields_preserved(self, store):
        store.upsert(210, {"priority": 3, "description": "backup feed"})
        store.upsert(210, {"is_active": False})
        source = store.get(210)
        assert source.priority == 3
        assert source.description == "backup feed"
        assert source.is_active is False
        assert source.team_name == "Boston Red Sox"

    def test_timestamps(self, store):
        first = store.upsert(210, {"priority": 1})
        second = store.upsert(210, {"priority": 2})
        assert second.created_at == first.created_at
        assert second.updated_at >= first.updated_at
        assert second.updated_at.tzinfo is not None

    def test_placeholder_never_replaces_real_name(self, store):
        store.upsert(210, {"team_name": "MLB Team 210", "display_name": "MLB - Team 210"})
        source = store.get(210)
        assert source.team_name == "Boston Red Sox"
        assert source.display_name == "MLB - Boston Red Sox"

    @pytest.mark.parametrize(
        "stream_id,real,seeded",
        [(110, "Sky Sports Main Event", "Sports Channel 110"), (3, "ESPN US", "Special Channel 3")],
    )
    def test_seeded_channel_name_never_replaces_real_name(self, store, stream_id, real, seeded):
        store.upsert(stream_id, {"team_name": real, "display_name": real})
        store.upsert(stream_id, {"team_name": seeded, "display_name": seeded})
        source = store.get(stream_id)
        assert source.team_name == real
        assert source.display_name == real

    def test_real_name_replaces_placeholder(self, store):
        store.upsert(92, {"team_name": "Boston Celtics Alt"})
        assert store.get(92).team_name == "Boston Celtics Alt"

    def test_new_id_outside_catalog(self, store):
        source = store.upsert(
            500,
            {"team_name": "Wrexham AFC", "league_id": "other", "url": "https://x.test/500.m3u8"},
        )
        assert source.display_name == "Stream 500"
        assert source.url == f"{CANONICAL}/500.m3u8"
        assert 500 in [s.id for s in store.get_all()]

    @pytest.mark.parametrize(
        "changes",
        [
            {"league_id": "cricket"},
            {"url": ""},
            {"url": "   "},
            {"is_active": "yes"},
            {"priority": "high"},
            {"colour": "red"},
        ],
    )
    def test_invalid_changes(self, store, changes):
        with pytest.raises(ValueError):
            store.upsert(210, changes)
        assert store.get(210).is_synthesized

    @pytest.mark.parametrize("bad_id", [0, -1, "210", True])
    def test_invalid_id(self, store, bad_id):
        with pytest.raises(ValueError):
            store.upsert(bad_id, {"priority": 1})

    def test_file_write_failure_leaves_cache_untouched(self, registry, template, tmp_path):
        file_cache = StreamSourceFileCache(tmp_path / "cache.json", registry, template)
        store = OverrideStore(registry, file_cache)
        store.start()
        file_cache.save = MagicMock(side_effect=OSError("read-only"))

        with pytest.raises(OSError):
            store.upsert(210, {"priority": 9})
        assert store.get(210).priority == 0
        store.close()

    def test_create_only_when_no_override(self, store):
        store.create(210, {"priority": 2})
        with pytest.raises(OverrideExistsError):
            store.create(210, {"priority": 5})
        assert store.get(210).priority == 2

    def test_create_after_delete(self, store):
        store.create(210, {"priority": 2})
        store.delete(210)
        assert store.create(210, {"priority": 4}).priority == 4

    def test_concurrent_creates_same_id(self, store):
        created = []
        conflicts = []

        def create(i):
            try:
                created.append(store.create(500, {"url": f"https://x.test/500.m3u8?{i}"}))
            except OverrideExistsError:
                conflicts.append(i)

        threads = [threading.Thread(target=create, args=(i,)) for i in range(10)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(created) == 1
        assert len(conflicts) == 9

    def test_concurrent_upserts_same_id(self, store):
        def bump(i):
            store.upsert(210, {"priority": i})

        threads = [threading.Thread(target=bump, args=(i,)) for i in range(1, 21)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        source = store.get(210)
        assert 1 <= source.priority <= 20
        assert source.team_name == "Boston Red Sox"


# =============================================================================
# DELETE
# =============================================================================


class TestDelete:
    """Removing overrides."""

    def test_catalog_id_reverts_to_default(self, store):
        store.upsert(210, {"url": "https://x.test/999.m3u8"})
        assert store.delete(210) is True
        source = store.get(210)
        assert source.is_synthesized
        assert source.url == f"{CANONICAL}/210.m3u8"

    def test_delete_without_override(self, store):
        assert store.delete(210) is False
        assert store.get(210) is not None

    def test_non_catalog_id_removed(self, store):
        store.upsert(500, {"url": "https://x.test/500.m3u8"})
        assert store.delete(500) is True
        assert store.get(500) is None


# =============================================================================
# PERSISTENCE
# =============================================================================


class TestPersistence:
    """File cache and database mirror."""

    def test_restart_from_file(self, registry, file_cache, store):
        store.upsert(201, {"url": "https://x.test/777.m3u8", "priority": 4})

        restarted = OverrideStore(registry, file_cache)
        restarted.start()
        source = restarted.get(201)
        assert source.url == f"{CANONICAL}/777.m3u8"
        assert source.priority == 4
        restarted.close()

    def test_upsert_reaches_database(self, db_store, db_factory):
        db_store.upsert(210, {"priority": 7})
        assert db_store.flush(timeout=5)
        with db_factory() as conn:
            row = get_stream_source(conn, 210)
        assert row.priority == 7
        assert row.team_name == "Boston Red Sox"

    def test_delete_reaches_database(self, db_store, db_factory):
        db_store.upsert(210, {"priority": 7})
        db_store.delete(210)
        assert db_store.flush(timeout=5)
        with db_factory() as conn:
            assert get_stream_source(conn, 210) is None

    def test_database_rows_loaded_at_start(self, registry, file_cache, db_factory):
        with db_factory() as conn:
            upsert_stream_source(
                conn,
                StreamSource(
                    id=66,
                    display_name="NBA - Boston Celtics",
                    team_name="Boston Celtics",
                    league_id=LeagueId.NBA,
                    url="https://vp.pixelsport.to:443/psportsgate/psportsgate100/66.m3u8",
                    priority=2,
                    created_at=datetime(2025, 1, 1, tzinfo=UTC),
                    updated_at=datetime(2025, 1, 1, tzinfo=UTC),
                ),
            )

        store = OverrideStore(registry, file_cache, db_factory=db_factory)
        store.start()
        assert store.db_loaded
        source = store.get(66)
        assert source.priority == 2
        assert source.url == f"{CANONICAL}/66.m3u8"
        store.close()

    def test_newer_file_record_wins_and_resyncs(self, registry, file_cache, db_factory):
        old = datetime(2025, 1, 1, tzinfo=UTC)
        new = datetime(2025, 6, 1, tzinfo=UTC)
        record = StreamSource(
            id=66,
            display_name="NBA - Boston Celtics",
            team_name="Boston Celtics",
            league_id=LeagueId.NBA,
            url=f"{CANONICAL}/66.m3u8",
            created_at=old,
            updated_at=old,
        )
        with db_factory() as conn:
            upsert_stream_source(conn, record)
        file_cache.save([replace(record, priority=5, updated_at=new)])

        store = OverrideStore(registry, file_cache, db_factory=db_factory)
        store.start()
        assert store.get(66).priority == 5
        assert store.flush(timeout=5)
        with db_factory() as conn:
            assert get_stream_source(conn, 66).priority == 5
        store.close()


# =============================================================================
# DATABASE FAILURES
# =============================================================================


class TestDatabaseFailures:
    """The database is a mirror; its failures never fail an edit."""

    def test_unavailable_database_at_start(self, registry, file_cache):
        factory = MagicMock(side_effect=sqlite3.OperationalError("unable to open database"))
        store = OverrideStore(registry, file_cache, db_factory=factory, db_timeout=1.0)
        store.start()
        assert not store.db_loaded
        assert len(store.get_all()) == len(registry.catalog_ids())

        store.upsert(210, {"priority": 1})
        assert store.get(210).priority == 1
        assert store.flush(timeout=5)
        assert store.stats()["db_write_failures"] == 1
        store.close()

    def test_slow_database_read_times_out(self, registry, file_cache):
        release = threading.Event()

        @contextmanager
        def slow_db():
            release.wait(5)
            raise sqlite3.OperationalError("database is locked")
            yield

        store = OverrideStore(registry, file_cache, db_factory=slow_db, db_timeout=0.1)
        store.start()
        assert not store.db_loaded
        assert store.get(210).team_name == "Boston Red Sox"

        release.set()
        store.close()

    def test_closed_store_skips_database(self, registry, file_cache, db_factory):
        store = OverrideStore(registry, file_cache, db_factory=db_factory)
        store.start()
        store.close()
        store.upsert(210, {"priority": 3})
        assert store.get(210).priority == 3
        assert store.stats()["pending_db_writes"] == 0


# =============================================================================
# ALIAS-AWARE INDEX
# =============================================================================


class TestTeamIndex:
    """Normalized name and prefixed-form keys."""

    def test_keys_for_registry_defaults(self, store):
        index = store.team_index()
        assert index["BOSTON RED SOX"].id == 210
        assert index["MLB - RED SOX"].id == 210
        assert index["MLB - BOS"].id == 210
        assert index["NFL-BEARS"].id == 36
        assert index["VIP NBA LAKERS"].id == 91
        assert index["VIP NHL BOSTON BRUINS"].id == 8

    def test_placeholders_not_indexed(self, store):
        assert "NBA TEAM 92" not in store.team_index()

    def test_inactive_records_not_indexed(self, store):
        store.upsert(210, {"is_active": False})
        assert "BOSTON RED SOX" not in store.team_index()

    def test_index_rebuilt_after_rename(self, store):
        store.upsert(500, {"team_name": "Wrexham AFC", "url": "https://x.test/500.m3u8"})
        assert store.team_index()["WREXHAM AFC"].id == 500

    def test_collision_persisted_beats_synthesized(self, store):
        store.upsert(300, {"team_name": "Boston Red Sox", "league_id": "mlb", "url": "x/300.m3u8"})
        assert store.team_index()["BOSTON RED SOX"].id == 300

    def test_collision_priority_then_id(self, store):
        store.upsert(300, {"team_name": "Boston Red Sox", "league_id": "mlb", "url": "x/300.m3u8"})
        store.upsert(210, {"priority": 10})
        assert store.team_index()["BOSTON RED SOX"].id == 210
