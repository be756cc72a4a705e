"""Override store: durable, admin-editable stream source records.

Three layers, fastest first:
- RecordCache (in-memory, owned by this instance)
- JSON file cache (written synchronously on every edit)
- stream_sources table (written asynchronously on a worker thread)

Records here always take precedence over registry defaults. Every catalog ID
is present in the cache; IDs with no persisted record are filled from the
registry and marked synthesized (updated_at is None).

Usage:
    store = OverrideStore(registry, file_cache, db_factory=lambda: get_db(path))
    store.start()
    store.upsert(210, {"url": "https://.../210.m3u8"})
    store.get(210).url
    store.close()
"""

import logging
import sqlite3
import threading
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor, wait
from concurrent.futures import TimeoutError as FutureTimeoutError
from contextlib import AbstractContextManager
from dataclasses import replace
from datetime import UTC, datetime
from typing import Any

from streamarr.consumers.matching.normalizer import normalize
from streamarr.core.types import LeagueId, StreamSource, utc_now
from streamarr.database.file_cache import StreamSourceFileCache
from streamarr.database.stream_sources import (
    delete_stream_source,
    list_stream_sources,
    upsert_stream_source,
)
from streamarr.registry import IdentifierRegistry, is_placeholder_name, prefixed_forms
from streamarr.utilities.cache import RecordCache

logger = logging.getLogger(__name__)

DbFactory = Callable[[], AbstractContextManager[sqlite3.Connection]]

_EPOCH = datetime.fromtimestamp(0, UTC)


class OverrideExistsError(Exception):
    """A persisted override already exists for the stream ID."""

    def __init__(self, stream_id: int):
        super().__init__(f"Stream source {stream_id} already has an override")
        self.stream_id = stream_id


def _rank(source: StreamSource) -> tuple:
    """Sort key for index collisions: higher wins."""
    return (
        not source.is_synthesized,
        source.priority,
        source.updated_at or _EPOCH,
        -source.id,
    )


class OverrideStore:
    """Stream source records with write-through persistence.

    THREAD-SAFETY: upserts and deletes to the same ID serialize on a per-ID
    lock; the file write and cache swap for every mutation happen under one
    persist lock, so the file always reflects a consistent cache state.
    Database writes run on a single worker thread in submission order.
    Readers never block on database I/O.
    """

    EDITABLE_FIELDS = frozenset(
        {"display_name", "team_name", "league_id", "url", "is_active", "priority", "description"}
    )

    def __init__(
        self,
        registry: IdentifierRegistry,
        file_cache: StreamSourceFileCache,
        cache: RecordCache | None = None,
        db_factory: DbFactory | None = None,
        db_timeout: float = 5.0,
    ):
        self._registry = registry
        self._template = registry.template
        self._file_cache = file_cache
        self._cache = cache if cache is not None else RecordCache()
        self._db_factory = db_factory
        self._db_timeout = db_timeout
        self._executor = (
            ThreadPoolExecutor(max_workers=1, thread_name_prefix="stream-db")
            if db_factory is not None
            else None
        )

        self._id_locks: dict[int, threading.Lock] = {}
        self._id_locks_guard = threading.Lock()
        self._persist_lock = threading.Lock()

        self._pending: set[Future] = set()
        self._pending_lock = threading.Lock()

        self._index: dict[str, StreamSource] = {}
        self._index_generation = -1
        self._index_lock = threading.Lock()

        self._closed = False
        self._db_loaded = False
        self._stats = {
            "upserts": 0,
            "deletes": 0,
            "repaired": 0,
            "db_writes": 0,
            "db_write_failures": 0,
        }

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def start(self) -> None:
        """Load persisted records and fill the catalog.

        The database read is bounded by db_timeout; on failure the store runs
        from the file cache alone. Records newer in the file than in the
        database are queued for re-sync.
        """
        rows = self._load_db_rows()
        snapshot = self._file_cache.load()

        merged: dict[int, StreamSource] = {s.id: s for s in rows or []}
        resync: list[StreamSource] = []
        for source in snapshot.sources.values():
            current = merged.get(source.id)
            if current is None or source.updated_at > current.updated_at:
                merged[source.id] = source
                if rows is not None:
                    resync.append(source)

        merged = {
            sid: replace(s, url=self._template.standardize(s.url)) for sid, s in merged.items()
        }
        self._cache.set_many(merged.values())
        repaired = self.repair_catalog()

        file_ids = set(snapshot.sources)
        if snapshot.needs_rewrite or set(merged) != file_ids or resync:
            self._write_file()

        for source in resync:
            self._submit_db(upsert_stream_source, source, f"re-sync of stream {source.id}")

        logger.info(
            "[OVERRIDES] Started: %d persisted (%d from database, %d from file), "
            "%d synthesized, %d queued for re-sync",
            len(merged),
            len(rows or []),
            len(snapshot.sources),
            repaired,
            len(resync),
        )

    def _load_db_rows(self) -> list[StreamSource] | None:
        if self._executor is None:
            return None

        def read(conn: sqlite3.Connection) -> list[StreamSource]:
            return list_stream_sources(conn)

        future = self._executor.submit(self._run_db, read)
        try:
            rows = future.result(timeout=self._db_timeout)
        except FutureTimeoutError:
            logger.warning(
                "[OVERRIDES] Database read timed out after %.1fs, running from file cache",
                self._db_timeout,
            )
            return None
        except (sqlite3.Error, OSError) as e:
            logger.warning("[OVERRIDES] Database read failed, running from file cache: %s", e)
            return None

        self._db_loaded = True
        return rows

    def flush(self, timeout: float | None = None) -> bool:
        """Wait for queued database writes.

        Returns:
            True if every pending write finished within timeout
        """
        with self._pending_lock:
            pending = set(self._pending)
        if not pending:
            return True
        _, not_done = wait(pending, timeout=timeout)
        return not not_done

    def close(self) -> None:
        """Drain pending writes and stop the worker pool."""
        if self._closed:
            return
        self._closed = True
        if self._executor is not None:
            if not self.flush(timeout=self._db_timeout):
                logger.warning("[OVERRIDES] Closing with database writes still pending")
            self._executor.shutdown(wait=True)
        logger.info("[OVERRIDES] Closed")

    # =========================================================================
    # Reads
    # =========================================================================

    def get(self, stream_id: int) -> StreamSource | None:
        """Current record for stream_id, or None if unknown."""
        record = self._cache.get(stream_id)
        if record is None and self._registry.is_catalog_id(stream_id):
            record = self._registry.default_source(stream_id)
            self._cache.set(record)
            self._stats["repaired"] += 1
        return record

    def get_all(self) -> list[StreamSource]:
        """Every record, ordered by ID. Always covers the full catalog."""
        missing = set(self._registry.catalog_ids()) - self._cache.ids()
        if missing:
            self.repair_catalog()
        return self._cache.values()

    def repair_catalog(self) -> int:
        """Synthesize registry defaults for catalog IDs missing from the cache."""
        missing = sorted(set(self._registry.catalog_ids()) - self._cache.ids())
        if not missing:
            return 0
        count = self._cache.set_many(self._registry.default_source(i) for i in missing)
        self._stats["repaired"] += count
        logger.debug("[OVERRIDES] Synthesized %d catalog entries from registry", count)
        return count

    def url_for(self, stream_id: int) -> str | None:
        """Standardized URL for an active stream, None if unknown or inactive."""
        record = self.get(stream_id)
        if record is None or not record.is_active:
            return None
        return self._template.standardize(record.url)

    # =========================================================================
    # Writes
    # =========================================================================

    def upsert(self, stream_id: int, changes: dict[str, Any]) -> StreamSource:
        """Merge changes onto the record for stream_id.

        Fields not in changes are preserved. A placeholder team or display
        name never replaces a real one. The file cache is written before
        returning; the database write is queued.

        Args:
            stream_id: Positive stream ID
            changes: Subset of EDITABLE_FIELDS, snake_case

        Returns:
            The stored record

        Raises:
            ValueError: Invalid ID, unknown field, or invalid value
            OSError: The file cache could not be written (nothing changed)
        """
        return self._apply(stream_id, changes, create_only=False)

    def create(self, stream_id: int, changes: dict[str, Any]) -> StreamSource:
        """Like upsert, but only when no persisted override exists yet.

        Raises:
            OverrideExistsError: stream_id already has a persisted override
            ValueError: Invalid ID, unknown field, or invalid value
            OSError: The file cache could not be written (nothing changed)
        """
        return self._apply(stream_id, changes, create_only=True)

    def _apply(self, stream_id: int, changes: dict[str, Any], create_only: bool) -> StreamSource:
        self._check_id(stream_id)
        unknown = set(changes) - self.EDITABLE_FIELDS
        if unknown:
            raise ValueError(f"Unknown fields: {', '.join(sorted(unknown))}")

        with self._lock_for(stream_id):
            existing = self._cache.get(stream_id)
            if create_only and existing is not None and not existing.is_synthesized:
                raise OverrideExistsError(stream_id)
            existing = existing or self._registry.default_source(stream_id)
            merged = self._merge(existing, changes)
            self._write_file(put=merged)
            self._submit_db(upsert_stream_source, merged, f"upsert of stream {stream_id}")

        self._stats["upserts"] += 1
        logger.info(
            "[OVERRIDES] Updated stream %d (%s): %s",
            stream_id,
            merged.team_name,
            ", ".join(sorted(changes)) or "no fields",
        )
        return merged

    def delete(self, stream_id: int) -> bool:
        """Remove the persisted override for stream_id.

        Catalog IDs fall back to their registry default.

        Returns:
            True if a persisted override existed
        """
        self._check_id(stream_id)
        with self._lock_for(stream_id):
            existing = self._cache.get(stream_id)
            existed = existing is not None and not existing.is_synthesized
            self._write_file(drop=stream_id)
            self._submit_db(delete_stream_source, stream_id, f"delete of stream {stream_id}")

        self._stats["deletes"] += 1
        logger.info("[OVERRIDES] Deleted stream %d (override existed: %s)", stream_id, existed)
        return existed

    def _check_id(self, stream_id: Any) -> None:
        if not isinstance(stream_id, int) or isinstance(stream_id, bool) or stream_id < 1:
            raise ValueError(f"Stream ID must be a positive integer, got {stream_id!r}")

    def _lock_for(self, stream_id: int) -> threading.Lock:
        with self._id_locks_guard:
            lock = self._id_locks.get(stream_id)
            if lock is None:
                lock = self._id_locks[stream_id] = threading.Lock()
            return lock

    def _merge(self, existing: StreamSource, changes: dict[str, Any]) -> StreamSource:
        updates: dict[str, Any] = {}

        for field_name in ("team_name", "display_name"):
            if field_name not in changes or changes[field_name] is None:
                continue
            value = changes[field_name]
            if not isinstance(value, str):
                raise ValueError(f"{field_name} must be a string")
            value = value.strip()
            current = getattr(existing, field_name)
            if is_placeholder_name(value) and not is_placeholder_name(current):
                logger.debug(
                    "[OVERRIDES] Kept %s %r for stream %d over placeholder %r",
                    field_name,
                    current,
                    existing.id,
                    value,
                )
                continue
            updates[field_name] = value

        if changes.get("league_id") is not None:
            league_id = LeagueId.parse(changes["league_id"])
            if league_id is None:
                raise ValueError(f"Unknown league: {changes['league_id']!r}")
            updates["league_id"] = league_id

        if "url" in changes and changes["url"] is not None:
            url = changes["url"]
            if not isinstance(url, str) or not url.strip():
                raise ValueError("url must be a non-empty string")
            updates["url"] = self._template.standardize(url.strip())

        if changes.get("is_active") is not None:
            if not isinstance(changes["is_active"], bool):
                raise ValueError("is_active must be a boolean")
            updates["is_active"] = changes["is_active"]

        if changes.get("priority") is not None:
            priority = changes["priority"]
            if not isinstance(priority, int) or isinstance(priority, bool):
                raise ValueError("priority must be an integer")
            updates["priority"] = priority

        if "description" in changes:
            description = changes["description"]
            if description is not None and not isinstance(description, str):
                raise ValueError("description must be a string")
            updates["description"] = description

        now = utc_now()
        return replace(
            existing,
            **updates,
            created_at=existing.created_at or now,
            updated_at=now,
        )

    def _write_file(self, put: StreamSource | None = None, drop: int | None = None) -> None:
        """Write the persisted set to the file cache, then apply the change to the cache."""
        with self._persist_lock:
            records = {r.id: r for r in self._cache.values() if not r.is_synthesized}
            if put is not None:
                records[put.id] = put
            if drop is not None:
                records.pop(drop, None)

            self._file_cache.save(list(records.values()))

            if put is not None:
                self._cache.set(put)
            if drop is not None:
                if self._registry.is_catalog_id(drop):
                    self._cache.set(self._registry.default_source(drop))
                else:
                    self._cache.delete(drop)

    # =========================================================================
    # Database writes
    # =========================================================================

    def _run_db(self, operation: Callable[[sqlite3.Connection], Any]) -> Any:
        with self._db_factory() as conn:
            return operation(conn)

    def _submit_db(self, operation: Callable, argument: Any, description: str) -> None:
        if self._executor is None:
            return
        if self._closed:
            logger.warning("[OVERRIDES] Store closed, skipped database %s", description)
            return

        future = self._executor.submit(self._db_write, operation, argument, description)
        with self._pending_lock:
            self._pending.add(future)
        future.add_done_callback(lambda f: self._on_db_done(f, description))

    def _db_write(self, operation: Callable, argument: Any, description: str) -> bool:
        try:
            self._run_db(lambda conn: operation(conn, argument))
        except (sqlite3.Error, OSError) as e:
            # The edit is already in the cache and file; only the mirror is behind
            logger.warning("[OVERRIDES] Database %s failed: %s", description, e)
            self._stats["db_write_failures"] += 1
            return False
        self._stats["db_writes"] += 1
        return True

    def _on_db_done(self, future: Future, description: str) -> None:
        with self._pending_lock:
            self._pending.discard(future)
        if future.cancelled():
            logger.warning("[OVERRIDES] Database %s was cancelled", description)
            return
        error = future.exception()
        if error is not None:
            logger.error("[OVERRIDES] Database %s raised %r", description, error)

    # =========================================================================
    # Alias-aware index
    # =========================================================================

    def team_index(self) -> dict[str, StreamSource]:
        """Normalized name -> winning active record.

        Keys are each record's normalized team and display names plus the
        league-prefixed forms of its team. Rebuilt lazily after changes.
        """
        generation = self._cache.generation
        with self._index_lock:
            if self._index_generation != generation:
                self._index = self._build_index(self._cache.values())
                self._index_generation = generation
            return self._index

    def _build_index(self, records: list[StreamSource]) -> dict[str, StreamSource]:
        index: dict[str, StreamSource] = {}
        for record in records:
            if not record.is_active:
                continue
            for key in self._index_keys(record):
                current = index.get(key)
                if current is None or _rank(record) > _rank(current):
                    index[key] = record
        return index

    def _index_keys(self, record: StreamSource) -> list[str]:
        keys = []
        for name in (record.team_name, record.display_name):
            if name and not is_placeholder_name(name):
                keys.append(normalize(name))
        if not keys:
            return []

        team_key = keys[0]
        entry = None
        team_id = self._registry.lookup_team(team_key)
        if team_id is not None:
            entry = self._registry.team_entry(team_id)
        if entry is not None:
            keys.extend(
                prefixed_forms(entry.league_id, team_key, entry.nicknames, entry.abbreviation)
            )
        else:
            keys.extend(prefixed_forms(record.league_id, team_key))
        return list(dict.fromkeys(k for k in keys if k))

    # =========================================================================
    # Stats
    # =========================================================================

    @property
    def db_loaded(self) -> bool:
        """Whether startup read the database successfully."""
        return self._db_loaded

    def stats(self) -> dict:
        with self._pending_lock:
            pending = len(self._pending)
        return {
            **self._cache.stats(),
            **self._stats,
            "pending_db_writes": pending,
            "db_enabled": self._executor is not None,
            "db_loaded": self._db_loaded,
            "quarantined": len(self._file_cache.quarantine),
        }
