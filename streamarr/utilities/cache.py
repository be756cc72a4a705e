"""In-memory stream source cache.

Owned by one OverrideStore instance for the life of the process. Records are
immutable StreamSource objects; writers swap whole records under the lock,
so a reader always sees either the old or the new record, never a mix.

Usage:
    cache = RecordCache()
    cache.set(source)
    cache.get(210)
    cache.generation  # bumps on every change, for derived-index invalidation
"""

import logging
import threading
from collections.abc import Iterable

from streamarr.core.types import StreamSource

logger = logging.getLogger(__name__)


class RecordCache:
    """Thread-safe id -> StreamSource map with hit/miss statistics."""

    def __init__(self):
        self._records: dict[int, StreamSource] = {}
        self._lock = threading.RLock()
        self._generation = 0
        self._hits = 0
        self._misses = 0

    def get(self, stream_id: int) -> StreamSource | None:
        with self._lock:
            record = self._records.get(stream_id)
            if record is None:
                self._misses += 1
            else:
                self._hits += 1
            return record

    def set(self, record: StreamSource) -> None:
        with self._lock:
            self._records[record.id] = record
            self._generation += 1

    def set_many(self, records: Iterable[StreamSource]) -> int:
        """Insert records, returning how many were written."""
        count = 0
        with self._lock:
            for record in records:
                self._records[record.id] = record
                count += 1
            if count:
                self._generation += 1
        return count

    def delete(self, stream_id: int) -> StreamSource | None:
        """Remove a record, returning it if present."""
        with self._lock:
            record = self._records.pop(stream_id, None)
            if record is not None:
                self._generation += 1
            return record

    def values(self) -> list[StreamSource]:
        """Snapshot of all records, ordered by ID."""
        with self._lock:
            return [self._records[k] for k in sorted(self._records)]

    def ids(self) -> frozenset[int]:
        with self._lock:
            return frozenset(self._records)

    def clear(self) -> None:
        with self._lock:
            self._records.clear()
            self._generation += 1
            self._hits = 0
            self._misses = 0

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def size(self) -> int:
        return len(self._records)

    def stats(self) -> dict:
        with self._lock:
            total_requests = self._hits + self._misses
            hit_rate = self._hits / total_requests if total_requests > 0 else 0
            persisted = sum(1 for r in self._records.values() if not r.is_synthesized)
            return {
                "total_entries": len(self._records),
                "persisted_entries": persisted,
                "synthesized_entries": len(self._records) - persisted,
                "hits": self._hits,
                "misses": self._misses,
                "hit_rate": round(hit_rate, 3),
                "generation": self._generation,
            }
