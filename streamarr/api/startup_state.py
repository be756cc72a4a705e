"""Startup progress reported by /health."""

import threading
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from streamarr.core.types import utc_now


class StartupPhase(str, Enum):
    INITIALIZING = "initializing"
    LOADING_OVERRIDES = "loading_overrides"
    READY = "ready"
    STOPPED = "stopped"

    @property
    def description(self) -> str:
        return {
            "initializing": "Opening stores...",
            "loading_overrides": "Loading stream overrides...",
            "ready": "Ready",
            "stopped": "Stopped",
        }[self.value]


@dataclass
class StartupState:
    """Startup phase plus where the override store loaded its records from.

    override_source is "database", "file" (database disabled or unreadable)
    or None until loading finishes.
    """

    phase: StartupPhase = StartupPhase.INITIALIZING
    started_at: datetime = field(default_factory=utc_now)
    ready_at: datetime | None = None
    override_source: str | None = None
    persisted_overrides: int = 0
    error: str | None = None
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def set_phase(self, phase: StartupPhase) -> None:
        with self._lock:
            self.phase = phase
            if phase == StartupPhase.READY:
                self.ready_at = utc_now()

    def record_load(self, store_stats: dict) -> None:
        """Note the outcome of OverrideStore.start() from its stats()."""
        with self._lock:
            self.override_source = "database" if store_stats.get("db_loaded") else "file"
            self.persisted_overrides = store_stats.get("persisted_entries", 0)
            if store_stats.get("db_enabled") and not store_stats.get("db_loaded"):
                self.error = "Database unavailable at startup, serving from file cache"

    @property
    def is_ready(self) -> bool:
        return self.phase == StartupPhase.READY

    @property
    def elapsed_seconds(self) -> float:
        return ((self.ready_at or utc_now()) - self.started_at).total_seconds()

    def to_dict(self) -> dict:
        with self._lock:
            return {
                "phase": self.phase.value,
                "message": self.phase.description,
                "is_ready": self.is_ready,
                "elapsed_seconds": round(self.elapsed_seconds, 1),
                "override_source": self.override_source,
                "persisted_overrides": self.persisted_overrides,
                "error": self.error,
            }
