"""JSON file cache of stream source overrides.

Fast local mirror of the stream_sources table, read at startup and rewritten
on every edit. Layout:

    {
      "mapping_version": 4,
      "sources": {"210": {"id": 210, "name": ..., "team_name": ..., ...}},
      "quarantine": {"211": {"reason": "...", "entry": {...}}}
    }

The older flat layout ({"stream_source_210": {camelCase record}}) is still
read. Entries that fail validation are moved to "quarantine" instead of
being dropped, and never reach the store.
"""

import json
import logging
import os
import shutil
import tempfile
import threading
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Protocol

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

from streamarr.core.types import LeagueId, StreamSource, as_utc
from streamarr.utilities.stream_url import StreamUrlTemplate, extract_stream_id, migrate_stream_url

logger = logging.getLogger(__name__)

LEGACY_KEY_PREFIX = "stream_source_"
_EPOCH = datetime.fromtimestamp(0, UTC)


class _Registry(Protocol):
    version: int

    def classify(self, stream_id: int): ...

    def translate_stream_id(self, stream_id: int, from_version: int) -> int | None: ...


# =============================================================================
# RECORD VALIDATION
# =============================================================================


class StreamSourceRecord(BaseModel):
    """One persisted record as read from disk.

    Accepts snake_case and the camelCase keys older files used.
    """

    model_config = ConfigDict(extra="ignore")

    id: int = Field(gt=0)
    url: str = Field(min_length=1, validation_alias=AliasChoices("url", "streamUrl", "stream_url"))
    display_name: str | None = Field(
        None, validation_alias=AliasChoices("display_name", "name", "displayName")
    )
    team_name: str | None = Field(None, validation_alias=AliasChoices("team_name", "teamName"))
    league_id: LeagueId | None = Field(None, validation_alias=AliasChoices("league_id", "leagueId"))
    is_active: bool = Field(True, validation_alias=AliasChoices("is_active", "isActive"))
    priority: int = 0
    description: str | None = None
    created_at: datetime | None = Field(
        None, validation_alias=AliasChoices("created_at", "createdAt")
    )
    updated_at: datetime | None = Field(
        None, validation_alias=AliasChoices("updated_at", "updatedAt")
    )

    @field_validator("url", mode="before")
    @classmethod
    def _strip_url(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value

    @field_validator("league_id", mode="before")
    @classmethod
    def _lower_league(cls, value: Any) -> Any:
        return value.strip().lower() if isinstance(value, str) else value

    def to_source(self, registry: _Registry) -> StreamSource:
        """Fill any missing names or league from the registry."""
        defaults = registry.classify(self.id)
        return StreamSource(
            id=self.id,
            display_name=self.display_name or defaults.display_name,
            team_name=self.team_name or defaults.team_name,
            league_id=self.league_id or defaults.league_id,
            url=self.url,
            is_active=self.is_active,
            priority=self.priority,
            description=self.description,
            created_at=as_utc(self.created_at),
            # A record on disk was persisted by definition
            updated_at=as_utc(self.updated_at or self.created_at) or _EPOCH,
        )


def source_to_json(source: StreamSource) -> dict:
    """Snake_case JSON form, matching the stream_sources columns."""
    return {
        "id": source.id,
        "name": source.display_name,
        "team_name": source.team_name,
        "url": source.url,
        "league_id": source.league_id.value,
        "is_active": source.is_active,
        "priority": source.priority,
        "description": source.description,
        "created_at": source.created_at.isoformat() if source.created_at else None,
        "updated_at": source.updated_at.isoformat() if source.updated_at else None,
    }


# =============================================================================
# FILE CACHE
# =============================================================================


@dataclass
class FileCacheSnapshot:
    """Result of reading the cache file."""

    sources: dict[int, StreamSource] = field(default_factory=dict)
    quarantine: dict[str, dict] = field(default_factory=dict)
    mapping_version: int | None = None
    migrated: bool = False
    legacy_format: bool = False

    @property
    def needs_rewrite(self) -> bool:
        return self.migrated or self.legacy_format


class StreamSourceFileCache:
    """Reads and atomically rewrites the JSON cache file.

    Writes are serialized by an internal lock and go through a temp file
    plus os.replace, so a crash mid-write leaves the previous file intact.
    """

    def __init__(self, path: Path | str, registry: _Registry, template: StreamUrlTemplate):
        self.path = Path(path)
        self._registry = registry
        self._template = template
        self._lock = threading.Lock()
        self._quarantine: dict[str, dict] = {}

    # -------------------------------------------------------------------------
    # Read
    # -------------------------------------------------------------------------

    def load(self) -> FileCacheSnapshot:
        """Read and validate the cache file.

        Missing file -> empty snapshot. Unparseable file -> empty snapshot,
        with a .corrupt copy kept next to it.
        """
        with self._lock:
            if not self.path.exists():
                logger.info("[FILE_CACHE] No cache file at %s", self.path)
                return FileCacheSnapshot(mapping_version=self._registry.version)

            try:
                data = json.loads(self.path.read_text(encoding="utf-8"))
            except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
                logger.error("[FILE_CACHE] Unreadable cache file %s: %s", self.path, e)
                self._backup_corrupt()
                return FileCacheSnapshot(mapping_version=self._registry.version)

            if not isinstance(data, dict):
                logger.error("[FILE_CACHE] Cache file %s is not a JSON object", self.path)
                self._backup_corrupt()
                return FileCacheSnapshot(mapping_version=self._registry.version)

            snapshot = self._parse(data)
            self._quarantine = dict(snapshot.quarantine)

        if snapshot.quarantine:
            logger.warning(
                "[FILE_CACHE] %d entries quarantined in %s",
                len(snapshot.quarantine),
                self.path,
            )
        logger.info(
            "[FILE_CACHE] Loaded %d sources from %s (mapping v%s)",
            len(snapshot.sources),
            self.path,
            snapshot.mapping_version,
        )
        return snapshot

    def _backup_corrupt(self) -> None:
        backup = self.path.with_suffix(self.path.suffix + ".corrupt")
        try:
            shutil.copy2(self.path, backup)
            logger.warning("[FILE_CACHE] Kept unreadable cache as %s", backup)
        except OSError as e:
            logger.warning("[FILE_CACHE] Could not back up unreadable cache: %s", e)

    def _parse(self, data: dict) -> FileCacheSnapshot:
        if "sources" in data and isinstance(data.get("sources"), dict):
            raw_entries = data["sources"]
            version = data.get("mapping_version")
            if not isinstance(version, int) or isinstance(version, bool):
                version = self._registry.version
            snapshot = FileCacheSnapshot(mapping_version=version)
            existing = data.get("quarantine")
            if isinstance(existing, dict):
                snapshot.quarantine.update(existing)
        else:
            raw_entries = {
                key[len(LEGACY_KEY_PREFIX) :]: value
                for key, value in data.items()
                if key.startswith(LEGACY_KEY_PREFIX)
            }
            snapshot = FileCacheSnapshot(
                mapping_version=self._registry.version, legacy_format=True
            )

        for key, entry in raw_entries.items():
            source = self._validate(key, entry, snapshot.quarantine)
            if source is not None:
                snapshot.sources[source.id] = source

        if snapshot.mapping_version < self._registry.version:
            self._migrate(snapshot)

        return snapshot

    def _validate(self, key: str, entry: Any, quarantine: dict) -> StreamSource | None:
        if isinstance(entry, dict) and "id" not in entry and str(key).isdigit():
            entry = {**entry, "id": int(key)}
        try:
            record = StreamSourceRecord.model_validate(entry)
        except ValidationError as e:
            reason = "; ".join(
                f"{'.'.join(str(p) for p in err['loc']) or 'entry'}: {err['msg']}"
                for err in e.errors()
            )
            quarantine[str(key)] = {"reason": reason, "entry": entry}
            logger.warning("[FILE_CACHE] Quarantined entry %s: %s", key, reason)
            return None

        if str(key).isdigit() and int(key) != record.id:
            quarantine[str(key)] = {
                "reason": f"key {key} does not match id {record.id}",
                "entry": entry,
            }
            logger.warning("[FILE_CACHE] Quarantined entry %s: id mismatch", key)
            return None

        return record.to_source(self._registry)

    def _migrate(self, snapshot: FileCacheSnapshot) -> None:
        """Re-key records written under an older mapping version."""
        from_version = snapshot.mapping_version
        migrated: dict[int, StreamSource] = {}
        for old_id, source in sorted(snapshot.sources.items()):
            new_id = self._registry.translate_stream_id(old_id, from_version)
            if new_id is None:
                snapshot.quarantine[str(old_id)] = {
                    "reason": f"no mapping from v{from_version} to v{self._registry.version}",
                    "entry": source_to_json(source),
                }
                logger.warning(
                    "[FILE_CACHE] Stream %d has no mapping from v%d, quarantined",
                    old_id,
                    from_version,
                )
                continue

            url = source.url
            if extract_stream_id(url) == old_id:
                url = migrate_stream_url(url, from_version, self._registry, self._template) or url
            moved = StreamSource(
                id=new_id,
                display_name=source.display_name,
                team_name=source.team_name,
                league_id=source.league_id,
                url=url,
                is_active=source.is_active,
                priority=source.priority,
                description=source.description,
                created_at=source.created_at,
                updated_at=source.updated_at,
            )

            current = migrated.get(new_id)
            if current is not None and current.updated_at >= moved.updated_at:
                snapshot.quarantine[str(old_id)] = {
                    "reason": f"collides with stream {new_id} after migration",
                    "entry": source_to_json(source),
                }
                continue
            migrated[new_id] = moved

        logger.info(
            "[FILE_CACHE] Migrated %d sources from mapping v%d to v%d",
            len(migrated),
            from_version,
            self._registry.version,
        )
        snapshot.sources = migrated
        snapshot.mapping_version = self._registry.version
        snapshot.migrated = True

    # -------------------------------------------------------------------------
    # Write
    # -------------------------------------------------------------------------

    def save(self, sources: list[StreamSource]) -> None:
        """Atomically replace the cache file with the given records.

        Raises:
            OSError: If the file cannot be written
        """
        with self._lock:
            # A valid record for an ID supersedes whatever was quarantined under it
            resolved = [str(s.id) for s in sources if str(s.id) in self._quarantine]
            quarantine = {k: v for k, v in self._quarantine.items() if k not in resolved}
            payload = {
                "mapping_version": self._registry.version,
                "sources": {
                    str(s.id): source_to_json(s) for s in sorted(sources, key=lambda s: s.id)
                },
                "quarantine": quarantine,
            }
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(payload, f, indent=2)
                    f.flush()
                    os.fsync(f.fileno())
                os.replace(tmp_name, self.path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
            self._quarantine = quarantine

        if resolved:
            logger.info("[FILE_CACHE] Cleared quarantine for streams %s", ", ".join(resolved))
        logger.debug("[FILE_CACHE] Wrote %d sources to %s", len(sources), self.path)

    @property
    def quarantine(self) -> dict[str, dict]:
        with self._lock:
            return dict(self._quarantine)
