"""Identifier registry: stream ID -> league classification.

Each mapping version is an ordered tuple of disjoint ID ranges. The upstream
provider renumbers blocks from time to time (MLB moved 36-65 -> 148-177 ->
185-214), so ranges live here and nowhere else; lookups never hardcode IDs.
"""

import logging
import re
from dataclasses import dataclass

from streamarr.core.types import Classification, LeagueId, StreamSource
from streamarr.registry.teams import (
    CHANNELS_BY_ID,
    NETWORK_CHANNELS,
    TEAM_IDS,
    TEAMS_BY_ID,
    TeamEntry,
)
from streamarr.utilities.stream_url import StreamUrlTemplate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IdRange:
    """Inclusive [min_id, max_id] block owned by one league."""

    min_id: int
    max_id: int
    league_id: LeagueId

    def __contains__(self, stream_id: int) -> bool:
        return self.min_id <= stream_id <= self.max_id

    @property
    def size(self) -> int:
        return self.max_id - self.min_id + 1


@dataclass(frozen=True)
class MappingVersion:
    """A numbered layout of the upstream playlist."""

    version: int
    ranges: tuple[IdRange, ...]
    note: str = ""

    def __post_init__(self):
        ordered = sorted(self.ranges, key=lambda r: r.min_id)
        for previous, current in zip(ordered, ordered[1:]):
            if current.min_id <= previous.max_id:
                raise ValueError(
                    f"Mapping v{self.version}: range {current.min_id}-{current.max_id} "
                    f"({current.league_id.value}) overlaps {previous.min_id}-{previous.max_id} "
                    f"({previous.league_id.value})"
                )
        for r in self.ranges:
            if r.min_id < 1 or r.max_id < r.min_id:
                raise ValueError(f"Mapping v{self.version}: invalid range {r.min_id}-{r.max_id}")

    def find(self, stream_id: int) -> IdRange | None:
        """First range containing stream_id, in declaration order."""
        for id_range in self.ranges:
            if stream_id in id_range:
                return id_range
        return None

    def block(self, league_id: LeagueId) -> IdRange | None:
        """The league's primary (largest) block."""
        blocks = [r for r in self.ranges if r.league_id == league_id]
        return max(blocks, key=lambda r: r.size) if blocks else None


LEAGUE_NETWORKS_MAX = 5
SPORTS_CHANNELS_MIN = 96
SPORTS_CHANNELS_MAX = 146


def _singles(ids: list[int], league_id: LeagueId) -> tuple[IdRange, ...]:
    return tuple(IdRange(i, i, league_id) for i in sorted(ids))


def _carve(min_id: int, max_id: int, league_id: LeagueId, taken: set[int]) -> list[IdRange]:
    """Contiguous runs of [min_id, max_id] that skip the taken IDs."""
    runs = []
    start = None
    for stream_id in range(min_id, max_id + 2):
        free = stream_id <= max_id and stream_id not in taken
        if free and start is None:
            start = stream_id
        elif not free and start is not None:
            runs.append(IdRange(start, stream_id - 1, league_id))
            start = None
    return runs


def _current_ranges() -> tuple[IdRange, ...]:
    blocks = (
        IdRange(1, LEAGUE_NETWORKS_MAX, LeagueId.SPECIAL),
        IdRange(6, 34, LeagueId.NHL),
        IdRange(35, 63, LeagueId.NFL),
        IdRange(65, 95, LeagueId.NBA),
        IdRange(185, 214, LeagueId.MLB),
        IdRange(215, 218, LeagueId.NHL),
        IdRange(219, 222, LeagueId.NBA),
    )
    # Teams the provider added outside their league's block
    strays: dict[LeagueId, list[int]] = {}
    for stream_id, team in TEAMS_BY_ID.items():
        if not any(stream_id in block for block in blocks):
            strays.setdefault(team.league_id, []).append(stream_id)

    ranges = list(blocks)
    for league_id, ids in strays.items():
        ranges.extend(_singles(ids, league_id))

    # Sports channel strip; stray teams inside it keep their own league
    stray_ids = {i for ids in strays.values() for i in ids}
    ranges.extend(_carve(SPORTS_CHANNELS_MIN, SPORTS_CHANNELS_MAX, LeagueId.SPECIAL, stray_ids))

    loose = [c.stream_id for c in NETWORK_CHANNELS if not any(c.stream_id in r for r in ranges)]
    ranges.extend(_singles(loose, LeagueId.SPECIAL))
    return tuple(ranges)


# =============================================================================
# MAPPING VERSION HISTORY
# =============================================================================

MAPPING_VERSIONS: dict[int, MappingVersion] = {
    1: MappingVersion(
        1,
        (
            IdRange(1, 5, LeagueId.SPECIAL),
            IdRange(6, 35, LeagueId.NHL),
            IdRange(36, 65, LeagueId.MLB),
            IdRange(66, 97, LeagueId.NFL),
            IdRange(98, 127, LeagueId.NBA),
        ),
        "Initial playlist layout",
    ),
    2: MappingVersion(
        2,
        (
            IdRange(1, 5, LeagueId.SPECIAL),
            IdRange(6, 35, LeagueId.NHL),
            IdRange(66, 97, LeagueId.NFL),
            IdRange(98, 127, LeagueId.NBA),
            IdRange(148, 177, LeagueId.MLB),
        ),
        "MLB moved to 148-177",
    ),
    3: MappingVersion(
        3,
        (
            IdRange(1, 5, LeagueId.SPECIAL),
            IdRange(6, 35, LeagueId.NHL),
            IdRange(36, 65, LeagueId.NFL),
            IdRange(98, 127, LeagueId.NBA),
            IdRange(148, 177, LeagueId.MLB),
        ),
        "NFL moved to 36-65",
    ),
    4: MappingVersion(4, _current_ranges(), "MLB moved to 185-214, live playlist layout"),
}

CURRENT_MAPPING_VERSION = max(MAPPING_VERSIONS)

_PLACEHOLDER_PATTERNS = (
    re.compile(r"^(SPECIAL|SPORTS) CHANNEL \d+$", re.IGNORECASE),
    re.compile(r"^(NHL|NBA|NFL|MLB|SPECIAL) - TEAM \d+$", re.IGNORECASE),
    re.compile(r"^(NHL|NBA|NFL|MLB|SPECIAL) TEAM \d+$", re.IGNORECASE),
    re.compile(r"^(STREAM|TEAM|ADDITIONAL CHANNEL) \d+$", re.IGNORECASE),
)


def is_placeholder_name(text: str | None) -> bool:
    """True for generated names like "NHL - Team 12" or "Stream 9999"."""
    if not text or not text.strip():
        return True
    return any(p.match(text.strip()) for p in _PLACEHOLDER_PATTERNS)


class IdentifierRegistry:
    """Static classification of stream IDs for one mapping version.

    Pure lookups over immutable tables; safe to share between threads.

    Usage:
        registry = IdentifierRegistry(template)
        registry.classify(210)   # Classification(LeagueId.MLB, "MLB - Boston Red Sox", ...)
        registry.classify(9999)  # Classification(LeagueId.OTHER, "Stream 9999", "Team 9999")
    """

    def __init__(self, template: StreamUrlTemplate, version: int = CURRENT_MAPPING_VERSION):
        if version not in MAPPING_VERSIONS:
            raise ValueError(f"Unknown mapping version: {version}")
        self.template = template
        self.version = version
        self.mapping = MAPPING_VERSIONS[version]
        self._catalog = tuple(
            sorted({i for r in self.mapping.ranges for i in range(r.min_id, r.max_id + 1)})
        )

    def classify(self, stream_id: int) -> Classification:
        """Classify a stream ID. Never raises."""
        if not isinstance(stream_id, int) or isinstance(stream_id, bool) or stream_id < 1:
            return Classification(LeagueId.OTHER, f"Stream {stream_id}", f"Team {stream_id}")

        id_range = self.mapping.find(stream_id)
        if id_range is None:
            return Classification(LeagueId.OTHER, f"Stream {stream_id}", f"Team {stream_id}")

        league_id = id_range.league_id
        if self.version == CURRENT_MAPPING_VERSION:
            team = TEAMS_BY_ID.get(stream_id)
            if team is not None and team.league_id == league_id:
                return Classification(
                    league_id, f"{league_id.value.upper()} - {team.name}", team.name
                )
            channel = CHANNELS_BY_ID.get(stream_id)
            if channel is not None:
                return Classification(league_id, channel.name, channel.name)

        if league_id == LeagueId.SPECIAL:
            kind = "Special" if stream_id <= LEAGUE_NETWORKS_MAX else "Sports"
            name = f"{kind} Channel {stream_id}"
            return Classification(league_id, name, name)

        label = league_id.value.upper()
        return Classification(league_id, f"{label} - Team {stream_id}", f"{label} Team {stream_id}")

    def catalog_ids(self) -> tuple[int, ...]:
        """Every stream ID covered by the active mapping, ascending."""
        return self._catalog

    def is_catalog_id(self, stream_id: int) -> bool:
        return self.mapping.find(stream_id) is not None

    def default_source(self, stream_id: int) -> StreamSource:
        """Registry default for an ID, never persisted (updated_at is None)."""
        classification = self.classify(stream_id)
        return StreamSource(
            id=stream_id,
            display_name=classification.display_name,
            team_name=classification.team_name,
            league_id=classification.league_id,
            url=self.template.fallback_url(stream_id),
        )

    def lookup_team(self, key: str) -> int | None:
        """Stream ID for a normalized full team or channel name."""
        if self.version != CURRENT_MAPPING_VERSION:
            return None
        return TEAM_IDS.get(key)

    def team_entry(self, stream_id: int) -> TeamEntry | None:
        if self.version != CURRENT_MAPPING_VERSION:
            return None
        return TEAMS_BY_ID.get(stream_id)

    def is_stale(self, version: int) -> bool:
        return version < self.version

    def translate_stream_id(self, stream_id: int, from_version: int) -> int | None:
        """Map an ID written under an older mapping version onto this one.

        Returns:
            The ID unchanged when its league did not move, the offset ID when
            the league's block moved without changing size, None when the ID
            cannot be mapped without reusing it for a different league.
        """
        if from_version == self.version:
            return stream_id
        if from_version not in MAPPING_VERSIONS:
            logger.warning("[REGISTRY] Unknown source mapping version %s", from_version)
            return None

        old_range = MAPPING_VERSIONS[from_version].find(stream_id)
        if old_range is None:
            return stream_id

        new_range = self.mapping.find(stream_id)
        if new_range is not None and new_range.league_id == old_range.league_id:
            return stream_id

        old_block = MAPPING_VERSIONS[from_version].block(old_range.league_id)
        new_block = self.mapping.block(old_range.league_id)
        if old_block is None or new_block is None or old_block.size != new_block.size:
            return None
        if stream_id not in old_block:
            return None
        return new_block.min_id + (stream_id - old_block.min_id)
