"""Core data types shared by every layer.

Dataclasses for internal use; the API layer converts them to pydantic models
at the HTTP boundary.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any


def as_utc(value: datetime | None) -> datetime | None:
    """Timezone-aware UTC datetime. Naive values are taken to be UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def utc_now() -> datetime:
    return datetime.now(UTC)


class LeagueId(str, Enum):
    """League a stream belongs to."""

    NHL = "nhl"
    NBA = "nba"
    NFL = "nfl"
    MLB = "mlb"
    SPECIAL = "special"  # League networks and standalone channels
    OTHER = "other"  # Outside every known range

    @classmethod
    def parse(cls, value: Any) -> "LeagueId | None":
        """Lenient conversion: accepts enum members or case-insensitive strings."""
        if isinstance(value, LeagueId):
            return value
        if not isinstance(value, str):
            return None
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None


@dataclass(frozen=True)
class StreamSource:
    """A durable stream record.

    Records whose updated_at is None were synthesized from registry defaults
    and have never been persisted.
    """

    id: int
    display_name: str
    team_name: str
    league_id: LeagueId
    url: str
    is_active: bool = True
    priority: int = 0
    description: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_synthesized(self) -> bool:
        return self.updated_at is None


@dataclass(frozen=True)
class Classification:
    """Result of classifying a stream ID against the registry."""

    league_id: LeagueId
    display_name: str
    team_name: str


@dataclass
class TeamRef:
    """One side of a game as supplied by the schedule feed."""

    name: str = ""
    abbreviation: str = ""


def _text(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def _pick(data: dict, *keys: str) -> Any:
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return None


@dataclass
class GameReference:
    """Input to resolution. Every field may be empty."""

    id: str = ""
    league: str = ""
    home_team: TeamRef = field(default_factory=TeamRef)
    away_team: TeamRef = field(default_factory=TeamRef)
    name: str = ""
    short_name: str = ""

    @classmethod
    def from_dict(cls, data: Any) -> "GameReference":
        """Build from a loosely-shaped feed dict (camelCase or snake_case).

        Anything that is not a dict, or fields of the wrong type, degrade to
        empty values rather than raising.
        """
        if not isinstance(data, dict):
            return cls()

        def team(raw: Any) -> TeamRef:
            if isinstance(raw, str):
                return TeamRef(name=raw.strip())
            if not isinstance(raw, dict):
                return TeamRef()
            return TeamRef(
                name=_text(_pick(raw, "name", "displayName", "display_name")),
                abbreviation=_text(_pick(raw, "abbreviation", "abbrev")),
            )

        game_id = _pick(data, "id", "gameId", "game_id")
        return cls(
            id=str(game_id) if game_id is not None else "",
            league=_text(_pick(data, "league", "leagueId", "league_id")),
            home_team=team(_pick(data, "homeTeam", "home_team")),
            away_team=team(_pick(data, "awayTeam", "away_team")),
            name=_text(data.get("name")),
            short_name=_text(_pick(data, "shortName", "short_name")),
        )
