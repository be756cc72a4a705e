"""Resolution results and provenance.

Each side of a game records which stage of the fallback chain produced its
URL, the key it matched on, and every key it tried along the way.
"""

from dataclasses import dataclass, field
from enum import Enum


class MatchStage(Enum):
    """Fallback chain stage that produced a match."""

    OVERRIDE = "override"  # Override store alias-aware index
    REGISTRY = "registry"  # Static team dictionary
    NICKNAME = "nickname"  # Direct nickname table
    LEAGUE_PREFIX = "league_prefix"  # NFL-X, VIP NBA X, MLB - X
    CONTAINMENT = "containment"  # Substring match against index keys
    UNRESOLVED = "unresolved"


@dataclass
class SideResolution:
    """Outcome for one side (home or away)."""

    team_name: str = ""
    canonical_key: str = ""
    stage: MatchStage = MatchStage.UNRESOLVED
    stream_id: int | None = None
    url: str | None = None
    matched_key: str | None = None
    confidence: float = 0.0
    attempts: list[str] = field(default_factory=list)

    @property
    def resolved(self) -> bool:
        return self.url is not None

    def to_dict(self) -> dict:
        return {
            "team_name": self.team_name,
            "canonical_key": self.canonical_key,
            "stage": self.stage.value,
            "stream_id": self.stream_id,
            "url": self.url,
            "matched_key": self.matched_key,
            "confidence": round(self.confidence, 1),
            "attempts": list(self.attempts),
        }


@dataclass
class ResolutionResult:
    """Playable URLs for a game. Ephemeral, never persisted."""

    home: SideResolution = field(default_factory=SideResolution)
    away: SideResolution = field(default_factory=SideResolution)
    game_id: str = ""

    @property
    def home_stream_url(self) -> str | None:
        return self.home.url

    @property
    def away_stream_url(self) -> str | None:
        return self.away.url

    @property
    def has_stream(self) -> bool:
        return self.home.resolved or self.away.resolved
