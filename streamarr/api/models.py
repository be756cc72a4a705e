"""Pydantic models for API request/response validation.

Clients speak camelCase; models accept either case on input.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from streamarr.consumers.matching.result import ResolutionResult, SideResolution
from streamarr.core.types import LeagueId, StreamSource


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# =============================================================================
# Stream sources
# =============================================================================


class StreamSourceResponse(CamelModel):
    id: int
    display_name: str
    team_name: str
    league_id: str
    url: str
    is_active: bool
    priority: int = 0
    description: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    is_default: bool = Field(False, description="True if no override was ever saved")

    @classmethod
    def from_source(cls, source: StreamSource) -> "StreamSourceResponse":
        return cls(
            id=source.id,
            display_name=source.display_name,
            team_name=source.team_name,
            league_id=source.league_id.value,
            url=source.url,
            is_active=source.is_active,
            priority=source.priority,
            description=source.description,
            created_at=source.created_at,
            updated_at=source.updated_at,
            is_default=source.is_synthesized,
        )


class StreamSourceListResponse(CamelModel):
    sources: list[StreamSourceResponse]
    total: int


class LatestSourcesResponse(CamelModel):
    """Full catalog plus the mapping version it was numbered under."""

    sources: list[StreamSourceResponse]
    total: int
    mapping_version: int
    client_version: int | None = None
    stale: bool = Field(False, description="Client's cached IDs predate the current mapping")


class PlaybackResponse(CamelModel):
    """What a player should load for one stream."""

    stream_id: int
    url: str
    alternate_url: str | None = Field(None, description="Same stream on the legacy host")


class StreamSourceUpdate(CamelModel):
    """Partial update. Omitted fields are preserved."""

    display_name: str | None = None
    team_name: str | None = None
    league_id: LeagueId | None = None
    url: str | None = None
    is_active: bool | None = None
    priority: int | None = None
    description: str | None = None

    def changes(self) -> dict:
        """Only the fields the client actually sent, snake_case."""
        return self.model_dump(exclude_unset=True, by_alias=False)


class StreamSourceCreate(StreamSourceUpdate):
    id: int = Field(..., gt=0)
    url: str = Field(..., min_length=1)

    def changes(self) -> dict:
        data = super().changes()
        data.pop("id", None)
        return data


# =============================================================================
# Game resolution
# =============================================================================


class TeamInput(CamelModel):
    name: str | None = None
    abbreviation: str | None = None


class GameStreamsRequest(CamelModel):
    id: str | None = None
    league: str | None = None
    home_team: TeamInput | None = None
    away_team: TeamInput | None = None
    name: str | None = None
    short_name: str | None = None

    def to_game_dict(self) -> dict:
        return self.model_dump(exclude_none=True, by_alias=False)


class SideResponse(CamelModel):
    team_name: str
    canonical_key: str
    stage: str
    stream_id: int | None = None
    url: str | None = None
    matched_key: str | None = None
    confidence: float = 0.0
    attempts: list[str] = []

    @classmethod
    def from_side(cls, side: SideResolution) -> "SideResponse":
        return cls(**side.to_dict())


class GameStreamsResponse(CamelModel):
    game_id: str
    home_stream_url: str | None = None
    away_stream_url: str | None = None
    home: SideResponse
    away: SideResponse

    @classmethod
    def from_result(cls, result: ResolutionResult) -> "GameStreamsResponse":
        return cls(
            game_id=result.game_id,
            home_stream_url=result.home_stream_url,
            away_stream_url=result.away_stream_url,
            home=SideResponse.from_side(result.home),
            away=SideResponse.from_side(result.away),
        )


# =============================================================================
# Mapping versions
# =============================================================================


class MappingVersionResponse(CamelModel):
    version: int
    note: str | None = None
    created_at: datetime | None = None


class MappingVersionListResponse(CamelModel):
    versions: list[MappingVersionResponse]
    current: int
    latest_recorded: int | None = None


class MappingVersionCreate(CamelModel):
    version: int = Field(..., gt=0)
    note: str | None = None
