"""Game -> stream URL resolution.

Each side of a game runs the same fallback chain, stopping at the first hit:

1. Override store alias-aware index (normalized team/display names and
   league-prefixed forms of every active record)
2. Registry team dictionary (full names and spelling variants)
3. Direct nickname table ("PANTHERS" -> Florida Panthers when the game is
   NHL); without a league only nicknames unique across leagues count
4. League-prefixed forms of the input ("NFL-BEARS", "VIP NBA LAKERS")
5. Substring containment against every index key, both directions, both
   strings at least MIN_CONTAINMENT_LENGTH long

No match is a normal outcome and yields None for that side.
"""

import logging
from typing import TYPE_CHECKING

from rapidfuzz import fuzz

from streamarr.consumers.matching.normalizer import clean_name, normalize
from streamarr.consumers.matching.result import MatchStage, ResolutionResult, SideResolution
from streamarr.consumers.matching.separators import extract_teams
from streamarr.core.types import GameReference, LeagueId, StreamSource
from streamarr.registry import IdentifierRegistry, prefixed_forms
from streamarr.registry.teams import (
    ABBREVIATIONS_BY_LEAGUE,
    NICKNAMES_BY_LEAGUE,
    UNAMBIGUOUS_NICKNAMES,
)

if TYPE_CHECKING:
    from streamarr.services.override_store import OverrideStore

logger = logging.getLogger(__name__)

MIN_CONTAINMENT_LENGTH = 4

_TEAM_LEAGUES = (LeagueId.NHL, LeagueId.NBA, LeagueId.NFL, LeagueId.MLB)


class StreamResolver:
    """Resolves games to playable stream URLs.

    Read-only against its collaborators; safe to share between request
    threads.
    """

    def __init__(self, store: "OverrideStore", registry: IdentifierRegistry):
        self._store = store
        self._registry = registry
        self._template = registry.template

    def resolve(self, game: GameReference | dict | None) -> ResolutionResult:
        """Resolve both sides of a game independently.

        Args:
            game: GameReference, or a raw feed dict

        Returns:
            ResolutionResult; a side with no match has url None
        """
        if not isinstance(game, GameReference):
            game = GameReference.from_dict(game)

        teams = extract_teams(game)
        league_id = LeagueId.parse(game.league)
        if league_id not in _TEAM_LEAGUES:
            league_id = None

        result = ResolutionResult(
            home=self.resolve_team(teams.home, league_id, game.home_team.abbreviation),
            away=self.resolve_team(teams.away, league_id, game.away_team.abbreviation),
            game_id=game.id,
        )

        if result.has_stream:
            logger.debug(
                "[RESOLVE] Game %s: home=%s (%s) away=%s (%s)",
                game.id or "?",
                result.home.stream_id,
                result.home.stage.value,
                result.away.stream_id,
                result.away.stage.value,
            )
        else:
            logger.debug(
                "[RESOLVE] Game %s: no stream for %r / %r",
                game.id or "?",
                teams.home,
                teams.away,
            )
        return result

    def resolve_team(
        self,
        team_name: str,
        league_id: LeagueId | None = None,
        abbreviation: str = "",
    ) -> SideResolution:
        """Run the fallback chain for one team name."""
        side = SideResolution(team_name=team_name or "")
        key = normalize(team_name)
        side.canonical_key = key
        if not key:
            return side

        index = self._store.team_index()

        # 1. Override store
        side.attempts.append(key)
        record = index.get(key)
        if record is not None:
            return self._from_record(side, record, MatchStage.OVERRIDE, key)

        # 2. Registry team dictionary
        stream_id = self._registry.lookup_team(key)
        if stream_id is not None and self._finish(side, stream_id, MatchStage.REGISTRY, key):
            return side

        # 3. Direct nickname
        for nick_key, nick_id in self._nickname_candidates(key, league_id, abbreviation):
            side.attempts.append(nick_key)
            if self._finish(side, nick_id, MatchStage.NICKNAME, nick_key):
                return side

        # 4. League-prefixed forms
        hits: dict[int, tuple[str, StreamSource]] = {}
        for form in self._prefixed_candidates(key, league_id, abbreviation):
            side.attempts.append(form)
            record = index.get(form)
            if record is not None:
                if league_id is not None:
                    return self._from_record(side, record, MatchStage.LEAGUE_PREFIX, form)
                hits.setdefault(record.id, (form, record))
        if len(hits) == 1:
            form, record = next(iter(hits.values()))
            return self._from_record(side, record, MatchStage.LEAGUE_PREFIX, form)
        if hits:
            logger.debug(
                "[RESOLVE] %r matches streams %s in several leagues, need a league",
                team_name,
                sorted(hits),
            )

        # 5. Containment
        match = self._containment_match(key, league_id, index)
        if match is not None:
            matched_key, record, score = match
            side.attempts.append(f"~{matched_key}")
            self._from_record(side, record, MatchStage.CONTAINMENT, matched_key)
            side.confidence = score
            return side

        logger.debug("[RESOLVE] No stream for %r (tried %s)", team_name, ", ".join(side.attempts))
        return side

    # =========================================================================
    # Stages
    # =========================================================================

    def _nickname_candidates(
        self, key: str, league_id: LeagueId | None, abbreviation: str
    ) -> list[tuple[str, int]]:
        candidates = []
        if league_id is not None:
            nick_id = NICKNAMES_BY_LEAGUE.get(league_id, {}).get(key)
            if nick_id is not None:
                candidates.append((key, nick_id))
            abbrev = clean_name(abbreviation)
            abbrev_id = ABBREVIATIONS_BY_LEAGUE.get(league_id, {}).get(abbrev)
            if abbrev_id is not None:
                candidates.append((abbrev, abbrev_id))
        else:
            nick_id = UNAMBIGUOUS_NICKNAMES.get(key)
            if nick_id is not None:
                candidates.append((key, nick_id))
        return candidates

    def _prefixed_candidates(
        self, key: str, league_id: LeagueId | None, abbreviation: str
    ) -> list[str]:
        leagues = [league_id] if league_id is not None else list(_TEAM_LEAGUES)
        forms: list[str] = []
        for league in leagues:
            abbrev = clean_name(abbreviation) if league_id is not None else ""
            forms.extend(prefixed_forms(league, key, abbreviation=abbrev))
        return list(dict.fromkeys(forms))

    def _containment_match(
        self,
        key: str,
        league_id: LeagueId | None,
        index: dict[str, StreamSource],
    ) -> tuple[str, StreamSource, float] | None:
        if len(key) < MIN_CONTAINMENT_LENGTH:
            return None

        candidates = []
        for index_key, record in index.items():
            if len(index_key) < MIN_CONTAINMENT_LENGTH:
                continue
            if key in index_key or index_key in key:
                same_league = league_id is not None and record.league_id == league_id
                score = fuzz.ratio(key, index_key)
                candidates.append((same_league, score, index_key, record))

        if not candidates:
            return None

        # Same league first, then similarity, then key for determinism
        candidates.sort(key=lambda c: (not c[0], -c[1], c[2]))
        _, score, index_key, record = candidates[0]
        return index_key, record, score

    # =========================================================================
    # Helpers
    # =========================================================================

    def _from_record(
        self, side: SideResolution, record: StreamSource, stage: MatchStage, matched_key: str
    ) -> SideResolution:
        side.stage = stage
        side.stream_id = record.id
        side.url = self._template.standardize(record.url)
        side.matched_key = matched_key
        side.confidence = 100.0
        logger.debug(
            "[RESOLVE] %r -> stream %d via %s (%s)",
            side.team_name,
            record.id,
            stage.value,
            matched_key,
        )
        return side

    def _finish(
        self, side: SideResolution, stream_id: int, stage: MatchStage, matched_key: str
    ) -> bool:
        """Fill side from a stream ID. False if the stream is inactive."""
        record = self._store.get(stream_id)
        if record is None:
            record = self._registry.default_source(stream_id)
        if not record.is_active:
            logger.debug("[RESOLVE] Stream %d for %r is inactive", stream_id, side.team_name)
            return False
        self._from_record(side, record, stage, matched_key)
        return True
