"""Resolution constants.

Hardcoded synonyms and separators that fuzzy matching can't be trusted with.
Full-name spelling variants come from the team tables; this module only adds
nickname shortcuts and title parsing patterns.
"""

from streamarr.core.types import LeagueId
from streamarr.registry.teams import ALL_TEAMS, FULL_NAME_VARIANTS, UNAMBIGUOUS_NICKNAMES

# =============================================================================
# NICKNAME SYNONYMS
# Football feeds routinely send the bare nickname ("BEARS"). Only nicknames
# that no other league uses are folded into the full name here; shared ones
# (CARDINALS, GIANTS, JETS, PANTHERS) stay as-is and are resolved later with
# the game's league.
#
# Format: NICKNAME -> CANONICAL FULL NAME (uppercase)
# =============================================================================


def _nfl_nickname_synonyms() -> dict[str, str]:
    synonyms = {}
    for team in ALL_TEAMS:
        if team.league_id != LeagueId.NFL:
            continue
        for nickname in team.nicknames:
            if UNAMBIGUOUS_NICKNAMES.get(nickname) == team.stream_id:
                synonyms[nickname] = team.name.upper()
    return synonyms


NFL_NICKNAME_SYNONYMS: dict[str, str] = _nfl_nickname_synonyms()


# =============================================================================
# SYNONYM TABLE
# Applied only when the whole normalized input equals a key.
# =============================================================================

NAME_SYNONYMS: dict[str, str] = {**FULL_NAME_VARIANTS, **NFL_NICKNAME_SYNONYMS}

# One hop only: no synonym may point at another synonym key.
_chained = sorted(set(NAME_SYNONYMS) & set(NAME_SYNONYMS.values()))
if _chained:
    raise ValueError(f"Synonym table contains alias chains: {', '.join(_chained)}")
del _chained


# =============================================================================
# GAME TITLE SEPARATORS
# Tried in order. away_first says which side of the separator is the away
# team; " - " titles list the home team first.
# =============================================================================

GAME_SEPARATORS: list[tuple[str, bool]] = [
    (" at ", True),
    (" vs. ", True),
    (" vs ", True),
    (" @ ", True),
    (" - ", False),
]
