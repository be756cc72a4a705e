"""Home/away extraction from game records.

Structured team fields win. Otherwise the free-text title (then the short
name) is split on the first separator found, in GAME_SEPARATORS order.

Title conventions:
    "Celtics at Knicks"   -> away Celtics, home Knicks
    "Lakers vs Celtics"   -> away Lakers, home Celtics (unless the structured
                             home team identifies one side)
    "Lakers @ Celtics"    -> away Lakers, home Celtics
    "Knicks - Celtics"    -> home Knicks, away Celtics
"""

import logging
from dataclasses import dataclass

from streamarr.consumers.matching.normalizer import clean_name
from streamarr.core.types import GameReference
from streamarr.utilities.constants import GAME_SEPARATORS

logger = logging.getLogger(__name__)


@dataclass
class ExtractedTeams:
    """Team names pulled from a game, with where they came from."""

    home: str = ""
    away: str = ""
    source: str = "none"  # structured, title, short_name, none
    separator: str | None = None


def find_separator(text: str) -> tuple[str, bool, int] | None:
    """Locate the highest-priority separator in text (case-insensitive).

    Returns:
        (separator, away_first, index) or None
    """
    lowered = text.lower()
    for separator, away_first in GAME_SEPARATORS:
        index = lowered.find(separator)
        if index > 0:
            return separator, away_first, index
    return None


def _same_team(candidate: str, known: str) -> bool:
    if not candidate or not known:
        return False
    a, b = clean_name(candidate), clean_name(known)
    if a == b:
        return True
    shorter, longer = sorted((a, b), key=len)
    return len(shorter) >= 4 and shorter in longer


def split_title(
    text: str,
    known_home: str = "",
    known_home_abbrev: str = "",
) -> tuple[str, str, str] | None:
    """Split a title into (home, away, separator).

    For " vs " titles a side matching the known home name or abbreviation
    is taken as home; otherwise the first side is away.
    """
    found = find_separator(text)
    if found is None:
        return None
    separator, away_first, index = found

    first = text[:index].strip()
    second = text[index + len(separator) :].strip()
    if not first or not second:
        return None

    if separator.strip().lower().startswith("vs"):
        first_is_home = _same_team(first, known_home) or (
            bool(known_home_abbrev) and clean_name(first) == clean_name(known_home_abbrev)
        )
        if first_is_home:
            return first, second, separator.strip()

    if away_first:
        return second, first, separator.strip()
    return first, second, separator.strip()


def extract_teams(game: GameReference) -> ExtractedTeams:
    """Home and away display names for a game. Empty strings when unknown."""
    home = game.home_team.name
    away = game.away_team.name
    if home and away:
        return ExtractedTeams(home=home, away=away, source="structured")

    for source, text in (("title", game.name), ("short_name", game.short_name)):
        if not text:
            continue
        parsed = split_title(text, home, game.home_team.abbreviation)
        if parsed is None:
            continue
        parsed_home, parsed_away, separator = parsed
        logger.debug(
            "[RESOLVE] Parsed %r with %r: home=%r away=%r",
            text,
            separator,
            parsed_home,
            parsed_away,
        )
        # A structured name we do have overrides the parsed one for that side
        return ExtractedTeams(
            home=home or parsed_home,
            away=away or parsed_away,
            source=source,
            separator=separator,
        )

    return ExtractedTeams(home=home, away=away, source="structured" if home or away else "none")
