"""Tests for team name normalization and title parsing."""

import pytest

from streamarr.consumers.matching import extract_teams, normalize, split_title
from streamarr.consumers.matching.separators import find_separator
from streamarr.core.types import GameReference, TeamRef
from streamarr.utilities.constants import NAME_SYNONYMS


# =============================================================================
# NORMALIZE
# =============================================================================


class TestNormalize:
    """Raw team name -> canonical key."""

    def test_uppercases_and_collapses_whitespace(self):
        assert normalize("  boston   red sox ") == "BOSTON RED SOX"

    def test_transliterates_accents(self):
        assert normalize("Montréal Canadiens") == "MONTREAL CANADIENS"

    def test_folds_st_abbreviation(self):
        assert normalize("St. Louis Blues") == "ST LOUIS BLUES"
        assert normalize("St.Louis Blues") == "ST LOUIS BLUES"
        assert normalize("St.. Louis Blues") == "ST LOUIS BLUES"

    def test_spelling_variants(self):
        assert normalize("LA Lakers") == "LOS ANGELES LAKERS"
        assert normalize("los angles lakers") == "LOS ANGELES LAKERS"
        assert normalize("Boston Seltics") == "BOSTON CELTICS"

    def test_unambiguous_nfl_nicknames(self):
        assert normalize("Bears") == "CHICAGO BEARS"
        assert normalize("redskins") == "WASHINGTON COMMANDERS"

    @pytest.mark.parametrize("nickname", ["PANTHERS", "CARDINALS", "GIANTS", "JETS"])
    def test_shared_nicknames_left_alone(self, nickname):
        assert normalize(nickname) == nickname

    def test_synonym_applies_to_whole_string_only(self):
        assert normalize("Bears Classic") == "BEARS CLASSIC"

    @pytest.mark.parametrize(
        "raw",
        [
            "la lakers",
            "LA LAKERS",
            "St. Louis Cardinals",
            "St.. Louis Blues",
            "St.Louis Blues",
            "Bears",
            "Hogwarts",
        ],
    )
    def test_idempotent(self, raw):
        assert normalize(normalize(raw)) == normalize(raw)

    def test_case_insensitive(self):
        assert normalize("boston bruins") == normalize("BOSTON BRUINS")

    @pytest.mark.parametrize("raw", [None, 42, "", "   "])
    def test_non_strings_and_blanks(self, raw):
        assert normalize(raw) == ""

    def test_no_alias_chains(self):
        assert not set(NAME_SYNONYMS) & set(NAME_SYNONYMS.values())


# =============================================================================
# TITLE PARSING
# =============================================================================


class TestSplitTitle:
    """Separator conventions."""

    def test_at_lists_away_first(self):
        assert split_title("Celtics at Knicks") == ("Knicks", "Celtics", "at")

    def test_vs_lists_away_first(self):
        assert split_title("Lakers vs Celtics") == ("Celtics", "Lakers", "vs")

    def test_vs_dot(self):
        assert split_title("Lakers vs. Celtics") == ("Celtics", "Lakers", "vs.")

    def test_at_sign(self):
        assert split_title("Lakers @ Celtics") == ("Celtics", "Lakers", "@")

    def test_dash_lists_home_first(self):
        assert split_title("Knicks - Celtics") == ("Knicks", "Celtics", "-")

    def test_vs_with_known_home_first(self):
        home, away, _ = split_title("Lakers vs Celtics", known_home="Los Angeles Lakers")
        assert (home, away) == ("Lakers", "Celtics")

    def test_vs_with_known_home_abbreviation(self):
        home, away, _ = split_title("LAL vs BOS", known_home_abbrev="lal")
        assert (home, away) == ("LAL", "BOS")

    def test_separator_priority(self):
        # " at " outranks " - "
        assert find_separator("NHL - Bruins at Rangers")[0] == " at "

    def test_case_insensitive(self):
        assert split_title("Lakers VS Celtics") == ("Celtics", "Lakers", "vs")

    def test_no_separator(self):
        assert split_title("Lakers") is None

    def test_leading_separator_ignored(self):
        assert split_title(" vs Celtics") is None


class TestExtractTeams:
    """Structured fields first, then title, then short name."""

    def test_structured_fields_win(self):
        game = GameReference(
            home_team=TeamRef("Boston Celtics"),
            away_team=TeamRef("Los Angeles Lakers"),
            name="Something vs Else",
        )
        teams = extract_teams(game)
        assert (teams.home, teams.away, teams.source) == (
            "Boston Celtics",
            "Los Angeles Lakers",
            "structured",
        )

    def test_title_fallback(self):
        teams = extract_teams(GameReference(name="Lakers at Celtics"))
        assert (teams.home, teams.away, teams.source) == ("Celtics", "Lakers", "title")

    def test_short_name_fallback(self):
        teams = extract_teams(GameReference(name="Opening Night", short_name="LAL @ BOS"))
        assert (teams.home, teams.away, teams.source) == ("BOS", "LAL", "short_name")

    def test_partial_structured_fills_from_title(self):
        game = GameReference(home_team=TeamRef("Boston Celtics"), name="Lakers @ Celtics")
        teams = extract_teams(game)
        assert (teams.home, teams.away) == ("Boston Celtics", "Lakers")

    def test_nothing_usable(self):
        teams = extract_teams(GameReference())
        assert (teams.home, teams.away, teams.source) == ("", "", "none")

    def test_from_dict_camel_case(self):
        game = GameReference.from_dict(
            {
                "id": 401,
                "league": "NBA",
                "homeTeam": {"name": "Boston Celtics", "abbreviation": "BOS"},
                "awayTeam": "Los Angeles Lakers",
            }
        )
        assert game.id == "401"
        assert game.home_team.abbreviation == "BOS"
        assert game.away_team.name == "Los Angeles Lakers"

    @pytest.mark.parametrize("raw", [None, [], "game", 12])
    def test_from_dict_malformed(self, raw):
        assert GameReference.from_dict(raw) == GameReference()
