"""Team name matching: normalization, title parsing, and result tracking.

Main entry points:
    from streamarr.consumers.matching import normalize, extract_teams

    normalize("la lakers")  # "LOS ANGELES LAKERS"
"""

from streamarr.consumers.matching.normalizer import clean_name, normalize
from streamarr.consumers.matching.result import MatchStage, ResolutionResult, SideResolution
from streamarr.consumers.matching.separators import ExtractedTeams, extract_teams, split_title

__all__ = [
    "ExtractedTeams",
    "MatchStage",
    "ResolutionResult",
    "SideResolution",
    "clean_name",
    "extract_teams",
    "normalize",
    "split_title",
]
