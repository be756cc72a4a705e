"""Team name normalization.

Produces one canonical uppercase key from arbitrary team-name input so that
"LA Lakers", "Los Angeles Lakers" and "los angeles lakers" collide:
- Transliterates accents (Montréal -> MONTREAL)
- Trims, collapses whitespace, uppercases
- Folds "ST." to "ST"
- Replaces the whole string from the synonym table on exact match only
"""

import re

from unidecode import unidecode

from streamarr.utilities.constants import NAME_SYNONYMS

_ST_ABBREVIATION = re.compile(r"\bST\.+\s*")


def clean_name(raw: object) -> str:
    """Casing and whitespace cleanup without synonym replacement."""
    if not isinstance(raw, str):
        return ""
    text = unidecode(raw).upper()
    text = _ST_ABBREVIATION.sub("ST ", text)
    return " ".join(text.split())


def normalize(raw: object) -> str:
    """Canonical lookup key for a team name.

    Idempotent and case-insensitive. Never raises: non-string input
    normalizes to "".

    Args:
        raw: Team name as received

    Returns:
        Uppercase canonical key
    """
    key = clean_name(raw)
    return NAME_SYNONYMS.get(key, key)
