"""Identifier registry: static stream ID ranges and team tables.

Usage:
    from streamarr.registry import IdentifierRegistry

    registry = IdentifierRegistry(template)
    registry.classify(201).team_name  # "Baltimore Orioles"
"""

from streamarr.registry.ranges import (
    CURRENT_MAPPING_VERSION,
    MAPPING_VERSIONS,
    IdentifierRegistry,
    IdRange,
    MappingVersion,
    is_placeholder_name,
)
from streamarr.registry.teams import (
    ALL_TEAMS,
    TeamEntry,
    prefixed_forms,
)

__all__ = [
    "ALL_TEAMS",
    "CURRENT_MAPPING_VERSION",
    "IdRange",
    "IdentifierRegistry",
    "MAPPING_VERSIONS",
    "MappingVersion",
    "TeamEntry",
    "is_placeholder_name",
    "prefixed_forms",
]
