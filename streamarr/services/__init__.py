"""Service layer.

Owns the long-lived stream services for one process:
    API -> Services -> Consumers -> Registry / Database
"""

from streamarr.services.override_store import OverrideExistsError, OverrideStore
from streamarr.services.stream_services import StreamServices, create_stream_services

__all__ = [
    "OverrideExistsError",
    "OverrideStore",
    "StreamServices",
    "create_stream_services",
]
