"""Database layer."""

from streamarr.database.connection import get_connection, get_db, init_db, reset_db
from streamarr.database.file_cache import (
    FileCacheSnapshot,
    StreamSourceFileCache,
    StreamSourceRecord,
)
from streamarr.database.mapping_versions import (
    MappingVersionRecord,
    get_latest_mapping_version,
    list_mapping_versions,
    record_mapping_version,
)
from streamarr.database.stream_sources import (
    delete_stream_source,
    get_stream_source,
    list_stream_sources,
    upsert_stream_source,
)

__all__ = [
    "FileCacheSnapshot",
    "MappingVersionRecord",
    "StreamSourceFileCache",
    "StreamSourceRecord",
    "delete_stream_source",
    "get_connection",
    "get_db",
    "get_latest_mapping_version",
    "get_stream_source",
    "init_db",
    "list_mapping_versions",
    "list_stream_sources",
    "record_mapping_version",
    "reset_db",
    "upsert_stream_source",
]
