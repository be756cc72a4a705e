"""Wiring for the long-lived stream services.

Built once at process start (see api.app lifespan) and closed on shutdown.
Collaborators are passed explicitly; nothing here is a module global.
"""

import logging
from dataclasses import dataclass
from functools import partial
from pathlib import Path

from streamarr.config import Config
from streamarr.consumers.resolver import StreamResolver
from streamarr.database import StreamSourceFileCache, get_db, init_db
from streamarr.registry import IdentifierRegistry
from streamarr.services.override_store import OverrideStore
from streamarr.utilities.cache import RecordCache
from streamarr.utilities.stream_url import StreamUrlTemplate

logger = logging.getLogger(__name__)


@dataclass
class StreamServices:
    """Everything the HTTP layer needs, with one lifecycle."""

    config: Config
    template: StreamUrlTemplate
    registry: IdentifierRegistry
    store: OverrideStore
    resolver: StreamResolver
    db_path: Path | None = None

    def start(self) -> None:
        self.store.start()

    def close(self) -> None:
        self.store.close()

    def db(self):
        """Connection context manager for this instance's database."""
        return get_db(self.db_path, self.config.db_timeout_seconds)


def create_stream_services(
    config: Config,
    db_path: Path | str | None = None,
    cache_path: Path | str | None = None,
    use_database: bool = True,
) -> StreamServices:
    """Build (but do not start) the stream services.

    Args:
        config: Runtime settings
        db_path: Override config.database_path
        cache_path: Override config.stream_cache_path
        use_database: False runs from the file cache only

    Returns:
        StreamServices ready for start()
    """
    template = StreamUrlTemplate.from_config(config)
    registry = IdentifierRegistry(template)
    db_path = Path(db_path) if db_path else config.database_path
    cache_path = Path(cache_path) if cache_path else config.stream_cache_path

    db_factory = None
    if use_database:
        init_db(db_path)
        db_factory = partial(get_db, db_path, config.db_timeout_seconds)

    file_cache = StreamSourceFileCache(cache_path, registry, template)
    store = OverrideStore(
        registry,
        file_cache,
        cache=RecordCache(),
        db_factory=db_factory,
        db_timeout=config.db_timeout_seconds,
    )
    resolver = StreamResolver(store, registry)

    logger.info(
        "[SERVICES] Stream services created (mapping v%d, db=%s, cache=%s)",
        registry.version,
        db_path if use_database else "disabled",
        cache_path,
    )
    return StreamServices(
        config=config,
        template=template,
        registry=registry,
        store=store,
        resolver=resolver,
        db_path=db_path if use_database else None,
    )
