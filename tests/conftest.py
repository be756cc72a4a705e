"""Shared fixtures: every test gets its own file cache and database."""

from functools import partial

import pytest

from streamarr.consumers.resolver import StreamResolver
from streamarr.database import StreamSourceFileCache, get_db, init_db
from streamarr.registry import IdentifierRegistry
from streamarr.services import OverrideStore
from streamarr.utilities.stream_url import StreamUrlTemplate


@pytest.fixture
def template():
    return StreamUrlTemplate()


@pytest.fixture
def registry(template):
    return IdentifierRegistry(template)


@pytest.fixture
def cache_path(tmp_path):
    return tmp_path / "stream-url-storage.json"


@pytest.fixture
def file_cache(cache_path, registry, template):
    return StreamSourceFileCache(cache_path, registry, template)


@pytest.fixture
def db_path(tmp_path):
    path = tmp_path / "streamarr.db"
    init_db(path)
    return path


@pytest.fixture
def db_factory(db_path):
    return partial(get_db, db_path, 5.0)


@pytest.fixture
def store(registry, file_cache):
    """Store backed by the file cache only."""
    store = OverrideStore(registry, file_cache)
    store.start()
    yield store
    store.close()


@pytest.fixture
def db_store(registry, file_cache, db_factory):
    """Store with the database mirror enabled."""
    store = OverrideStore(registry, file_cache, db_factory=db_factory, db_timeout=5.0)
    store.start()
    yield store
    store.close()


@pytest.fixture
def resolver(store, registry):
    return StreamResolver(store, registry)
