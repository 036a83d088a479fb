from __future__ import annotations

from functools import lru_cache

from gitshelf.core.config import settings
from gitshelf.services.github.contents_client import RemoteDocumentClient
from gitshelf.services.library_store import LibraryStore
from gitshelf.services.repository_config import ConfigResolver
from gitshelf.services.sync_cache import SyncCache


@lru_cache
def get_resolver() -> ConfigResolver:
    resolver = ConfigResolver(settings)
    resolver.resolve()
    return resolver


@lru_cache
def get_document_client() -> RemoteDocumentClient:
    return RemoteDocumentClient(settings)


@lru_cache
def get_cache() -> SyncCache:
    return SyncCache.from_settings(get_document_client(), get_resolver(), settings)


@lru_cache
def get_store() -> LibraryStore:
    return LibraryStore(get_cache())
