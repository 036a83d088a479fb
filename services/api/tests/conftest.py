from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from fakes import API_URL, DOC_PATH, OWNER, REPO, TOKEN, FakeClock, FakeGitHub
from gitshelf.api.deps import get_cache, get_resolver, get_store
from gitshelf.core.config import settings as base_settings
from gitshelf.main import app
from gitshelf.schemas.settings import RepositoryLocation
from gitshelf.services.github.contents_client import RemoteDocumentClient
from gitshelf.services.library_store import LibraryStore
from gitshelf.services.local_settings import LocalSettingsStore
from gitshelf.services.repository_config import ConfigResolver
from gitshelf.services.sync_cache import SyncCache


@pytest.fixture()
def test_settings(tmp_path):
    return base_settings.model_copy(
        update={
            "github_api_url": API_URL,
            "bundled_config_path": str(tmp_path / "github-config.json"),
            "local_settings_path": str(tmp_path / "local" / "settings.json"),
            "single_flight_attempts": 2,
            "single_flight_interval_secs": 0.01,
        }
    )


@pytest.fixture()
def location() -> RepositoryLocation:
    return RepositoryLocation(owner=OWNER, repo=REPO, path=DOC_PATH, branch="main", token=TOKEN)


@pytest.fixture()
def fake_github() -> FakeGitHub:
    return FakeGitHub()


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def local_store(test_settings) -> LocalSettingsStore:
    return LocalSettingsStore(test_settings.local_settings_path)


@pytest.fixture()
def resolver(test_settings, local_store, location) -> ConfigResolver:
    r = ConfigResolver(test_settings, local_store=local_store)
    r.resolve()
    r.update(location)
    return r


@pytest.fixture()
def document_client(test_settings, fake_github) -> RemoteDocumentClient:
    return RemoteDocumentClient(test_settings, transport=fake_github.transport())


@pytest.fixture()
def cache(document_client, resolver, clock) -> SyncCache:
    return SyncCache(
        document_client,
        resolver,
        ttl_secs=300,
        wait_attempts=2,
        wait_interval_secs=0.01,
        clock=clock,
    )


@pytest.fixture()
def store(cache) -> LibraryStore:
    return LibraryStore(cache)


@pytest.fixture()
def client(store, cache, resolver):
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_cache] = lambda: cache
    app.dependency_overrides[get_resolver] = lambda: resolver
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
