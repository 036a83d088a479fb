import json

import pytest

from gitshelf.schemas.settings import ConfigSource, RepositoryLocation
from gitshelf.services.local_settings import LocalSettingsStore
from gitshelf.services.repository_config import ConfigResolver


def _write_bundled(test_settings, **overrides):
    payload = {
        "owner": "district",
        "repo": "library-data",
        "path": "data/library.json",
        "branch": "prod",
        "token": "ghp_bundled",
    }
    payload.update(overrides)
    with open(test_settings.bundled_config_path, "w", encoding="utf-8") as fh:
        json.dump(payload, fh)


def test_defaults_when_nothing_configured(test_settings, local_store):
    resolver = ConfigResolver(test_settings, local_store=local_store)

    loc = resolver.resolve()

    assert loc.config_source == ConfigSource.default
    assert loc.path == "library-data.json"
    assert loc.branch == "main"
    assert resolver.read_only is False
    assert resolver.is_valid() is False


def test_bundled_file_wins_over_local_settings(test_settings, local_store):
    local_store.set(
        test_settings.local_settings_key,
        {"owner": "me", "repo": "mine", "path": "mine.json", "branch": "main", "token": "x"},
    )
    _write_bundled(test_settings)

    resolver = ConfigResolver(test_settings, local_store=local_store)
    loc = resolver.resolve()

    assert loc.owner == "district"
    assert loc.branch == "prod"
    assert loc.token == "ghp_bundled"
    assert loc.config_source == ConfigSource.file
    assert resolver.read_only is True


def test_bundled_config_rejects_user_updates(test_settings, local_store):
    _write_bundled(test_settings)
    resolver = ConfigResolver(test_settings, local_store=local_store)
    resolver.resolve()
    seen = []
    resolver.subscribe(seen.append)

    result = resolver.update(RepositoryLocation(owner="me", repo="mine", path="mine.json"))

    assert result.applied is False
    assert resolver.location.owner == "district"
    assert seen == []
    assert local_store.get(test_settings.local_settings_key) is None


def test_bundled_without_token_is_ignored(test_settings, local_store):
    _write_bundled(test_settings, token="")
    local_store.set(
        test_settings.local_settings_key,
        {"owner": "me", "repo": "mine", "path": "mine.json", "branch": "dev"},
    )

    loc = ConfigResolver(test_settings, local_store=local_store).resolve()

    assert loc.owner == "me"
    assert loc.branch == "dev"
    assert loc.config_source == ConfigSource.local_storage


def test_unparseable_bundled_file_is_ignored(test_settings, local_store):
    with open(test_settings.bundled_config_path, "w", encoding="utf-8") as fh:
        fh.write("{not json")

    loc = ConfigResolver(test_settings, local_store=local_store).resolve()

    assert loc.config_source == ConfigSource.default


def test_stored_blob_as_json_string_is_accepted(test_settings, local_store):
    local_store.set(
        test_settings.local_settings_key,
        json.dumps({"owner": "me", "repo": "mine", "path": "data/lib", "token": "t"}),
    )

    loc = ConfigResolver(test_settings, local_store=local_store).resolve()

    assert loc.path == "data/lib.json"
    assert loc.token == "t"


def test_corrupt_local_settings_fall_back_to_defaults(test_settings):
    store = LocalSettingsStore(test_settings.local_settings_path)
    store.path.parent.mkdir(parents=True)
    store.path.write_text("[1, 2", encoding="utf-8")

    loc = ConfigResolver(test_settings, local_store=store).resolve()

    assert loc.config_source == ConfigSource.default


def test_update_persists_and_notifies(test_settings, local_store):
    resolver = ConfigResolver(test_settings, local_store=local_store)
    resolver.resolve()
    seen = []
    resolver.subscribe(seen.append)

    result = resolver.update(
        RepositoryLocation(owner=" acme ", repo="lib", path="books.csv", branch="", token="t")
    )

    assert result.applied is True
    assert result.corrected_path is True
    assert result.location.path == "books.json"
    assert result.location.owner == "acme"
    assert result.location.branch == "main"
    assert [loc.path for loc in seen] == ["books.json"]

    stored = local_store.get(test_settings.local_settings_key)
    assert stored == {
        "owner": "acme",
        "repo": "lib",
        "path": "books.json",
        "branch": "main",
        "token": "t",
    }

    # a fresh process picks the saved configuration up again
    reloaded = ConfigResolver(test_settings, local_store=local_store).resolve()
    assert reloaded.describe() == "acme/lib@main:books.json"


@pytest.mark.parametrize(
    "path, expected, corrected",
    [
        ("library-data.json", "library-data.json", False),
        ("data/Library.JSON", "data/Library.JSON", False),
        ("data/library.txt", "data/library.json", True),
        ("data/library", "data/library.json", True),
        ("archive.tar.gz", "archive.tar.json", True),
        ("", "", False),
        ("library.", "library.json", True),
        ("data/library.", "data/library.json", True),
        (".", "", True),
        ("data/..", "", True),
    ],
)
def test_normalize_path(test_settings, local_store, path, expected, corrected):
    resolver = ConfigResolver(test_settings, local_store=local_store)
    assert resolver.normalize_path(path) == (expected, corrected)


def test_is_valid_does_not_require_credential(test_settings, local_store):
    resolver = ConfigResolver(test_settings, local_store=local_store)

    assert resolver.is_valid(RepositoryLocation(owner="a", repo="b", path="c.json"))
    assert not resolver.is_valid(RepositoryLocation(owner="a", repo="", path="c.json"))
    assert not resolver.is_valid(RepositoryLocation(owner="a", repo="b", path="  "))
    assert not resolver.is_valid(RepositoryLocation(owner="a", repo="b", path="."))
    assert not resolver.is_valid(RepositoryLocation(owner="a", repo="b", path="data/.."))
