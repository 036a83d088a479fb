from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Any, Callable

from pydantic import ValidationError

from gitshelf.core.config import Settings
from gitshelf.schemas.settings import ConfigSource, RepositoryLocation
from gitshelf.services.local_settings import LocalSettingsStore

logger = logging.getLogger(__name__)

ConfigListener = Callable[[RepositoryLocation], None]

# A bundled file is only honoured when it carries at least these.
_BUNDLED_REQUIRED = ("owner", "repo", "token")


def _has_file_name(path: str) -> bool:
    name = PurePosixPath(path.strip()).name
    return bool(name.strip(".").strip())


@dataclass(frozen=True)
class ConfigUpdate:
    applied: bool
    location: RepositoryLocation
    corrected_path: bool = False


class ConfigResolver:
    """Decides which repository file holds the library document.

    Sources, highest precedence first: the bundled deployment file, the
    configuration the user saved locally, built-in defaults. Once the bundled
    file wins it is authoritative and user updates are refused.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        local_store: LocalSettingsStore | None = None,
    ):
        self.settings = settings
        self.local_store = local_store or LocalSettingsStore(settings.local_settings_path)
        self._location = self._defaults()
        self._listeners: list[ConfigListener] = []

    @property
    def location(self) -> RepositoryLocation:
        return self._location.model_copy()

    @property
    def read_only(self) -> bool:
        return self._location.config_source == ConfigSource.file

    def subscribe(self, listener: ConfigListener) -> None:
        self._listeners.append(listener)

    def is_valid(self, location: RepositoryLocation | None = None) -> bool:
        loc = location if location is not None else self._location
        return bool(loc.owner.strip() and loc.repo.strip() and _has_file_name(loc.path))

    def normalize_path(self, path: str) -> tuple[str, bool]:
        """Force the document suffix onto ``path``, replacing any other extension.

        Returns the (possibly rewritten) path and whether it was changed. A path
        without a file name normalizes to the empty string.
        """
        value = path.strip()
        suffix = self.settings.document_suffix
        if not value:
            return value, value != path
        if not _has_file_name(value):
            return "", True
        if value.lower().endswith(suffix.lower()):
            return value, value != path

        pure = PurePosixPath(value)
        # "library." has an empty extension
        pure = pure.with_name(pure.name.rstrip("."))
        return str(pure.with_suffix(suffix)), True

    def resolve(self) -> RepositoryLocation:
        location = self._load_bundled() or self._load_local() or self._defaults()
        self._replace(location)
        return self.location

    def update(self, location: RepositoryLocation) -> ConfigUpdate:
        """Apply a user-entered configuration and persist it locally."""
        if self.read_only:
            logger.warning("Not overriding file config with user-supplied config")
            return ConfigUpdate(applied=False, location=self.location)

        path, corrected = self.normalize_path(location.path)
        new = location.model_copy(
            update={
                "owner": location.owner.strip(),
                "repo": location.repo.strip(),
                "path": path,
                "branch": location.branch.strip() or self.settings.default_branch,
                "token": location.token or None,
                "config_source": ConfigSource.local_storage,
            }
        )
        self.local_store.set(
            self.settings.local_settings_key,
            new.model_dump(mode="json", exclude={"config_source"}),
        )
        self._replace(new)
        logger.info("Repository configuration set to %s", new.describe())
        return ConfigUpdate(applied=True, location=self.location, corrected_path=corrected)

    def _replace(self, location: RepositoryLocation) -> None:
        self._location = location
        for listener in list(self._listeners):
            listener(location.model_copy())

    def _defaults(self) -> RepositoryLocation:
        return RepositoryLocation(
            path=self.settings.default_document_path,
            branch=self.settings.default_branch,
            config_source=ConfigSource.default,
        )

    def _load_bundled(self) -> RepositoryLocation | None:
        p = Path(self.settings.bundled_config_path)
        if not p.is_file():
            return None
        try:
            raw = json.loads(p.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.info("No usable GitHub config file at %s: %s", p, exc)
            return None
        if not isinstance(raw, dict) or not all(
            isinstance(raw.get(k), str) and raw[k].strip() for k in _BUNDLED_REQUIRED
        ):
            return None

        location = RepositoryLocation(
            owner=raw["owner"].strip(),
            repo=raw["repo"].strip(),
            path=str(raw.get("path") or self.settings.default_document_path).strip(),
            branch=str(raw.get("branch") or self.settings.default_branch).strip(),
            token=raw["token"].strip(),
            config_source=ConfigSource.file,
        )
        logger.info("GitHub config loaded from file %s", p)
        return location

    def _load_local(self) -> RepositoryLocation | None:
        blob: Any = self.local_store.get(self.settings.local_settings_key)
        if blob is None:
            return None
        if isinstance(blob, str):
            try:
                blob = json.loads(blob)
            except ValueError:
                blob = None
        if not isinstance(blob, dict):
            logger.warning("Error parsing stored GitHub config")
            return None

        try:
            location = RepositoryLocation.model_validate(
                {**blob, "configSource": ConfigSource.local_storage.value}
            )
        except ValidationError as exc:
            logger.warning("Error parsing stored GitHub config: %s", exc)
            return None

        path, _ = self.normalize_path(location.path)
        return location.model_copy(
            update={
                "path": path,
                "branch": location.branch or self.settings.default_branch,
            }
        )
