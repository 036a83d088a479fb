from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Callable

from gitshelf.core.config import Settings
from gitshelf.core.errors import (
    ConfigIncompleteError,
    ConflictError,
    GitShelfError,
    RemoteError,
)
from gitshelf.schemas.library import LibraryDocument, utcnow
from gitshelf.schemas.settings import RepositoryLocation
from gitshelf.services.github.types import DocumentClient
from gitshelf.services.repository_config import ConfigResolver

logger = logging.getLogger(__name__)

LocationKey = tuple[str, str, str, str]


@dataclass(frozen=True)
class CachedDocument:
    key: LocationKey
    document: LibraryDocument
    # None while the remote file does not exist yet
    revision: str | None
    fetched_at: float


class SyncCache:
    """Time-bounded cache in front of the remote library document.

    Behavior:
    - A document younger than ``ttl_secs`` is served without a network call.
    - Concurrent ``get()`` calls for one location share a single fetch.
    - A missing remote file is cached as an empty document.
    - ``put()`` writes through, conditioned on the last revision seen.
    - Any configuration change drops the cached document.
    """

    def __init__(
        self,
        client: DocumentClient,
        resolver: ConfigResolver,
        *,
        ttl_secs: float = 300.0,
        wait_attempts: int = 10,
        wait_interval_secs: float = 0.5,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.client = client
        self.resolver = resolver
        self.ttl_secs = ttl_secs
        self.wait_attempts = wait_attempts
        self.wait_interval_secs = wait_interval_secs
        self._clock = clock

        self._entry: CachedDocument | None = None
        self._inflight: dict[LocationKey, asyncio.Future[CachedDocument]] = {}
        self._generation = 0
        self.last_error: GitShelfError | None = None

        resolver.subscribe(self._on_config_change)

    @classmethod
    def from_settings(
        cls, client: DocumentClient, resolver: ConfigResolver, settings: Settings
    ) -> "SyncCache":
        return cls(
            client,
            resolver,
            ttl_secs=settings.document_cache_ttl_secs,
            wait_attempts=settings.single_flight_attempts,
            wait_interval_secs=settings.single_flight_interval_secs,
        )

    @property
    def revision(self) -> str | None:
        return self._entry.revision if self._entry else None

    @property
    def is_fetching(self) -> bool:
        return bool(self._inflight)

    def invalidate(self) -> None:
        self._entry = None
        self._generation += 1
        logger.info("Library document cache invalidated")

    def _on_config_change(self, location: RepositoryLocation) -> None:
        self.invalidate()

    def _fresh(self, key: LocationKey) -> CachedDocument | None:
        entry = self._entry
        if entry is None or entry.key != key:
            return None
        if self._clock() - entry.fetched_at >= self.ttl_secs:
            return None
        return entry

    async def get(self, *, strict: bool = False) -> LibraryDocument:
        """Return a copy of the current library document.

        When ``strict`` is false, failures are logged and recorded on ``last_error``
        and the stale cached document (or an empty one) is returned instead.
        """
        location = self.resolver.location
        if not self.resolver.is_valid(location):
            err = ConfigIncompleteError()
            self.last_error = err
            if strict:
                raise err
            logger.warning("%s; serving an empty library", err.message)
            return LibraryDocument.empty()

        key = location.key
        fut = self._inflight.get(key)
        timeout: float | None = None

        if fut is None:
            entry = self._fresh(key)
            if entry is not None:
                logger.debug("Serving cached library document for %s", location.describe())
                return entry.document.model_copy(deep=True)
            fut = self._start_fetch(location)
        else:
            logger.debug("Joining in-flight fetch for %s", location.describe())
            timeout = self.wait_attempts * self.wait_interval_secs

        try:
            entry = await asyncio.wait_for(asyncio.shield(fut), timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning("Gave up waiting for in-flight fetch of %s", location.describe())
            return self._degrade(
                RemoteError("Timed out waiting for library data to load"), key, strict
            )
        except RemoteError as exc:
            return self._degrade(exc, key, strict)

        self.last_error = None
        return entry.document.model_copy(deep=True)

    def _start_fetch(self, location: RepositoryLocation) -> asyncio.Future[CachedDocument]:
        key = location.key
        fut = asyncio.ensure_future(self._fetch(location, self._generation))
        self._inflight[key] = fut

        def _done(f: asyncio.Future[CachedDocument]) -> None:
            if self._inflight.get(key) is f:
                del self._inflight[key]
            if not f.cancelled():
                # mark retrieved; every awaiter sees the error through shield()
                f.exception()

        fut.add_done_callback(_done)
        return fut

    async def _fetch(self, location: RepositoryLocation, generation: int) -> CachedDocument:
        result = await self.client.fetch(location)
        if result is None:
            entry = CachedDocument(
                key=location.key,
                document=LibraryDocument.empty(),
                revision=None,
                fetched_at=self._clock(),
            )
        else:
            entry = CachedDocument(
                key=location.key,
                document=result.document,
                revision=result.revision,
                fetched_at=self._clock(),
            )

        if generation == self._generation:
            self._entry = entry
        else:
            logger.debug("Discarding library document fetched before invalidation")
        return entry

    def _degrade(
        self, err: RemoteError, key: LocationKey, strict: bool
    ) -> LibraryDocument:
        self.last_error = err
        if strict:
            raise err
        entry = self._entry
        if entry is not None and entry.key == key:
            logger.warning("%s; serving cached library data", err.message)
            return entry.document.model_copy(deep=True)
        logger.warning("%s; serving an empty library", err.message)
        return LibraryDocument.empty()

    async def put(self, document: LibraryDocument) -> LibraryDocument:
        """Write ``document`` to the remote file and make it the cached copy.

        Raises ConfigIncompleteError, ConflictError or RemoteError; the cache is
        left untouched when the write fails.
        """
        location = self.resolver.location
        if not self.resolver.is_valid(location):
            raise ConfigIncompleteError()

        key = location.key
        entry = self._entry if self._entry is not None and self._entry.key == key else None
        generation = self._generation
        to_save = document.model_copy(deep=True, update={"last_updated": utcnow()})

        try:
            revision = await self.client.write(
                location,
                to_save,
                expected_revision=entry.revision if entry else None,
            )
        except ConflictError as exc:
            self.last_error = exc
            logger.warning("Save to %s rejected: %s", location.describe(), exc.message)
            raise
        except RemoteError as exc:
            self.last_error = exc
            raise

        if generation == self._generation:
            self._entry = CachedDocument(
                key=key,
                document=to_save,
                revision=revision,
                fetched_at=self._clock(),
            )
            # fetches still in flight read the file before this write
            self._generation += 1
            self._inflight.pop(key, None)
        self.last_error = None
        logger.info("Data saved to GitHub (%s, revision %s)", location.describe(), revision)
        return to_save.model_copy(deep=True)
