from __future__ import annotations

import base64
import binascii
import logging
from typing import Any
from urllib.parse import quote

import httpx
from opentelemetry import trace
from pydantic import ValidationError

from gitshelf.core.config import Settings
from gitshelf.core.errors import ConflictError, RemoteError
from gitshelf.schemas.library import LibraryDocument, utcnow
from gitshelf.schemas.settings import RepositoryLocation
from gitshelf.services.github.types import RemoteDocument

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

GITHUB_ACCEPT = "application/vnd.github.v3+json"


def _contents_url(location: RepositoryLocation) -> str:
    owner = quote(location.owner, safe="")
    repo = quote(location.repo, safe="")
    path = quote(location.path.strip("/"), safe="/")
    return f"/repos/{owner}/{repo}/contents/{path}"


def _error_message(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return resp.reason_phrase or "Unknown error"


def _json_object(resp: httpx.Response) -> dict[str, Any]:
    try:
        payload = resp.json()
    except ValueError as exc:
        raise RemoteError("GitHub returned a response that is not JSON") from exc
    if not isinstance(payload, dict):
        # A list means the path names a directory.
        raise RemoteError("GitHub path does not point to a file")
    return payload


def encode_document(document: LibraryDocument) -> str:
    return base64.b64encode(document.to_json().encode("utf-8")).decode("ascii")


def decode_document(content: str) -> LibraryDocument:
    """Decode the base64 ``content`` field of a contents API response."""
    try:
        raw = base64.b64decode(content)
        text = raw.decode("utf-8")
    except (binascii.Error, UnicodeDecodeError) as exc:
        raise RemoteError(f"Library document content could not be decoded: {exc}") from exc

    if not text.strip():
        return LibraryDocument.empty()

    try:
        return LibraryDocument.model_validate_json(text)
    except ValidationError as exc:
        raise RemoteError(f"Library document is malformed: {exc.error_count()} error(s)") from exc


class RemoteDocumentClient:
    """Reads and writes the library document through the GitHub contents API."""

    def __init__(
        self,
        settings: Settings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = settings.github_api_url.rstrip("/")
        self.timeout = settings.github_timeout_secs
        self.user_agent = settings.user_agent
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            follow_redirects=True,
            transport=self._transport,
        )

    def _headers(self, location: RepositoryLocation) -> dict[str, str]:
        headers = {"Accept": GITHUB_ACCEPT, "User-Agent": self.user_agent}
        if location.token:
            headers["Authorization"] = f"token {location.token}"
        return headers

    async def _get_contents(
        self, client: httpx.AsyncClient, location: RepositoryLocation
    ) -> httpx.Response:
        try:
            return await client.get(
                _contents_url(location),
                params={"ref": location.branch},
                headers=self._headers(location),
            )
        except httpx.HTTPError as exc:
            raise RemoteError(f"Failed to load data from GitHub: {exc}") from exc

    async def fetch(self, location: RepositoryLocation) -> RemoteDocument | None:
        """Return the document and its revision, or None when the file does not exist."""
        with tracer.start_as_current_span("github.fetch") as span:
            span.set_attribute("gitshelf.location", location.describe())
            async with self._client() as client:
                resp = await self._get_contents(client, location)

            if resp.status_code == 404:
                logger.info(
                    "File %s not found in repository, will create on first save",
                    location.describe(),
                )
                return None
            if not resp.is_success:
                raise RemoteError(
                    f"GitHub API error: {_error_message(resp)}",
                    status_code=resp.status_code,
                )

            payload = _json_object(resp)
            content = payload.get("content")
            sha = payload.get("sha")
            if not isinstance(content, str) or not isinstance(sha, str):
                raise RemoteError("GitHub response is missing content or sha")
            return RemoteDocument(document=decode_document(content), revision=sha)

    async def _probe_revision(
        self, client: httpx.AsyncClient, location: RepositoryLocation
    ) -> str | None:
        resp = await self._get_contents(client, location)
        if resp.status_code == 404:
            logger.info("File %s doesn't exist yet, will create it", location.describe())
            return None
        if not resp.is_success:
            raise RemoteError(
                f"GitHub API error: {_error_message(resp)}",
                status_code=resp.status_code,
            )
        sha = _json_object(resp).get("sha")
        if not isinstance(sha, str):
            raise RemoteError("GitHub response is missing sha")
        return sha

    async def write(
        self,
        location: RepositoryLocation,
        document: LibraryDocument,
        *,
        expected_revision: str | None = None,
        message: str | None = None,
    ) -> str:
        """Create or update the document file and return its new revision.

        With ``expected_revision`` the update only succeeds if the file is still at
        that revision; otherwise ConflictError is raised. Without it, the current
        revision is probed first and the file is created when absent.
        """
        with tracer.start_as_current_span("github.write") as span:
            span.set_attribute("gitshelf.location", location.describe())
            async with self._client() as client:
                sha = expected_revision
                if sha is None:
                    sha = await self._probe_revision(client, location)

                body: dict[str, Any] = {
                    "message": message or f"Update library data - {utcnow().isoformat()}",
                    "content": encode_document(document),
                    "branch": location.branch,
                }
                if sha:
                    body["sha"] = sha

                try:
                    resp = await client.put(
                        _contents_url(location),
                        json=body,
                        headers=self._headers(location),
                    )
                except httpx.HTTPError as exc:
                    raise RemoteError(f"Failed to save data to GitHub: {exc}") from exc

            if resp.status_code == 409 or (
                resp.status_code == 422 and "sha" in _error_message(resp).lower()
            ):
                raise ConflictError(
                    f"Library data changed on GitHub since it was loaded: {_error_message(resp)}",
                    status_code=resp.status_code,
                )
            if not resp.is_success:
                raise RemoteError(
                    f"Error saving to GitHub: {_error_message(resp)}",
                    status_code=resp.status_code,
                )

            content = _json_object(resp).get("content")
            new_sha = content.get("sha") if isinstance(content, dict) else None
            if not isinstance(new_sha, str):
                raise RemoteError("GitHub save response is missing the new sha")
            span.set_attribute("gitshelf.revision", new_sha)
            return new_sha
