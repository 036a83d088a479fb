from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from gitshelf.schemas.library import LibraryDocument
from gitshelf.schemas.settings import RepositoryLocation


@dataclass(frozen=True)
class RemoteDocument:
    document: LibraryDocument
    # blob sha of the file the document was read from
    revision: str


class DocumentClient(Protocol):
    async def fetch(self, location: RepositoryLocation) -> RemoteDocument | None: ...

    async def write(
        self,
        location: RepositoryLocation,
        document: LibraryDocument,
        *,
        expected_revision: str | None = None,
        message: str | None = None,
    ) -> str: ...
