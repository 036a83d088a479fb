from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from gitshelf.core.errors import (
    AlreadyBorrowedError,
    BookNotFoundError,
    ConfigIncompleteError,
    ConfigReadOnlyError,
    ConflictError,
    DuplicateCodeError,
    GitShelfError,
    LibraryNotEmptyError,
    NotBorrowedError,
    RemoteError,
    StudentNotFoundError,
)

# Most specific first; the first isinstance match wins.
_STATUS_BY_ERROR: tuple[tuple[type[GitShelfError], int], ...] = (
    (BookNotFoundError, 404),
    (StudentNotFoundError, 404),
    (DuplicateCodeError, 409),
    (AlreadyBorrowedError, 409),
    (NotBorrowedError, 409),
    (LibraryNotEmptyError, 409),
    (ConfigReadOnlyError, 409),
    (ConflictError, 409),
    (RemoteError, 502),
    (ConfigIncompleteError, 503),
)


def status_for(exc: GitShelfError) -> int:
    for err_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, err_type):
            return status_code
    return 400


async def _gitshelf_error_handler(request: Request, exc: GitShelfError) -> JSONResponse:
    return JSONResponse(
        status_code=status_for(exc),
        content={"detail": exc.message, "error": type(exc).__name__},
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(GitShelfError, _gitshelf_error_handler)
