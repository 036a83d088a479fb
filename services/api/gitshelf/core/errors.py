from __future__ import annotations


class GitShelfError(Exception):
    """Base class for every error raised by the library sync layer."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConfigIncompleteError(GitShelfError):
    def __init__(self, message: str = "GitHub configuration is incomplete"):
        super().__init__(message)


class ConfigReadOnlyError(GitShelfError):
    def __init__(
        self,
        message: str = "Repository configuration is provided by the deployment and cannot be changed",
    ):
        super().__init__(message)


class RemoteError(GitShelfError):
    """Transport failure, non-2xx response or malformed payload from the remote host."""

    def __init__(self, message: str, *, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class ConflictError(RemoteError):
    """The remote document changed since the revision the write was based on."""


class LibraryError(GitShelfError):
    pass


class DuplicateCodeError(LibraryError):
    pass


class BookNotFoundError(LibraryError):
    def __init__(self, message: str = "Book not found"):
        super().__init__(message)


class StudentNotFoundError(LibraryError):
    def __init__(self, message: str = "Student not found"):
        super().__init__(message)


class AlreadyBorrowedError(LibraryError):
    def __init__(self, message: str = "Book is already borrowed"):
        super().__init__(message)


class NotBorrowedError(LibraryError):
    def __init__(self, message: str = "Book is not currently borrowed"):
        super().__init__(message)


class SnapshotFormatError(LibraryError):
    def __init__(self, message: str, *, line: int | None = None):
        if line is not None:
            message = f"line {line}: {message}"
        super().__init__(message)
        self.line = line


class LibraryNotEmptyError(LibraryError):
    def __init__(self, message: str = "Library already contains data"):
        super().__init__(message)
