from __future__ import annotations

import logging
from typing import Sequence, TypeVar

from gitshelf.core.errors import (
    AlreadyBorrowedError,
    BookNotFoundError,
    DuplicateCodeError,
    LibraryNotEmptyError,
    NotBorrowedError,
    StudentNotFoundError,
)
from gitshelf.schemas.library import Book, BookIn, LibraryDocument, Student, StudentIn
from gitshelf.services.seed import sample_document
from gitshelf.services.snapshot_text import export_snapshot, parse_snapshot
from gitshelf.services.sync_cache import SyncCache

logger = logging.getLogger(__name__)

T = TypeVar("T", Student, Book)


def _index_by_code(items: Sequence[T], code: str) -> int | None:
    wanted = code.strip().lower()
    for i, item in enumerate(items):
        if item.code.lower() == wanted:
            return i
    return None


def _contains(query: str, *values: str) -> bool:
    q = query.lower()
    return any(q in v.lower() for v in values)


class LibraryStore:
    """Students, books and loans on top of the cached library document.

    Every mutation reads the current document, applies the change to that copy
    and writes it back through the cache. Validation errors are raised before
    anything is written.
    """

    def __init__(self, cache: SyncCache):
        self.cache = cache

    async def _current(self) -> LibraryDocument:
        # Mutations must never build on a fallback document.
        return await self.cache.get(strict=True)

    async def list_students(self) -> list[Student]:
        return (await self.cache.get()).students

    async def list_books(self) -> list[Book]:
        return (await self.cache.get()).books

    async def find_student_by_code(self, code: str) -> Student | None:
        students = await self.list_students()
        idx = _index_by_code(students, code)
        return students[idx] if idx is not None else None

    async def find_book_by_code(self, code: str) -> Book | None:
        books = await self.list_books()
        idx = _index_by_code(books, code)
        return books[idx] if idx is not None else None

    async def search_students(self, query: str) -> list[Student]:
        return [s for s in await self.list_students() if _contains(query, s.name, s.code)]

    async def search_books(self, query: str) -> list[Book]:
        return [
            b for b in await self.list_books() if _contains(query, b.name, b.code, b.author)
        ]

    async def borrowed_books_of(self, student_code: str) -> list[Book]:
        wanted = student_code.strip().lower()
        return [
            b
            for b in await self.list_books()
            if b.borrowed_by is not None and b.borrowed_by.lower() == wanted
        ]

    async def add_student(self, data: StudentIn) -> Student:
        doc = await self._current()
        code = data.code.strip()
        if _index_by_code(doc.students, code) is not None:
            raise DuplicateCodeError("Student code already exists")

        student = Student(
            id=str(len(doc.students) + 1),
            name=data.name.strip(),
            grade=data.grade.strip(),
            code=code,
        )
        doc.students.append(student)
        await self.cache.put(doc)
        logger.info("Student %s added", student.code)
        return student

    async def add_book(self, data: BookIn) -> Book:
        doc = await self._current()
        code = data.code.strip()
        if _index_by_code(doc.books, code) is not None:
            raise DuplicateCodeError("Book code already exists")

        book = Book(
            id=str(len(doc.books) + 1),
            name=data.name.strip(),
            author=data.author.strip(),
            code=code,
            is_borrowed=False,
            borrowed_by=None,
        )
        doc.books.append(book)
        await self.cache.put(doc)
        logger.info("Book %s added", book.code)
        return book

    async def borrow(self, book_code: str, student_code: str) -> Book:
        doc = await self._current()
        idx = _index_by_code(doc.books, book_code)
        if idx is None:
            raise BookNotFoundError()
        book = doc.books[idx]
        if book.is_borrowed:
            raise AlreadyBorrowedError()
        s_idx = _index_by_code(doc.students, student_code)
        if s_idx is None:
            raise StudentNotFoundError()
        student = doc.students[s_idx]

        updated = book.model_copy(update={"is_borrowed": True, "borrowed_by": student.code})
        doc.books[idx] = updated
        await self.cache.put(doc)
        logger.info("Book %s borrowed by %s", updated.code, student.code)
        return updated

    async def return_book(self, book_code: str) -> Book:
        doc = await self._current()
        idx = _index_by_code(doc.books, book_code)
        if idx is None:
            raise BookNotFoundError()
        book = doc.books[idx]
        if not book.is_borrowed:
            raise NotBorrowedError()

        updated = book.model_copy(update={"is_borrowed": False, "borrowed_by": None})
        doc.books[idx] = updated
        await self.cache.put(doc)
        logger.info("Book %s returned", updated.code)
        return updated

    async def export_snapshot(self) -> str:
        return export_snapshot(await self._current())

    async def import_snapshot(self, text: str) -> LibraryDocument:
        """Replace all students and books with the contents of ``text``."""
        students, books = parse_snapshot(text)
        doc = await self._current()
        doc.students = students
        doc.books = books
        saved = await self.cache.put(doc)
        logger.info("Imported %d students and %d books", len(students), len(books))
        return saved

    async def seed_sample(self) -> LibraryDocument:
        doc = await self._current()
        if not doc.is_empty():
            raise LibraryNotEmptyError()
        return await self.cache.put(sample_document())
