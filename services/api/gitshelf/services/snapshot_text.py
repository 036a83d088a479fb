from __future__ import annotations

from gitshelf.core.errors import SnapshotFormatError
from gitshelf.schemas.library import Book, LibraryDocument, Student

STUDENTS_LABEL = "STUDENTS"
BOOKS_LABEL = "BOOKS"
STUDENT_HEADER = "Student Name,Grade,Student Code"
BOOK_HEADER = "Book Name,Author,Book Code,Is Borrowed,Borrowed By"

_STUDENT_FIELDS = 3
_BOOK_FIELDS = 5


def export_snapshot(document: LibraryDocument) -> str:
    """Render students and books as the two-section comma-separated text.

    Fields are joined with bare commas, so a value that itself contains a comma
    produces a row that will not import.
    """
    student_lines = [STUDENTS_LABEL, STUDENT_HEADER]
    student_lines += [f"{s.name},{s.grade},{s.code}" for s in document.students]

    book_lines = [BOOKS_LABEL, BOOK_HEADER]
    book_lines += [
        f"{b.name},{b.author},{b.code},{'Yes' if b.is_borrowed else 'No'},{b.borrowed_by or ''}"
        for b in document.books
    ]
    return "\n".join(student_lines) + "\n\n" + "\n".join(book_lines)


def _split_sections(text: str) -> dict[str, list[tuple[int, str]]]:
    sections: dict[str, list[tuple[int, str]]] = {}
    current: list[tuple[int, str]] | None = None

    for lineno, raw in enumerate(text.splitlines(), start=1):
        line = raw.strip()
        if line in (STUDENTS_LABEL, BOOKS_LABEL):
            if line in sections:
                raise SnapshotFormatError(f"duplicate {line} section", line=lineno)
            current = sections[line] = []
            continue
        if not line:
            continue
        if current is None:
            raise SnapshotFormatError(
                f"expected a {STUDENTS_LABEL} or {BOOKS_LABEL} section label", line=lineno
            )
        current.append((lineno, line))

    for label in (STUDENTS_LABEL, BOOKS_LABEL):
        if label not in sections:
            raise SnapshotFormatError(f"missing {label} section")
        if not sections[label]:
            raise SnapshotFormatError(f"{label} section has no header line")
    return sections


def _fields(lineno: int, line: str, expected: int) -> list[str]:
    parts = [p.strip() for p in line.split(",")]
    if len(parts) != expected:
        raise SnapshotFormatError(
            f"expected {expected} comma-separated fields, found {len(parts)}", line=lineno
        )
    return parts


def _check_unique(kind: str, codes: list[tuple[int, str]]) -> None:
    seen: set[str] = set()
    for lineno, code in codes:
        if not code:
            raise SnapshotFormatError(f"{kind} code is empty", line=lineno)
        if code.lower() in seen:
            raise SnapshotFormatError(f"duplicate {kind} code {code}", line=lineno)
        seen.add(code.lower())


def parse_snapshot(text: str) -> tuple[list[Student], list[Book]]:
    """Parse exported text back into students and books.

    Identifiers are reassigned from row order starting at 1.
    """
    sections = _split_sections(text)

    students: list[Student] = []
    student_codes: list[tuple[int, str]] = []
    for idx, (lineno, line) in enumerate(sections[STUDENTS_LABEL][1:], start=1):
        name, grade, code = _fields(lineno, line, _STUDENT_FIELDS)
        students.append(Student(id=str(idx), name=name, grade=grade, code=code))
        student_codes.append((lineno, code))
    _check_unique("student", student_codes)

    books: list[Book] = []
    book_codes: list[tuple[int, str]] = []
    for idx, (lineno, line) in enumerate(sections[BOOKS_LABEL][1:], start=1):
        name, author, code, borrowed, borrowed_by = _fields(lineno, line, _BOOK_FIELDS)
        flag = borrowed.lower()
        if flag not in ("yes", "no"):
            raise SnapshotFormatError(f"Is Borrowed must be Yes or No, got {borrowed!r}", line=lineno)
        is_borrowed = flag == "yes"
        if is_borrowed != bool(borrowed_by):
            raise SnapshotFormatError(
                "Borrowed By must be set exactly when Is Borrowed is Yes", line=lineno
            )
        books.append(
            Book(
                id=str(idx),
                name=name,
                author=author,
                code=code,
                is_borrowed=is_borrowed,
                borrowed_by=borrowed_by or None,
            )
        )
        book_codes.append((lineno, code))
    _check_unique("book", book_codes)

    known = {s.code.lower() for s in students}
    for (lineno, _), book in zip(book_codes, books):
        if book.borrowed_by and book.borrowed_by.lower() not in known:
            raise SnapshotFormatError(
                f"book {book.code} is borrowed by unknown student {book.borrowed_by}",
                line=lineno,
            )

    return students, books
