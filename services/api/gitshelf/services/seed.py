from __future__ import annotations

from gitshelf.schemas.library import Book, LibraryDocument, Student

_STUDENTS = [
    ("John Smith", "10", "S001"),
    ("Sarah Johnson", "11", "S002"),
    ("Michael Brown", "9", "S003"),
    ("Emily Wilson", "12", "S004"),
    ("David Lee", "10", "S005"),
]

_BOOKS = [
    ("To Kill a Mockingbird", "Harper Lee", "B001", None),
    ("1984", "George Orwell", "B002", "S001"),
    ("The Great Gatsby", "F. Scott Fitzgerald", "B003", None),
    ("Pride and Prejudice", "Jane Austen", "B004", "S003"),
    ("The Catcher in the Rye", "J.D. Salinger", "B005", None),
]


def sample_document() -> LibraryDocument:
    """Demo library with a couple of books already out on loan."""
    students = [
        Student(id=str(i), name=name, grade=grade, code=code)
        for i, (name, grade, code) in enumerate(_STUDENTS, start=1)
    ]
    books = [
        Book(
            id=str(i),
            name=name,
            author=author,
            code=code,
            is_borrowed=borrowed_by is not None,
            borrowed_by=borrowed_by,
        )
        for i, (name, author, code, borrowed_by) in enumerate(_BOOKS, start=1)
    ]
    return LibraryDocument(students=students, books=books)
