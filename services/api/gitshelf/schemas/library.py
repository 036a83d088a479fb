from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field, field_validator


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Student(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    grade: str
    code: str


class Book(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    author: str
    code: str
    is_borrowed: bool = Field(default=False, alias="isBorrowed")
    # Student.code of the borrower; set iff is_borrowed
    borrowed_by: str | None = Field(default=None, alias="borrowedBy")


class LibraryDocument(BaseModel):
    """The whole persisted library, stored as one JSON file in the repository."""

    model_config = ConfigDict(populate_by_name=True)

    students: list[Student] = Field(default_factory=list)
    books: list[Book] = Field(default_factory=list)
    last_updated: datetime = Field(default_factory=utcnow, alias="lastUpdated")

    @classmethod
    def empty(cls) -> "LibraryDocument":
        return cls()

    def is_empty(self) -> bool:
        return not self.students and not self.books

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, indent=2)


class StudentIn(BaseModel):
    name: str
    grade: str
    code: str

    @field_validator("name", "code")
    @classmethod
    def not_blank(cls, v: str) -> str:
        s = v.strip()
        if not s:
            raise ValueError("must not be blank")
        return s


class BookIn(BaseModel):
    name: str
    author: str
    code: str

    @field_validator("name", "code")
    @classmethod
    def not_blank(cls, v: str) -> str:
        s = v.strip()
        if not s:
            raise ValueError("must not be blank")
        return s


class BorrowIn(BaseModel):
    book_code: str = Field(min_length=1)
    student_code: str = Field(min_length=1)


class ReturnIn(BaseModel):
    book_code: str = Field(min_length=1)


class LoanOut(BaseModel):
    book: Book
    message: str


class ImportSummaryOut(BaseModel):
    students: int
    books: int


class LibraryStatusOut(BaseModel):
    valid: bool
    revision: str | None
    fetching: bool
    last_error: str | None
