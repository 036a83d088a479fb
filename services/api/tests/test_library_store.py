import pytest
from pydantic import ValidationError

from fakes import DOC_PATH, run
from gitshelf.core.errors import (
    AlreadyBorrowedError,
    BookNotFoundError,
    ConflictError,
    DuplicateCodeError,
    LibraryNotEmptyError,
    NotBorrowedError,
    RemoteError,
    SnapshotFormatError,
    StudentNotFoundError,
)
from gitshelf.schemas.library import BookIn, LibraryDocument, StudentIn
from gitshelf.services.seed import sample_document


@pytest.fixture()
def seeded(fake_github):
    fake_github.seed(DOC_PATH, sample_document())
    return fake_github


def test_list_and_find_are_case_insensitive(store, seeded):
    assert len(run(store.list_students())) == 5
    assert len(run(store.list_books())) == 5

    assert run(store.find_student_by_code("s002")).name == "Sarah Johnson"
    assert run(store.find_book_by_code(" b003 ")).name == "The Great Gatsby"
    assert run(store.find_book_by_code("B999")) is None


def test_search_matches_name_code_and_author(store, seeded):
    assert [s.code for s in run(store.search_students("jo"))] == ["S001", "S002"]
    assert [b.code for b in run(store.search_books("LEE"))] == ["B001"]
    assert [b.code for b in run(store.search_books("b00"))] == ["B001", "B002", "B003", "B004", "B005"]
    assert run(store.search_books("nothing like this")) == []


def test_borrowed_books_of_student(store, seeded):
    assert [b.code for b in run(store.borrowed_books_of("s001"))] == ["B002"]
    assert run(store.borrowed_books_of("S005")) == []


def test_add_student_assigns_next_id_and_persists(store, seeded):
    student = run(store.add_student(StudentIn(name="Ana Diaz", grade="8", code="S006")))

    assert student.id == "6"
    assert seeded.document().students[-1].code == "S006"


def test_add_student_duplicate_code_leaves_document_unchanged(store, seeded):
    before = seeded.files[DOC_PATH]

    with pytest.raises(DuplicateCodeError):
        run(store.add_student(StudentIn(name="Other", grade="9", code="s001")))

    assert seeded.files[DOC_PATH] == before
    assert seeded.calls("PUT") == 0
    assert len(run(store.list_students())) == 5


def test_add_book_duplicate_code_is_rejected(store, seeded):
    with pytest.raises(DuplicateCodeError):
        run(store.add_book(BookIn(name="Dune", author="Frank Herbert", code="b005")))
    assert seeded.calls("PUT") == 0


def test_add_book_to_empty_library_creates_file(store, fake_github):
    book = run(store.add_book(BookIn(name="Dune", author="Frank Herbert", code="B100")))

    assert book.id == "1"
    assert book.is_borrowed is False and book.borrowed_by is None
    assert [b.code for b in fake_github.document().books] == ["B100"]


def test_borrow_then_borrow_again_fails(store, seeded):
    book = run(store.borrow("B001", "S001"))

    assert book.is_borrowed is True
    assert book.borrowed_by == "S001"
    stored = seeded.document()
    assert stored.books[0].borrowed_by == "S001"

    before = seeded.files[DOC_PATH]
    with pytest.raises(AlreadyBorrowedError):
        run(store.borrow("B001", "S002"))
    assert seeded.files[DOC_PATH] == before


def test_borrow_stores_canonical_student_code(store, seeded):
    book = run(store.borrow("b003", "s004"))
    assert book.borrowed_by == "S004"


def test_borrow_unknown_book_or_student(store, seeded):
    with pytest.raises(BookNotFoundError):
        run(store.borrow("B404", "S001"))
    with pytest.raises(StudentNotFoundError):
        run(store.borrow("B001", "S404"))
    assert seeded.calls("PUT") == 0


def test_borrow_then_return_restores_book(store, seeded):
    original = run(store.find_book_by_code("B003"))

    run(store.borrow("B003", "S002"))
    returned = run(store.return_book("B003"))

    assert returned == original
    assert seeded.document().books[2].borrowed_by is None


def test_return_errors(store, seeded):
    with pytest.raises(BookNotFoundError):
        run(store.return_book("B404"))
    with pytest.raises(NotBorrowedError):
        run(store.return_book("B001"))


def test_mutation_on_stale_revision_raises_conflict(store, seeded, cache):
    run(store.list_books())
    # another client saves while our copy is still fresh
    seeded.seed(DOC_PATH, LibraryDocument(students=sample_document().students, books=[]))

    with pytest.raises(ConflictError):
        run(store.borrow("B001", "S001"))

    assert seeded.document().books == []

    cache.invalidate()
    with pytest.raises(BookNotFoundError):
        run(store.borrow("B001", "S001"))


def test_mutation_does_not_write_over_unreadable_remote(store, seeded):
    seeded.fail_status = 503

    with pytest.raises(RemoteError):
        run(store.add_student(StudentIn(name="Ana Diaz", grade="8", code="S006")))

    assert seeded.calls("PUT") == 0


def test_reads_degrade_to_empty_on_remote_error(store, seeded):
    seeded.fail_status = 500
    assert run(store.list_students()) == []


def test_export_then_import_round_trips(store, seeded):
    original = seeded.document()

    text = run(store.export_snapshot())
    saved = run(store.import_snapshot(text))

    assert saved.students == original.students
    assert saved.books == original.books
    assert seeded.document().books == original.books


def test_import_replaces_collections(store, seeded):
    text = (
        "STUDENTS\nStudent Name,Grade,Student Code\nAna Diaz,8,S100\n\n"
        "BOOKS\nBook Name,Author,Book Code,Is Borrowed,Borrowed By\n"
    )

    saved = run(store.import_snapshot(text))

    assert [s.code for s in saved.students] == ["S100"]
    assert saved.books == []
    assert seeded.document().books == []


def test_import_rejects_bad_text_before_touching_remote(store, seeded):
    with pytest.raises(SnapshotFormatError):
        run(store.import_snapshot("hello"))
    assert seeded.requests == []


def test_seed_sample_only_into_empty_library(store, fake_github):
    doc = run(store.seed_sample())
    assert len(doc.students) == 5
    assert fake_github.document().books[3].borrowed_by == "S003"

    with pytest.raises(LibraryNotEmptyError):
        run(store.seed_sample())


@pytest.mark.parametrize("field", ["code", "name"])
def test_blank_student_code_or_name_is_rejected(field):
    data = {"name": "Ana Diaz", "grade": "8", "code": "S006", field: "   "}
    with pytest.raises(ValidationError):
        StudentIn(**data)


def test_blank_book_code_is_rejected():
    with pytest.raises(ValidationError):
        BookIn(name="Dune", author="Frank Herbert", code=" \t ")


def test_added_codes_are_stripped_and_survive_export_import(store, seeded):
    run(store.add_student(StudentIn(name=" Ana Diaz ", grade="8", code=" S006 ")))

    saved = run(store.import_snapshot(run(store.export_snapshot())))

    assert saved.students[-1].code == "S006"
    assert saved.students[-1].name == "Ana Diaz"
