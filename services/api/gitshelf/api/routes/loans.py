from __future__ import annotations

from fastapi import APIRouter, Depends

from gitshelf.api.deps import get_store
from gitshelf.schemas.library import BorrowIn, LoanOut, ReturnIn
from gitshelf.services.library_store import LibraryStore

router = APIRouter(prefix="/v1/loans", tags=["loans"])


@router.post("/borrow", response_model=LoanOut)
async def borrow(payload: BorrowIn, store: LibraryStore = Depends(get_store)):
    book = await store.borrow(payload.book_code, payload.student_code)
    student = await store.find_student_by_code(payload.student_code)
    borrower = student.name if student is not None else book.borrowed_by
    return LoanOut(book=book, message=f'Book "{book.name}" borrowed by {borrower}')


@router.post("/return", response_model=LoanOut)
async def return_book(payload: ReturnIn, store: LibraryStore = Depends(get_store)):
    book = await store.return_book(payload.book_code)
    return LoanOut(book=book, message=f'Book "{book.name}" has been returned')
