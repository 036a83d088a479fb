from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query

from gitshelf.api.deps import get_store
from gitshelf.schemas.library import Book, Student, StudentIn
from gitshelf.services.library_store import LibraryStore

router = APIRouter(prefix="/v1/students", tags=["students"])


@router.get("", response_model=list[Student])
async def list_students(store: LibraryStore = Depends(get_store)):
    return await store.list_students()


@router.post("", response_model=Student, status_code=201)
async def add_student(payload: StudentIn, store: LibraryStore = Depends(get_store)):
    return await store.add_student(payload)


@router.get("/search", response_model=list[Student])
async def search_students(
    q: str = Query(default=""), store: LibraryStore = Depends(get_store)
):
    return await store.search_students(q)


@router.get("/{code}", response_model=Student)
async def get_student(code: str, store: LibraryStore = Depends(get_store)):
    student = await store.find_student_by_code(code)
    if student is None:
        raise HTTPException(status_code=404, detail="Student not found")
    return student


@router.get("/{code}/books", response_model=list[Book])
async def student_books(code: str, store: LibraryStore = Depends(get_store)):
    return await store.borrowed_books_of(code)
