from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query

from gitshelf.api.deps import get_store
from gitshelf.schemas.library import Book, BookIn
from gitshelf.services.library_store import LibraryStore

router = APIRouter(prefix="/v1/books", tags=["books"])


@router.get("", response_model=list[Book])
async def list_books(store: LibraryStore = Depends(get_store)):
    return await store.list_books()


@router.post("", response_model=Book, status_code=201)
async def add_book(payload: BookIn, store: LibraryStore = Depends(get_store)):
    return await store.add_book(payload)


@router.get("/search", response_model=list[Book])
async def search_books(q: str = Query(default=""), store: LibraryStore = Depends(get_store)):
    return await store.search_books(q)


@router.get("/{code}", response_model=Book)
async def get_book(code: str, store: LibraryStore = Depends(get_store)):
    book = await store.find_book_by_code(code)
    if book is None:
        raise HTTPException(status_code=404, detail="Book not found")
    return book
