from __future__ import annotations

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from fastapi.responses import PlainTextResponse

from gitshelf.api.deps import get_cache, get_resolver, get_store
from gitshelf.schemas.library import ImportSummaryOut, LibraryStatusOut
from gitshelf.services.library_store import LibraryStore
from gitshelf.services.repository_config import ConfigResolver
from gitshelf.services.sync_cache import SyncCache

router = APIRouter(prefix="/v1/library", tags=["library"])

EXPORT_FILENAME = "library-data.txt"


@router.get("/status", response_model=LibraryStatusOut)
def library_status(
    cache: SyncCache = Depends(get_cache),
    resolver: ConfigResolver = Depends(get_resolver),
):
    return LibraryStatusOut(
        valid=resolver.is_valid(),
        revision=cache.revision,
        fetching=cache.is_fetching,
        last_error=cache.last_error.message if cache.last_error else None,
    )


@router.get("/export", response_class=PlainTextResponse)
async def export_library(store: LibraryStore = Depends(get_store)):
    text = await store.export_snapshot()
    return PlainTextResponse(
        text,
        headers={"Content-Disposition": f'attachment; filename="{EXPORT_FILENAME}"'},
    )


@router.post("/import", response_model=ImportSummaryOut)
async def import_library(
    file: UploadFile = File(...),
    store: LibraryStore = Depends(get_store),
):
    raw = await file.read()
    try:
        text = raw.decode("utf-8-sig")
    except UnicodeDecodeError:
        raise HTTPException(status_code=400, detail="Import file must be UTF-8 encoded")

    doc = await store.import_snapshot(text)
    return ImportSummaryOut(students=len(doc.students), books=len(doc.books))


@router.post("/seed", response_model=ImportSummaryOut)
async def seed_library(store: LibraryStore = Depends(get_store)):
    doc = await store.seed_sample()
    return ImportSummaryOut(students=len(doc.students), books=len(doc.books))


@router.post("/refresh", status_code=204)
def refresh_library(cache: SyncCache = Depends(get_cache)) -> None:
    cache.invalidate()
