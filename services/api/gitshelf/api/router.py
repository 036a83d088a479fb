from __future__ import annotations

from fastapi import APIRouter

from gitshelf.api.routes import (
    books,
    health,
    library,
    loans,
    repository_settings,
    students,
)

api_router = APIRouter()

# Keep this list in the order you want routes registered.
for _mod in (health, repository_settings, students, books, loans, library):
    api_router.include_router(_mod.router)
