from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from gitshelf.api.errors import register_error_handlers
from gitshelf.api.router import api_router
from gitshelf.core.config import settings
from gitshelf.core.logging import configure_logging
from gitshelf.core.otel import init_otel

configure_logging(settings.log_level)

app = FastAPI(title=settings.api_name)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)
app.include_router(api_router)

init_otel(app)
