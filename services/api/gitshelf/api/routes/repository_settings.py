from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from gitshelf.api.deps import get_resolver
from gitshelf.core.errors import ConfigReadOnlyError
from gitshelf.schemas.settings import (
    RepositoryLocation,
    RepositorySettingsIn,
    RepositorySettingsOut,
)
from gitshelf.services.repository_config import ConfigResolver

router = APIRouter(prefix="/v1/settings", tags=["settings"])


def _settings_out(
    resolver: ConfigResolver, *, corrected_path: bool = False
) -> RepositorySettingsOut:
    loc = resolver.location
    return RepositorySettingsOut(
        owner=loc.owner,
        repo=loc.repo,
        path=loc.path,
        branch=loc.branch,
        has_token=bool(loc.token),
        config_source=loc.config_source,
        read_only=resolver.read_only,
        valid=resolver.is_valid(loc),
        corrected_path=corrected_path,
    )


@router.get("/repository", response_model=RepositorySettingsOut)
def get_repository_settings(resolver: ConfigResolver = Depends(get_resolver)):
    return _settings_out(resolver)


@router.put("/repository", response_model=RepositorySettingsOut)
def put_repository_settings(
    payload: RepositorySettingsIn,
    resolver: ConfigResolver = Depends(get_resolver),
):
    if resolver.read_only:
        raise ConfigReadOnlyError()

    candidate = RepositoryLocation(
        owner=payload.owner,
        repo=payload.repo,
        path=payload.path,
        branch=payload.branch,
        token=payload.token,
    )
    if not resolver.is_valid(candidate):
        raise HTTPException(status_code=400, detail="Owner, repository and path are required")

    result = resolver.update(candidate)
    if not result.applied:
        raise ConfigReadOnlyError()
    return _settings_out(resolver, corrected_path=result.corrected_path)
