from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class ConfigSource(str, Enum):
    file = "file"
    local_storage = "localStorage"
    default = "default"


class RepositoryLocation(BaseModel):
    """Identifies the repository file that holds the library document."""

    model_config = ConfigDict(populate_by_name=True)

    owner: str = ""
    repo: str = ""
    path: str = ""
    branch: str = "main"
    token: str | None = Field(default=None, repr=False)
    config_source: ConfigSource = Field(
        default=ConfigSource.default, alias="configSource"
    )

    @property
    def key(self) -> tuple[str, str, str, str]:
        return (self.owner, self.repo, self.path, self.branch)

    def describe(self) -> str:
        return f"{self.owner}/{self.repo}@{self.branch}:{self.path}"


class RepositorySettingsIn(BaseModel):
    owner: str
    repo: str
    path: str
    branch: str = "main"
    token: str | None = None


class RepositorySettingsOut(BaseModel):
    owner: str
    repo: str
    path: str
    branch: str
    has_token: bool
    config_source: ConfigSource
    read_only: bool
    valid: bool
    corrected_path: bool = False
