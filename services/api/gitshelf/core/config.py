from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Annotated, Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

# services/api/gitshelf/core/config.py -> BASE_DIR == services/api
BASE_DIR = Path(__file__).resolve().parents[2]
DEFAULT_BUNDLED_CONFIG_PATH = BASE_DIR / "github-config.json"
DEFAULT_LOCAL_SETTINGS_PATH = Path.home() / ".gitshelf" / "settings.json"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(BASE_DIR / ".env"),
        extra="ignore",
        env_prefix="",
        case_sensitive=False,
    )

    # Environment
    env: str = Field(default="dev", validation_alias="ENV")

    # Application
    api_name: str = Field(default="gitshelf-api", validation_alias="API_NAME")
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    user_agent: str = Field(default="GitShelf/0.1", validation_alias="USER_AGENT")

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: Any) -> str:
        if v is None:
            return "INFO"
        if not isinstance(v, str):
            raise TypeError("LOG_LEVEL must be a string")
        s = v.strip().upper()
        if not isinstance(logging.getLevelName(s), int):
            raise ValueError(f"LOG_LEVEL must name a logging level, got {v!r}")
        return s

    # Remote document host
    github_api_url: str = Field(
        default="https://api.github.com", validation_alias="GITHUB_API_URL"
    )
    github_timeout_secs: float = Field(
        default=15.0, validation_alias="GITHUB_TIMEOUT_SECS"
    )
    document_suffix: str = Field(default=".json", validation_alias="DOCUMENT_SUFFIX")
    default_document_path: str = Field(
        default="library-data.json", validation_alias="DEFAULT_DOCUMENT_PATH"
    )
    default_branch: str = Field(default="main", validation_alias="DEFAULT_BRANCH")

    # Repository configuration sources
    bundled_config_path: str = Field(
        default=str(DEFAULT_BUNDLED_CONFIG_PATH),
        validation_alias="BUNDLED_CONFIG_PATH",
    )
    local_settings_path: str = Field(
        default=str(DEFAULT_LOCAL_SETTINGS_PATH),
        validation_alias="LOCAL_SETTINGS_PATH",
    )
    local_settings_key: str = Field(
        default="githubConfig", validation_alias="LOCAL_SETTINGS_KEY"
    )

    # Document cache
    document_cache_ttl_secs: int = Field(
        default=300, validation_alias="DOCUMENT_CACHE_TTL_SECS"
    )
    single_flight_attempts: int = Field(
        default=10, validation_alias="SINGLE_FLIGHT_ATTEMPTS"
    )
    single_flight_interval_secs: float = Field(
        default=0.5, validation_alias="SINGLE_FLIGHT_INTERVAL_SECS"
    )

    # CORS
    cors_origins: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: ["http://localhost:3000"],
        validation_alias="CORS_ORIGINS",
    )

    @field_validator("cors_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, v: Any) -> list[str]:
        """
        Supported env formats:
          - JSON list: '["http://localhost:3000"]'
          - Bracket list (no quotes): '[http://localhost:3000, http://localhost:5173]'
          - Comma-separated: 'http://localhost:3000, http://localhost:5173'
          - '*' wildcard
        """
        if v is None:
            return []
        if isinstance(v, list):
            return [str(x).strip() for x in v if str(x).strip()]
        if not isinstance(v, str):
            raise TypeError("cors_origins must be a string or list of strings")

        s = v.strip()
        if not s:
            return []
        if s == "*":
            return ["*"]

        if s.startswith("[") and s.endswith("]"):
            try:
                parsed = json.loads(s)
                if isinstance(parsed, list):
                    return [str(x).strip() for x in parsed if str(x).strip()]
            except json.JSONDecodeError:
                inner = s[1:-1].strip()
                if not inner:
                    return []
                parts = [p.strip().strip('"').strip("'") for p in inner.split(",")]
                return [p for p in parts if p]

        parts = [p.strip() for p in s.split(",")]
        return [p for p in parts if p]

    # OpenTelemetry
    otel_enabled: bool = Field(default=False, validation_alias="OTEL_ENABLED")
    otel_otlp_endpoint: str = Field(
        default="http://localhost:4317",
        validation_alias="OTEL_OTLP_ENDPOINT",
    )


settings = Settings()
