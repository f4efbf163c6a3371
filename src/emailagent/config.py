"""Centralized, typed configuration using pydantic-settings.

Provides a single ``Settings`` class backed by ``.env`` file and environment
variables, and a cached ``get_settings()`` accessor.

IMPORTANT: This module has ZERO imports from the ``emailagent`` package to
prevent circular imports.  Only stdlib, httpx, pydantic, pydantic_settings,
and structlog are used.
"""

from __future__ import annotations

import sys
from functools import lru_cache
from pathlib import Path

import httpx
import structlog
from pydantic import AliasChoices, Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = structlog.get_logger()


class Settings(BaseSettings):
    """Client settings loaded from environment variables and ``.env`` file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # -- General ---------------------------------------------------------------
    production: bool = False

    # -- Remote automation service ---------------------------------------------
    api_base_url: str = Field(
        default="http://localhost:8000",
        validation_alias=AliasChoices("api_base_url", "next_public_api_base_url"),
    )

    # -- Session persistence ---------------------------------------------------
    auth_storage_key: str = "email-agent-auth"
    session_db_path: Path = Path("data/session.db")

    # -- Login popup -----------------------------------------------------------
    popup_width: int = 520
    popup_height: int = 640

    @property
    def api_origin(self) -> str:
        """Return ``scheme://host[:port]`` of the remote service.

        Default ports are omitted, matching how browsers report message
        origins.
        """
        url = httpx.URL(self.api_base_url)
        host = f"[{url.host}]" if ":" in url.host else url.host
        origin = f"{url.scheme}://{host}"
        if url.port is not None:
            origin += f":{url.port}"
        return origin

    def api_url(self, path: str) -> str:
        """Join *path* onto the base URL, dropping any trailing slash first."""
        return f"{self.api_base_url.rstrip('/')}/{path.lstrip('/')}"


@lru_cache
def get_settings() -> Settings:
    """Return a cached ``Settings`` instance.

    Call ``get_settings.cache_clear()`` in tests to reset.

    Returns:
        The application ``Settings``.
    """
    try:
        return Settings()
    except ValidationError as exc:
        logger.error("Settings validation failed", errors=exc.errors())
        sys.exit(1)
