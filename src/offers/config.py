"""Centralized, typed configuration using pydantic-settings.

Provides a single ``Settings`` class backed by a ``.env`` file and
``OFFERS_``-prefixed environment variables, plus a cached ``get_settings()``
accessor.

IMPORTANT: This module has ZERO imports from the ``offers`` package to
prevent circular imports.  Only stdlib, pydantic, pydantic_settings, and
structlog are used.
"""

from __future__ import annotations

import sys
from functools import lru_cache
from pathlib import Path

import structlog
from pydantic import SecretStr, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = structlog.get_logger()


class Settings(BaseSettings):
    """Application settings loaded from environment variables and ``.env`` file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="OFFERS_",
        case_sensitive=False,
    )

    # -- General ---------------------------------------------------------------
    production: bool = False
    port: int = 8000

    # -- Storage ---------------------------------------------------------------
    db_path: Path = Path("data/offers.db")
    audit_db_path: Path = Path("data/audit.db")

    # -- Negotiation rules -----------------------------------------------------
    buyer_counter_enabled: bool = False

    # -- API client ------------------------------------------------------------
    api_base_url: str = "http://localhost:8000"
    api_timeout_seconds: float = 10.0
    api_token: SecretStr = SecretStr("")
    dispatch_max_attempts: int = 3

    # -- Observability ---------------------------------------------------------
    sentry_dsn: SecretStr = SecretStr("")


@lru_cache
def get_settings() -> Settings:
    """Return a cached ``Settings`` instance.

    Call ``get_settings.cache_clear()`` in tests to reset.
    """
    try:
        return Settings()
    except ValidationError as exc:
        # Log only the structured errors list, never the raw exception
        logger.error("settings_validation_failed", errors=exc.errors())
        sys.exit(1)
