"""
envmon_config -- single entrypoint for import settings.

Responsibility:
    ``get_import_settings()`` is the one way services and scripts obtain
    settings. YAML parsing is delegated to ``envmon_config.loader``.

Failure modes:
    - ``ConfigError`` -- the settings file is missing or invalid.
"""

from __future__ import annotations

import os
from dataclasses import replace
from pathlib import Path

from envmon_config.loader import load_settings
from envmon_config.schema import ImportSettings
from envmon_kernel.logging_config import get_logger

logger = get_logger("config")

DATABASE_URL_ENV = "ENVMON_DATABASE_URL"

__all__ = [
    "DATABASE_URL_ENV",
    "ImportSettings",
    "get_import_settings",
    "load_settings",
]


def get_import_settings(path: str | Path | None = None) -> ImportSettings:
    """
    Return import settings.

    Defaults apply when no file is given. ``ENVMON_DATABASE_URL``, when set,
    overrides the database URL from either source.
    """
    settings = load_settings(path) if path is not None else ImportSettings()

    env_url = os.environ.get(DATABASE_URL_ENV)
    if env_url:
        settings = replace(settings, database_url=env_url)

    logger.debug(
        "import_settings_loaded",
        extra={
            "source": str(path) if path is not None else "defaults",
            "extra_synonyms": len(settings.header_synonyms),
            "local_date_formats": len(settings.local_date_formats),
        },
    )
    return settings
