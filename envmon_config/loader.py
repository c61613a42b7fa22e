"""
Settings Loader (``envmon_config.loader``).

Responsibility
--------------
Reads a YAML settings file and parses it into a frozen
``ImportSettings``. Unknown keys and malformed values are rejected rather
than silently ignored.

Failure modes
-------------
* Missing file  -> ``ConfigError``.
* Malformed YAML  -> ``ConfigError`` chained from ``yaml.YAMLError``.
* Unknown key, wrong type, unknown canonical field or log level
  -> ``ConfigError``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from envmon_config.schema import (
    CANONICAL_FIELD_NAMES,
    DEFAULT_DATABASE_URL,
    DEFAULT_LOCAL_DATE_FORMATS,
    LOG_LEVELS,
    ImportSettings,
)
from envmon_kernel.exceptions import ConfigError

_KNOWN_KEYS = frozenset({
    "database_url",
    "header_synonyms",
    "local_date_formats",
    "log_level",
})


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    An empty file yields an empty dict.

    Raises:
        ConfigError: if the file is missing, unparsable, or not a mapping.
    """
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except FileNotFoundError as exc:
        raise ConfigError(f"Settings file not found: {path}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"Settings file {path} is not valid YAML: {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Settings file {path} must contain a mapping at top level")
    return data


def parse_settings(data: dict[str, Any]) -> ImportSettings:
    """Parse a raw settings dict into ``ImportSettings``."""
    unknown = sorted(set(data) - _KNOWN_KEYS)
    if unknown:
        raise ConfigError(f"Unknown settings keys: {', '.join(unknown)}")

    database_url = data.get("database_url", DEFAULT_DATABASE_URL)
    if not isinstance(database_url, str) or not database_url.strip():
        raise ConfigError("database_url must be a non-empty string")

    return ImportSettings(
        database_url=database_url.strip(),
        header_synonyms=_parse_header_synonyms(data.get("header_synonyms") or {}),
        local_date_formats=_parse_date_formats(data.get("local_date_formats")),
        log_level=_parse_log_level(data.get("log_level", "INFO")),
    )


def load_settings(path: str | Path) -> ImportSettings:
    """Load and parse a YAML settings file."""
    return parse_settings(load_yaml_file(Path(path)))


def _parse_header_synonyms(raw: Any) -> dict[str, str]:
    if not isinstance(raw, dict):
        raise ConfigError("header_synonyms must be a mapping of header text to field name")

    # Imported here: the normalizer lives with the header mapper.
    from envmon_ingestion.mapping.headers import normalize_header

    synonyms: dict[str, str] = {}
    for header, field_name in raw.items():
        if field_name not in CANONICAL_FIELD_NAMES:
            raise ConfigError(
                f"header_synonyms: {header!r} maps to unknown field {field_name!r}"
            )
        normalized = normalize_header(str(header))
        if normalized is None:
            raise ConfigError(f"header_synonyms: header {header!r} has no letters or digits")
        synonyms[normalized] = field_name
    return synonyms


def _parse_date_formats(raw: Any) -> tuple[str, ...]:
    if raw is None:
        return DEFAULT_LOCAL_DATE_FORMATS
    if not isinstance(raw, list) or not all(isinstance(f, str) and f for f in raw):
        raise ConfigError("local_date_formats must be a list of strptime format strings")
    return tuple(raw)


def _parse_log_level(raw: Any) -> str:
    level = str(raw).upper()
    if level not in LOG_LEVELS:
        raise ConfigError(f"log_level must be one of {sorted(LOG_LEVELS)}, got {raw!r}")
    return level
