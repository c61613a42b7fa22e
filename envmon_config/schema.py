"""
Import settings schema.

Settings are human-authored YAML parsed into frozen dataclasses by
``envmon_config.loader``. Nothing here performs I/O.
"""

from __future__ import annotations

from dataclasses import dataclass, field

# Names accepted as targets of extra header synonyms. Must match the values
# of ``envmon_ingestion.domain.types.CanonicalField``.
CANONICAL_FIELD_NAMES = frozenset({
    "SiteId",
    "ParameterCode",
    "MeasurementDate",
    "EntryDate",
    "Value",
    "Unit",
    "Remark",
    "Approved",
    "ApprovedAt",
})

DEFAULT_LOCAL_DATE_FORMATS: tuple[str, ...] = (
    "%d/%m/%Y %H:%M:%S",
    "%d/%m/%Y %H:%M",
    "%d/%m/%Y",
    "%d.%m.%Y",
    "%d-%m-%Y",
)

DEFAULT_DATABASE_URL = "sqlite:///envmon.db"

LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})


@dataclass(frozen=True)
class ImportSettings:
    """Runtime settings for the measurement import pipeline."""

    database_url: str = DEFAULT_DATABASE_URL
    # normalized header text -> canonical field name
    header_synonyms: dict[str, str] = field(default_factory=dict)
    # strptime formats tried after the invariant ones
    local_date_formats: tuple[str, ...] = DEFAULT_LOCAL_DATE_FORMATS
    log_level: str = "INFO"
