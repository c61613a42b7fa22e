"""
Header mapping: resolve user-authored column titles to canonical fields.

Matching is forgiving: every header is reduced to its lower-cased
alphanumeric characters and looked up in a flat synonym table. New synonyms
are data, not code. ZERO I/O.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from envmon_ingestion.domain.types import CanonicalField
from envmon_kernel.exceptions import ConfigError, MissingRequiredColumnsError

# normalized header text -> canonical field
HEADER_SYNONYMS: dict[str, CanonicalField] = {
    "emissionsource": CanonicalField.SITE_ID,
    "emissionsourceid": CanonicalField.SITE_ID,
    "sourceid": CanonicalField.SITE_ID,
    "source": CanonicalField.SITE_ID,
    "site": CanonicalField.SITE_ID,
    "siteid": CanonicalField.SITE_ID,
    "monitoringsite": CanonicalField.SITE_ID,
    "parameter": CanonicalField.PARAMETER_CODE,
    "parametercode": CanonicalField.PARAMETER_CODE,
    "measurement": CanonicalField.MEASUREMENT_DATE,
    "measurementdate": CanonicalField.MEASUREMENT_DATE,
    "measurementdatetime": CanonicalField.MEASUREMENT_DATE,
    "entrydate": CanonicalField.ENTRY_DATE,
    "entrydatetime": CanonicalField.ENTRY_DATE,
    "value": CanonicalField.VALUE,
    "unit": CanonicalField.UNIT,
    "remark": CanonicalField.REMARK,
    "remarks": CanonicalField.REMARK,
    "note": CanonicalField.REMARK,
    "notes": CanonicalField.REMARK,
    "isapproved": CanonicalField.APPROVED,
    "approved": CanonicalField.APPROVED,
    "approval": CanonicalField.APPROVED,
    "approvedat": CanonicalField.APPROVED_AT,
    "approvaldate": CanonicalField.APPROVED_AT,
    "approveddate": CanonicalField.APPROVED_AT,
}


def normalize_header(text: str | None) -> str | None:
    """Keep only letters and digits, lower-cased. Blank input gives None."""
    if text is None:
        return None
    normalized = "".join(ch for ch in text if ch.isalnum()).lower()
    return normalized or None


@dataclass(frozen=True)
class HeaderMap:
    """Canonical field -> 1-indexed column of the sheet."""

    columns: Mapping[CanonicalField, int] = field(default_factory=dict)

    def has(self, canonical: CanonicalField) -> bool:
        return canonical in self.columns

    def column(self, canonical: CanonicalField) -> int | None:
        return self.columns.get(canonical)

    def missing_mandatory(self) -> list[str]:
        """Names of mandatory columns that did not resolve."""
        missing = [
            f.value
            for f in (CanonicalField.PARAMETER_CODE, CanonicalField.VALUE)
            if f not in self.columns
        ]
        if not (
            self.has(CanonicalField.MEASUREMENT_DATE) or self.has(CanonicalField.ENTRY_DATE)
        ):
            missing.append(
                f"{CanonicalField.MEASUREMENT_DATE.value} or {CanonicalField.ENTRY_DATE.value}"
            )
        return missing

    def require_mandatory_columns(self) -> None:
        """
        Raises:
            MissingRequiredColumnsError: unless ParameterCode, Value, and at
                least one of MeasurementDate/EntryDate resolved.
        """
        missing = self.missing_mandatory()
        if missing:
            raise MissingRequiredColumnsError(missing)


def merge_synonyms(extra: Mapping[str, str] | None) -> dict[str, CanonicalField]:
    """Default synonyms overlaid with ``extra`` (header text -> field name)."""
    merged = dict(HEADER_SYNONYMS)
    for header, field_name in (extra or {}).items():
        key = normalize_header(header)
        if key is None:
            continue
        try:
            merged[key] = CanonicalField(field_name)
        except ValueError as exc:
            raise ConfigError(
                f"Header synonym {header!r} maps to unknown field {field_name!r}"
            ) from exc
    return merged


def build_header_map(
    header_cells: Iterable[tuple[int, str]],
    synonyms: Mapping[str, str] | None = None,
) -> HeaderMap:
    """
    Resolve header cells to canonical fields.

    Unrecognized headers are ignored. When two columns resolve to the same
    field, the rightmost one wins.
    """
    table = merge_synonyms(synonyms)
    columns: dict[CanonicalField, int] = {}
    for column, text in header_cells:
        key = normalize_header(text)
        if key is None:
            continue
        canonical = table.get(key)
        if canonical is not None:
            columns[canonical] = column
    return HeaderMap(columns=columns)
