"""
envmon_ingestion.domain.types -- Pure dataclasses for the import pipeline.

ZERO I/O. Imports only from the standard library.

Lifecycle of one spreadsheet row:
    raw cells -> ImportRowInput (coerced, parse errors attached)
              -> ImportRowPreview (validated, reference names attached)
              -> MeasurementRecord (write model, accepted rows only)
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any


class CanonicalField(str, Enum):
    """Logical columns a header may resolve to."""

    SITE_ID = "SiteId"
    PARAMETER_CODE = "ParameterCode"
    MEASUREMENT_DATE = "MeasurementDate"
    ENTRY_DATE = "EntryDate"
    VALUE = "Value"
    UNIT = "Unit"
    REMARK = "Remark"
    APPROVED = "Approved"
    APPROVED_AT = "ApprovedAt"


# =============================================================================
# Row DTOs
# =============================================================================


@dataclass
class ImportRowInput:
    """
    One coerced spreadsheet row before validation.

    ``errors`` holds coercion-time messages ("Value is invalid." and the
    like); a field whose cell could not be parsed is left as None.
    """

    row_number: int
    site_id: int | None = None
    parameter_code: str | None = None
    measurement_date: datetime | None = None
    entry_date: datetime | None = None
    value: float | None = None
    unit: str | None = None
    remark: str | None = None
    is_approved: bool | None = None
    approved_at: datetime | None = None
    errors: list[str] = field(default_factory=list)

    @classmethod
    def from_preview(cls, preview: ImportRowPreview) -> ImportRowInput:
        """Rebuild validator input from a row echoed back by the caller.

        Previous messages are dropped; the row is checked again from scratch.
        """
        return cls(
            row_number=preview.row_number,
            site_id=preview.site_id,
            parameter_code=preview.parameter_code,
            measurement_date=preview.measurement_date,
            entry_date=preview.entry_date,
            value=preview.value,
            unit=preview.unit,
            remark=preview.remark,
            is_approved=preview.is_approved,
            approved_at=preview.approved_at,
        )


_DATETIME_FIELDS = ("measurement_date", "entry_date", "approved_at")


@dataclass(frozen=True)
class ImportRowPreview:
    """Validated row as shown to the user. Valid iff ``errors`` is empty."""

    row_number: int
    site_id: int | None = None
    site_name: str | None = None
    parameter_code: str | None = None
    parameter_name: str | None = None
    parameter_category: str | None = None
    measurement_date: datetime | None = None
    entry_date: datetime | None = None
    value: float | None = None
    unit: str | None = None
    remark: str | None = None
    is_approved: bool = False
    approved_at: datetime | None = None
    errors: tuple[str, ...] = ()

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def with_error(self, message: str) -> ImportRowPreview:
        """Return a copy with ``message`` appended to ``errors``."""
        return replace(self, errors=self.errors + (message,))

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready shape; timestamps as naive ISO-8601 strings."""
        data: dict[str, Any] = {
            "row_number": self.row_number,
            "site_id": self.site_id,
            "site_name": self.site_name,
            "parameter_code": self.parameter_code,
            "parameter_name": self.parameter_name,
            "parameter_category": self.parameter_category,
            "measurement_date": self.measurement_date,
            "entry_date": self.entry_date,
            "value": self.value,
            "unit": self.unit,
            "remark": self.remark,
            "is_approved": self.is_approved,
            "approved_at": self.approved_at,
            "is_valid": self.is_valid,
            "errors": list(self.errors),
        }
        for name in _DATETIME_FIELDS:
            if data[name] is not None:
                data[name] = data[name].isoformat()
        return data


# =============================================================================
# Results
# =============================================================================


@dataclass(frozen=True)
class ImportBatchResult:
    """Outcome of Preview. Counts are derived from ``rows``."""

    rows: tuple[ImportRowPreview, ...]

    @property
    def total_rows(self) -> int:
        return len(self.rows)

    @property
    def valid_rows(self) -> int:
        return sum(1 for r in self.rows if r.is_valid)

    @property
    def invalid_rows(self) -> int:
        return self.total_rows - self.valid_rows

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_rows": self.total_rows,
            "valid_rows": self.valid_rows,
            "invalid_rows": self.invalid_rows,
            "rows": [r.to_dict() for r in self.rows],
        }


@dataclass(frozen=True)
class ConfirmResult:
    """Outcome of Confirm. ``inserted_rows + failed_rows == total_rows``."""

    rows: tuple[ImportRowPreview, ...]
    total_rows: int
    inserted_rows: int
    failed_rows: int
    message: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_rows": self.total_rows,
            "inserted_rows": self.inserted_rows,
            "failed_rows": self.failed_rows,
            "message": self.message,
            "rows": [r.to_dict() for r in self.rows],
        }


# =============================================================================
# Write model
# =============================================================================


@dataclass(frozen=True)
class MeasurementRecord:
    """Fields persisted for one accepted row."""

    site_id: int
    parameter_code: str
    measurement_date: datetime
    entry_date: datetime
    value: float
    unit: str | None
    remark: str | None
    is_approved: bool
    approved_at: datetime | None

    @classmethod
    def from_preview(cls, row: ImportRowPreview) -> MeasurementRecord:
        """Copy the persisted fields of a valid row.

        ``approved_at`` is kept only for approved rows.

        Raises:
            ValueError: if the row carries errors or lacks a required field.
        """
        if not row.is_valid:
            raise ValueError(f"Row {row.row_number} is not valid and cannot be written")
        if (
            row.site_id is None
            or row.parameter_code is None
            or row.measurement_date is None
            or row.entry_date is None
            or row.value is None
        ):
            raise ValueError(f"Row {row.row_number} is missing a required field")
        return cls(
            site_id=row.site_id,
            parameter_code=row.parameter_code,
            measurement_date=row.measurement_date,
            entry_date=row.entry_date,
            value=row.value,
            unit=row.unit,
            remark=row.remark,
            is_approved=row.is_approved,
            approved_at=row.approved_at if row.is_approved else None,
        )
