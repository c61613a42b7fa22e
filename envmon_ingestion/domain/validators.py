"""
Row validator shared by Preview and Confirm.

One pure function checks a coerced row against a reference snapshot and
returns the preview shown to the user. Preview and Confirm both call it,
so what was previewed is exactly what gets re-checked.

Architecture: envmon_ingestion/domain. ZERO I/O. The current instant is
passed in; nothing here reads a clock.
"""

from __future__ import annotations

from datetime import datetime

from envmon_ingestion.domain.types import ImportRowInput, ImportRowPreview
from envmon_kernel.domain.reference_data import ReferenceSnapshot, normalize_parameter_code

VALUE_PARSE_ERROR = "Value is invalid."


def _clean_text(value: str | None) -> str | None:
    if value is None or not value.strip():
        return None
    return value.strip()


def validate_import_row(
    row: ImportRowInput,
    snapshot: ReferenceSnapshot,
    now: datetime,
) -> ImportRowPreview:
    """
    Validate one row and fill in defaults.

    Checks run in a fixed order and every failure is reported; a row is
    valid iff the returned preview has no errors.

    Defaults:
        - measurement date falls back to entry date (both then equal)
        - a missing entry date takes the measurement date, else ``now``
        - an approved row without an approval time is stamped ``now``
        - a missing unit takes the parameter's unit

    Args:
        row: Coerced row, including coercion-time errors.
        snapshot: Active sites and parameters for this pass.
        now: Naive current instant.
    """
    errors: list[str] = list(row.errors)

    site_name: str | None = None
    if row.site_id is None:
        errors.append("Site ID is required.")
    else:
        site = snapshot.site(row.site_id)
        if site is None:
            errors.append(f"Site #{row.site_id} was not found.")
        else:
            site_name = site.name

    unit = _clean_text(row.unit)
    parameter_code: str | None = None
    parameter_name: str | None = None
    parameter_category: str | None = None
    if row.parameter_code is None or not row.parameter_code.strip():
        errors.append("Parameter code is required.")
    else:
        parameter_code = normalize_parameter_code(row.parameter_code)
        parameter = snapshot.parameter(parameter_code)
        if parameter is None:
            errors.append(f"Parameter {parameter_code} was not found.")
        else:
            parameter_name = parameter.name
            parameter_category = parameter.category
            if unit is None:
                unit = _clean_text(parameter.unit)

    measurement_date = row.measurement_date or row.entry_date
    if measurement_date is None:
        errors.append("Measurement date is required.")

    entry_date = row.entry_date or measurement_date or now

    if row.value is None and VALUE_PARSE_ERROR not in row.errors:
        errors.append("Value is required.")

    is_approved = bool(row.is_approved)
    approved_at = row.approved_at
    if is_approved and approved_at is None:
        approved_at = now

    return ImportRowPreview(
        row_number=row.row_number,
        site_id=row.site_id,
        site_name=site_name,
        parameter_code=parameter_code,
        parameter_name=parameter_name,
        parameter_category=parameter_category,
        measurement_date=measurement_date,
        entry_date=entry_date,
        value=row.value,
        unit=unit,
        remark=_clean_text(row.remark),
        is_approved=is_approved,
        approved_at=approved_at,
        errors=tuple(errors),
    )
