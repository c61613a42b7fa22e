"""
Cell coercion engine: raw spreadsheet cell -> typed value, per column.

Every coercer returns a CellResult in one of three states:
    EMPTY    cell absent, None, or whitespace-only text
    VALID    parsed; ``value`` holds the typed result
    INVALID  present but unparsable

Text parsing tries the invariant form first, then the process locale
(``locale.atoi`` / ``locale.atof``). Dates additionally try the configured
local strptime formats and finally numeric text as a spreadsheet serial.
Every datetime produced is naive. ZERO I/O.
"""

from __future__ import annotations

import locale
import math
import re
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from datetime import date, datetime, time
from enum import Enum
from typing import Any

from openpyxl.utils.datetime import from_excel

from envmon_config.schema import DEFAULT_LOCAL_DATE_FORMATS
from envmon_ingestion.adapters.base import RawRow
from envmon_ingestion.domain.types import CanonicalField, ImportRowInput
from envmon_ingestion.mapping.headers import HeaderMap
from envmon_kernel.exceptions import InvalidRowNumberError


class CellState(str, Enum):
    EMPTY = "empty"
    VALID = "valid"
    INVALID = "invalid"


@dataclass(frozen=True)
class CellResult:
    """Outcome of coercing one cell."""

    state: CellState
    value: Any = None

    @property
    def is_valid(self) -> bool:
        return self.state is CellState.VALID

    @property
    def is_invalid(self) -> bool:
        return self.state is CellState.INVALID


_EMPTY = CellResult(CellState.EMPTY)
_INVALID = CellResult(CellState.INVALID)

_INVARIANT_INT = re.compile(r"[+-]?\d+")
_INVARIANT_FLOAT = re.compile(
    r"[+-]?(?:(?:\d{1,3}(?:,\d{3})+|\d+)(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?"
)

# Month/day order of the invariant culture, then year-first and written months.
_INVARIANT_DATE_FORMATS = (
    "%m/%d/%Y %H:%M:%S",
    "%m/%d/%Y %H:%M",
    "%m/%d/%Y",
    "%Y/%m/%d %H:%M:%S",
    "%Y/%m/%d %H:%M",
    "%Y/%m/%d",
    "%d %B %Y",
    "%d %b %Y",
    "%B %d, %Y",
    "%b %d, %Y",
)


def is_empty_cell(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


# -----------------------------------------------------------------------------
# Text parsing helpers (pure)
# -----------------------------------------------------------------------------


def _parse_int_text(text: str) -> int | None:
    if _INVARIANT_INT.fullmatch(text):
        return int(text)
    if "_" in text:
        return None
    try:
        return locale.atoi(text)
    except ValueError:
        return None


def _parse_float_text(text: str) -> float | None:
    if _INVARIANT_FLOAT.fullmatch(text):
        parsed = float(text.replace(",", ""))
    elif "_" in text:
        return None
    else:
        try:
            parsed = locale.atof(text)
        except ValueError:
            return None
    return parsed if math.isfinite(parsed) else None


def _from_serial(serial: float) -> datetime | None:
    """Spreadsheet serial day number -> naive datetime."""
    if not math.isfinite(serial) or serial < 0:
        return None
    try:
        converted = from_excel(serial)
    except (ValueError, OverflowError):
        return None
    # serials below 1 are a bare time of day
    return converted if isinstance(converted, datetime) else None


def _parse_datetime_text(text: str, local_formats: Sequence[str]) -> datetime | None:
    # plain numbers are serials, never compact ISO dates
    if _INVARIANT_FLOAT.fullmatch(text):
        return _from_serial(float(text.replace(",", "")))
    try:
        return datetime.fromisoformat(text).replace(tzinfo=None)
    except ValueError:
        pass
    for fmt in (*_INVARIANT_DATE_FORMATS, *local_formats):
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    serial = _parse_float_text(text)
    return _from_serial(serial) if serial is not None else None


# -----------------------------------------------------------------------------
# Coercers (pure)
# -----------------------------------------------------------------------------


def coerce_integer(value: Any) -> CellResult:
    """Whole number. Native numbers are rounded half-to-even."""
    if is_empty_cell(value):
        return _EMPTY
    if isinstance(value, bool):
        return _INVALID
    if isinstance(value, int):
        return CellResult(CellState.VALID, value)
    if isinstance(value, float):
        if not math.isfinite(value):
            return _INVALID
        return CellResult(CellState.VALID, round(value))
    if isinstance(value, str):
        parsed = _parse_int_text(value.strip())
        if parsed is not None:
            return CellResult(CellState.VALID, parsed)
    return _INVALID


def coerce_float(value: Any) -> CellResult:
    """Finite real number. Text may use ``,`` thousands separators."""
    if is_empty_cell(value):
        return _EMPTY
    if _is_number(value):
        as_float = float(value)
        return CellResult(CellState.VALID, as_float) if math.isfinite(as_float) else _INVALID
    if isinstance(value, str):
        parsed = _parse_float_text(value.strip())
        if parsed is not None:
            return CellResult(CellState.VALID, parsed)
    return _INVALID


def coerce_boolean(value: Any) -> CellResult:
    """true/false, yes/no (any case), or an integer where non-zero is true."""
    if is_empty_cell(value):
        return _EMPTY
    if isinstance(value, bool):
        return CellResult(CellState.VALID, value)
    if _is_number(value):
        if isinstance(value, float) and not value.is_integer():
            return _INVALID
        return CellResult(CellState.VALID, value != 0)
    if isinstance(value, str):
        text = value.strip()
        lowered = text.lower()
        if lowered in ("true", "yes"):
            return CellResult(CellState.VALID, True)
        if lowered in ("false", "no"):
            return CellResult(CellState.VALID, False)
        if _INVARIANT_INT.fullmatch(text):
            return CellResult(CellState.VALID, int(text) != 0)
    return _INVALID


def coerce_datetime(
    value: Any,
    local_formats: Sequence[str] = DEFAULT_LOCAL_DATE_FORMATS,
) -> CellResult:
    """
    Naive datetime from a native date/datetime, a spreadsheet serial, or text.

    Timezone information, when present, is dropped; the wall-clock reading
    is kept as written.
    """
    if is_empty_cell(value):
        return _EMPTY
    if isinstance(value, datetime):
        return CellResult(CellState.VALID, value.replace(tzinfo=None))
    if isinstance(value, date):
        return CellResult(CellState.VALID, datetime.combine(value, time()))
    if _is_number(value):
        converted = _from_serial(float(value))
        return CellResult(CellState.VALID, converted) if converted is not None else _INVALID
    if isinstance(value, str):
        parsed = _parse_datetime_text(value.strip(), local_formats)
        if parsed is not None:
            return CellResult(CellState.VALID, parsed)
    return _INVALID


def coerce_string(value: Any) -> CellResult:
    """Trimmed text. Integral floats render without a trailing ``.0``."""
    if is_empty_cell(value):
        return _EMPTY
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return CellResult(CellState.VALID, str(value).strip())


# -----------------------------------------------------------------------------
# Row parsing (pure)
# -----------------------------------------------------------------------------

# Keys of ``ImportRowPreview.to_dict()`` for each canonical field.
ECHO_FIELD_KEYS: dict[CanonicalField, str] = {
    CanonicalField.SITE_ID: "site_id",
    CanonicalField.PARAMETER_CODE: "parameter_code",
    CanonicalField.MEASUREMENT_DATE: "measurement_date",
    CanonicalField.ENTRY_DATE: "entry_date",
    CanonicalField.VALUE: "value",
    CanonicalField.UNIT: "unit",
    CanonicalField.REMARK: "remark",
    CanonicalField.APPROVED: "is_approved",
    CanonicalField.APPROVED_AT: "approved_at",
}


def _coerce_fields(
    row_number: int,
    cell: Callable[[CanonicalField], Any],
    local_date_formats: Sequence[str],
) -> tuple[ImportRowInput, bool]:
    """Coerce every canonical field read through ``cell``.

    Returns the row and whether any field held anything.
    """
    parsed = ImportRowInput(row_number=row_number)
    has_value = False

    def take(result: CellResult, message: str | None = None) -> Any:
        nonlocal has_value
        if result.state is CellState.EMPTY:
            return None
        has_value = True
        if result.is_invalid:
            if message is not None:
                parsed.errors.append(message)
            return None
        return result.value

    parsed.site_id = take(
        coerce_integer(cell(CanonicalField.SITE_ID)),
        "Site ID is invalid.",
    )
    parsed.parameter_code = take(coerce_string(cell(CanonicalField.PARAMETER_CODE)))
    parsed.measurement_date = take(
        coerce_datetime(cell(CanonicalField.MEASUREMENT_DATE), local_date_formats),
        "Measurement date value is invalid.",
    )
    parsed.entry_date = take(
        coerce_datetime(cell(CanonicalField.ENTRY_DATE), local_date_formats),
        "Entry date value is invalid.",
    )
    parsed.value = take(
        coerce_float(cell(CanonicalField.VALUE)),
        "Value is invalid.",
    )
    parsed.unit = take(coerce_string(cell(CanonicalField.UNIT)))
    parsed.remark = take(coerce_string(cell(CanonicalField.REMARK)))
    parsed.is_approved = take(
        coerce_boolean(cell(CanonicalField.APPROVED)),
        "Approved value is invalid.",
    )
    parsed.approved_at = take(
        coerce_datetime(cell(CanonicalField.APPROVED_AT), local_date_formats),
        "Approved At value is invalid.",
    )
    return parsed, has_value


def parse_row(
    row: RawRow,
    header_map: HeaderMap,
    local_date_formats: Sequence[str] = DEFAULT_LOCAL_DATE_FORMATS,
) -> ImportRowInput | None:
    """
    Coerce every mapped cell of ``row``.

    Returns None when no mapped cell holds anything, so blank separator rows
    are skipped and never counted. A present but unparsable cell leaves its
    field None and adds one message to ``errors``.
    """

    def cell(canonical: CanonicalField) -> Any:
        column = header_map.column(canonical)
        return row.cell(column) if column is not None else None

    parsed, has_value = _coerce_fields(row.row_number, cell, local_date_formats)
    return parsed if has_value else None


def parse_echoed_row(
    data: Mapping[str, Any],
    position: int,
    local_date_formats: Sequence[str] = DEFAULT_LOCAL_DATE_FORMATS,
) -> ImportRowInput:
    """
    Rebuild validator input from the dict shape of a preview row.

    Fields go through the same coercers as sheet cells, so an edited field
    that cannot be read becomes a row error with the Preview message.
    Previous ``errors`` and ``is_valid`` are ignored.

    Raises:
        InvalidRowNumberError: ``row_number`` is missing or not a whole number.
    """
    row_number = coerce_integer(data.get("row_number"))
    if not row_number.is_valid:
        raise InvalidRowNumberError(position)

    parsed, _ = _coerce_fields(
        row_number.value,
        lambda canonical: data.get(ECHO_FIELD_KEYS[canonical]),
        local_date_formats,
    )
    return parsed
