"""
XLSX sheet adapter for measurement workbooks.

Layout rules:
  - only the first worksheet is read
  - the first row containing any non-empty cell is the header row
  - every row after it, through the last used row, is a data row
  - integral floats become ints; other values are passed through as openpyxl
    returns them (datetime for date-formatted cells, bare numbers otherwise)
"""

from __future__ import annotations

import io
from pathlib import Path
from typing import Any
from zipfile import BadZipFile

import openpyxl
from openpyxl.utils.exceptions import InvalidFileException

from envmon_ingestion.adapters.base import RawRow, RawSheet, SheetSource
from envmon_kernel.exceptions import (
    MissingHeaderRowError,
    MissingWorksheetError,
    NoSourceFileError,
    SourceUnreadableError,
)
from envmon_kernel.logging_config import get_logger

logger = get_logger("ingestion.xlsx_adapter")

# SyntaxError covers the XML ParseError raised for a damaged sheet part.
_UNREADABLE_ERRORS = (
    BadZipFile,
    InvalidFileException,
    KeyError,
    OSError,
    SyntaxError,
    TypeError,
    ValueError,
)


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _cell_value(value: Any) -> Any:
    """Normalize one openpyxl cell value."""
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def _header_text(value: Any) -> str:
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()


def _source_bytes(source: SheetSource | None) -> bytes:
    """Materialize the upload. Empty or missing input is NoSourceFileError."""
    if source is None:
        raise NoSourceFileError()
    if isinstance(source, (bytes, bytearray)):
        data = bytes(source)
    elif isinstance(source, (str, Path)):
        try:
            data = Path(source).read_bytes()
        except FileNotFoundError as exc:
            raise NoSourceFileError() from exc
        except OSError as exc:
            raise SourceUnreadableError(str(exc)) from exc
    else:
        data = source.read()
    if not data:
        raise NoSourceFileError()
    return data


def _scan_rows(sheet) -> tuple[int | None, tuple[tuple[int, str], ...], list[RawRow]]:
    """Locate the header row and collect every row after it."""
    header_row_number: int | None = None
    header_cells: tuple[tuple[int, str], ...] = ()
    rows: list[RawRow] = []
    for row_number, values in enumerate(sheet.iter_rows(min_row=1, values_only=True), start=1):
        if header_row_number is None:
            if all(_is_blank(v) for v in values):
                continue
            header_row_number = row_number
            header_cells = tuple(
                (col, _header_text(v))
                for col, v in enumerate(values, start=1)
                if not _is_blank(v)
            )
            continue
        rows.append(RawRow(row_number=row_number, cells=tuple(_cell_value(v) for v in values)))
    return header_row_number, header_cells, rows


class XlsxSheetAdapter:
    """
    Read the first worksheet of an .xlsx workbook into a RawSheet.

    Raises:
        NoSourceFileError: no input, or zero bytes.
        SourceUnreadableError: the bytes are not an xlsx workbook, or a
            worksheet part inside it is damaged.
        MissingWorksheetError: the workbook has no worksheet.
        MissingHeaderRowError: every row of the first worksheet is empty.
    """

    def read(self, source: SheetSource | None) -> RawSheet:
        data = _source_bytes(source)

        # openpyxl parses sheet XML lazily in read-only mode, so row
        # iteration can fail just like the load.
        try:
            wb = openpyxl.load_workbook(io.BytesIO(data), read_only=True, data_only=True)
            try:
                if not wb.worksheets:
                    raise MissingWorksheetError()
                sheet = wb.worksheets[0]
                header_row_number, header_cells, rows = _scan_rows(sheet)
            finally:
                wb.close()
        except _UNREADABLE_ERRORS as exc:
            logger.warning(
                "xlsx_unreadable",
                extra={"error_type": type(exc).__name__, "size_bytes": len(data)},
            )
            raise SourceUnreadableError(str(exc)) from exc

        if header_row_number is None:
            raise MissingHeaderRowError()

        logger.debug(
            "xlsx_sheet_read",
            extra={
                "sheet": sheet.title,
                "header_row": header_row_number,
                "header_columns": len(header_cells),
                "data_rows": len(rows),
            },
        )
        return RawSheet(
            header_row_number=header_row_number,
            header_cells=header_cells,
            rows=tuple(rows),
        )
