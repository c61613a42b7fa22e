"""
Sheet adapter protocol and raw sheet DTO.

Contract:
    SheetAdapter.read() returns the header row and every row after it from
    the first worksheet of a workbook, as raw cell values.

Architecture: envmon_ingestion/adapters. File I/O only, no DB imports.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, BinaryIO, Protocol, Union, runtime_checkable

# A binary stream, the file bytes, or a filesystem path.
SheetSource = Union[BinaryIO, bytes, bytearray, str, Path]


@dataclass(frozen=True)
class RawRow:
    """Raw cell values of one data row. ``cells[0]`` is column 1."""

    row_number: int  # 1-indexed sheet row
    cells: tuple[Any, ...]

    def cell(self, column: int) -> Any:
        """Value in 1-indexed ``column``; None past the end of the row."""
        if column < 1 or column > len(self.cells):
            return None
        return self.cells[column - 1]


@dataclass(frozen=True)
class RawSheet:
    """First worksheet split into header cells and data rows."""

    header_row_number: int
    header_cells: tuple[tuple[int, str], ...]  # (1-indexed column, text), non-empty only
    rows: tuple[RawRow, ...]


@runtime_checkable
class SheetAdapter(Protocol):
    """Protocol for reading an uploaded workbook into a RawSheet."""

    def read(self, source: SheetSource | None) -> RawSheet:
        """Read the first worksheet. Raises ImportStructureError subclasses."""
        ...
