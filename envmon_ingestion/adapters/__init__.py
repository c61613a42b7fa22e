"""Sheet adapters for measurement import (file I/O only, no DB)."""

from envmon_ingestion.adapters.base import RawRow, RawSheet, SheetAdapter, SheetSource
from envmon_ingestion.adapters.xlsx_adapter import XlsxSheetAdapter

__all__ = [
    "RawRow",
    "RawSheet",
    "SheetAdapter",
    "SheetSource",
    "XlsxSheetAdapter",
]
