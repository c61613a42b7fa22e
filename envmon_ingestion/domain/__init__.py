"""Pure types and validation for measurement import. ZERO I/O."""

from envmon_ingestion.domain.types import (
    CanonicalField,
    ConfirmResult,
    ImportBatchResult,
    ImportRowInput,
    ImportRowPreview,
    MeasurementRecord,
)
from envmon_ingestion.domain.validators import validate_import_row

__all__ = [
    "CanonicalField",
    "ConfirmResult",
    "ImportBatchResult",
    "ImportRowInput",
    "ImportRowPreview",
    "MeasurementRecord",
    "validate_import_row",
]
