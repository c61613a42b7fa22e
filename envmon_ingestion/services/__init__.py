"""Import orchestration: Preview and Confirm."""

from envmon_ingestion.services.import_service import MeasurementImportService

__all__ = ["MeasurementImportService"]
