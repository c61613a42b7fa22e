"""Measurement writers: accepted rows -> live tables."""

from envmon_ingestion.promoters.base import MeasurementWriter, WriteResult
from envmon_ingestion.promoters.measurement import SqlMeasurementWriter

__all__ = [
    "MeasurementWriter",
    "SqlMeasurementWriter",
    "WriteResult",
]
