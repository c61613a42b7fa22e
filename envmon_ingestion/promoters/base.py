"""
MeasurementWriter protocol and WriteResult.

Writers persist one accepted row per call, each in its own transaction, so a
rejected record never rolls back rows already written.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from envmon_ingestion.domain.types import MeasurementRecord


@dataclass(frozen=True)
class WriteResult:
    """Result of a single write attempt."""

    success: bool
    entity_id: int | None = None
    error: str | None = None


@runtime_checkable
class MeasurementWriter(Protocol):
    """Persists measurement records one at a time."""

    def write(self, record: MeasurementRecord) -> WriteResult:
        """
        Store one record and commit it.

        Returns a failed WriteResult when the store rejects this record.

        Raises:
            MeasurementStoreUnavailableError: the store cannot take any write.
        """
        ...
