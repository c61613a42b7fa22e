"""Fixtures shared by the import service tests."""

import pytest

from envmon_config.schema import ImportSettings
from envmon_ingestion.domain.types import MeasurementRecord
from envmon_ingestion.promoters.base import WriteResult
from envmon_ingestion.promoters.measurement import SqlMeasurementWriter
from envmon_ingestion.services.import_service import MeasurementImportService
from envmon_kernel.exceptions import AuditWriteError, MeasurementStoreUnavailableError
from envmon_kernel.services.auditor_service import AuditorService
from envmon_kernel.services.reference_data_loader import ReferenceDataLoader


class CountingWriter:
    """Wraps a writer and records every record that reaches it."""

    def __init__(self, inner=None, reject_rows: dict[int, str] | None = None,
                 fail_after: int | None = None):
        self.inner = inner
        self.records: list[MeasurementRecord] = []
        self._reject = reject_rows or {}
        self._fail_after = fail_after

    def write(self, record: MeasurementRecord) -> WriteResult:
        if self._fail_after is not None and len(self.records) >= self._fail_after:
            raise MeasurementStoreUnavailableError("server closed the connection unexpectedly")
        self.records.append(record)
        reason = self._reject.get(len(self.records))
        if reason is not None:
            return WriteResult(success=False, error=reason)
        if self.inner is not None:
            return self.inner.write(record)
        return WriteResult(success=True, entity_id=len(self.records))


class RecordingAuditSink:
    def __init__(self, fail_with: Exception | None = None):
        self.events: list[dict] = []
        self._fail_with = fail_with

    def record(self, action, entity_type, entity_id, message, payload=None, actor_id=None):
        if self._fail_with is not None:
            raise self._fail_with
        self.events.append({
            "action": action,
            "entity_type": entity_type,
            "entity_id": entity_id,
            "message": message,
            "payload": payload,
            "actor_id": actor_id,
        })


@pytest.fixture
def catalog(seeded_reference, deterministic_clock) -> ReferenceDataLoader:
    return ReferenceDataLoader(seeded_reference, clock=deterministic_clock)


@pytest.fixture
def sql_writer(seeded_reference) -> SqlMeasurementWriter:
    return SqlMeasurementWriter(seeded_reference)


@pytest.fixture
def counting_writer(sql_writer) -> CountingWriter:
    return CountingWriter(inner=sql_writer)


@pytest.fixture
def audit_sink() -> RecordingAuditSink:
    return RecordingAuditSink()


@pytest.fixture
def import_service(catalog, counting_writer, audit_sink, deterministic_clock) -> MeasurementImportService:
    return MeasurementImportService(
        catalog=catalog,
        writer=counting_writer,
        auditor=audit_sink,
        clock=deterministic_clock,
        settings=ImportSettings(),
    )


@pytest.fixture
def sql_import_service(seeded_reference, catalog, sql_writer, deterministic_clock) -> MeasurementImportService:
    """Service wired entirely to the database, including the audit trail."""
    return MeasurementImportService(
        catalog=catalog,
        writer=sql_writer,
        auditor=AuditorService(seeded_reference, deterministic_clock),
        clock=deterministic_clock,
    )


@pytest.fixture
def make_counting_writer():
    """Factory for writers that reject or fail on chosen calls."""
    return CountingWriter


@pytest.fixture
def failing_audit_sink() -> RecordingAuditSink:
    return RecordingAuditSink(fail_with=AuditWriteError("MeasurementResult.Import", "audit store offline"))


@pytest.fixture
def make_audit_sink():
    return RecordingAuditSink
