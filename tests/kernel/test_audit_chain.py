"""Tests for AuditorService and the hash-chained audit trail."""

import pytest
from sqlalchemy import create_engine, select
from sqlalchemy.orm import sessionmaker

from envmon_kernel.exceptions import AuditWriteError
from envmon_kernel.models.audit_event import AuditEvent
from envmon_kernel.services.auditor_service import AuditorService, AuditSink
from envmon_kernel.utils.hashing import hash_audit_event, hash_payload


@pytest.fixture
def auditor(session_factory, deterministic_clock) -> AuditorService:
    return AuditorService(session_factory, clock=deterministic_clock)


def _events(session_factory) -> list[AuditEvent]:
    with session_factory() as session:
        return list(session.scalars(select(AuditEvent).order_by(AuditEvent.id)))


class TestAuditorService:
    def test_satisfies_sink_protocol(self, auditor):
        assert isinstance(auditor, AuditSink)

    def test_first_event_is_genesis(self, auditor, session_factory, test_actor_id):
        auditor.record(
            "MeasurementResult.Import", "MeasurementResult", "bulk",
            "Imported 3 measurement results.", {"inserted": 3, "total": 4},
            actor_id=test_actor_id,
        )

        (event,) = _events(session_factory)
        assert event.is_genesis
        assert event.actor_id == test_actor_id
        assert event.message == "Imported 3 measurement results."
        assert event.payload_hash == hash_payload({"inserted": 3, "total": 4})
        assert event.hash == hash_audit_event(
            "MeasurementResult.Import", "MeasurementResult", "bulk", event.payload_hash, None
        )

    def test_events_link_to_predecessor(self, auditor, session_factory):
        auditor.record("MeasurementResult.Import", "MeasurementResult", "bulk", "first", {"inserted": 1})
        auditor.record("MeasurementResult.Import", "MeasurementResult", "bulk", "second", {"inserted": 2})

        first, second = _events(session_factory)
        assert second.prev_hash == first.hash
        assert second.hash != first.hash

    def test_missing_payload_stored_as_empty(self, auditor, session_factory):
        auditor.record("Site.Touch", "MonitoringSite", "1", "touched")

        (event,) = _events(session_factory)
        assert event.payload == {}

    def test_validate_chain(self, auditor):
        assert auditor.validate_chain()
        for i in range(3):
            auditor.record("MeasurementResult.Import", "MeasurementResult", "bulk", "ok", {"n": i})
        assert auditor.validate_chain()

    def test_tampering_detected(self, auditor, session_factory):
        auditor.record("MeasurementResult.Import", "MeasurementResult", "bulk", "a", {"inserted": 5})
        auditor.record("MeasurementResult.Import", "MeasurementResult", "bulk", "b", {"inserted": 6})

        with session_factory() as session, session.begin():
            first = session.scalars(select(AuditEvent).order_by(AuditEvent.id)).first()
            first.payload = {"inserted": 500}

        assert not auditor.validate_chain()

    def test_logs_created_event(self, auditor, captured_logs):
        auditor.record("MeasurementResult.Import", "MeasurementResult", "bulk", "a", {})

        created = [r for r in captured_logs() if r["message"] == "audit_event_created"]
        assert created and created[0]["audit_event_id"] == 1

    def test_store_failure_raises_audit_write_error(self, tmp_path):
        engine = create_engine(f"sqlite:///{tmp_path / 'missing' / 'audit.db'}")
        auditor = AuditorService(sessionmaker(bind=engine))

        with pytest.raises(AuditWriteError) as exc_info:
            auditor.record("MeasurementResult.Import", "MeasurementResult", "bulk", "a", {})
        assert exc_info.value.action == "MeasurementResult.Import"
        engine.dispose()
