"""
AuditorService -- append-only, hash-chained audit trail.

Responsibility:
    Records user-visible actions (bulk imports and the like) as
    ``AuditEvent`` rows. Each row links to its predecessor through
    ``prev_hash`` so tampering is detectable by ``validate_chain()``.

Architecture position:
    Kernel > Services -- imperative shell, called by the import service
    after measurements are committed.

Failure modes:
    - AuditWriteError: the event could not be stored. Callers treat the
      audit sink as fire-and-forget and only log this.
"""

from typing import Any, Protocol, runtime_checkable

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from envmon_kernel.domain.clock import Clock, SystemClock
from envmon_kernel.exceptions import AuditWriteError
from envmon_kernel.logging_config import get_logger
from envmon_kernel.models.audit_event import AuditEvent
from envmon_kernel.utils.hashing import hash_audit_event, hash_payload

logger = get_logger("services.auditor")


@runtime_checkable
class AuditSink(Protocol):
    """Fire-and-forget recorder of user-visible actions."""

    def record(
        self,
        action: str,
        entity_type: str,
        entity_id: str,
        message: str,
        payload: dict[str, Any] | None = None,
        actor_id: str | None = None,
    ) -> None:
        ...


class AuditorService:
    """
    SQL-backed audit sink.

    Contract:
        Every ``record()`` call writes exactly one ``AuditEvent`` in its own
        transaction and commits it.

    Guarantees:
        - ``hash`` is a deterministic function of (action, entity_type,
          entity_id, payload_hash, prev_hash).
        - Events are never updated or deleted by this service.
    """

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        clock: Clock | None = None,
    ):
        self._session_factory = session_factory
        self._clock = clock or SystemClock()

    def record(
        self,
        action: str,
        entity_type: str,
        entity_id: str,
        message: str,
        payload: dict[str, Any] | None = None,
        actor_id: str | None = None,
    ) -> None:
        """
        Record one audit event.

        Raises:
            AuditWriteError: If the event could not be stored.
        """
        payload_data = payload or {}
        try:
            with self._session_factory() as session, session.begin():
                event = self._create_audit_event(
                    session, action, entity_type, entity_id, message, payload_data, actor_id
                )
        except SQLAlchemyError as exc:
            raise AuditWriteError(action, str(exc)) from exc

        logger.info(
            "audit_event_created",
            extra={
                "action": action,
                "entity_type": entity_type,
                "entity_id": entity_id,
                "audit_event_id": event.id,
            },
        )

    def _create_audit_event(
        self,
        session: Session,
        action: str,
        entity_type: str,
        entity_id: str,
        message: str,
        payload: dict[str, Any],
        actor_id: str | None,
    ) -> AuditEvent:
        prev_hash = self._get_last_hash(session)
        payload_hash = hash_payload(payload)
        event = AuditEvent(
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            message=message,
            payload=payload,
            actor_id=actor_id,
            occurred_at=self._clock.now(),
            payload_hash=payload_hash,
            prev_hash=prev_hash,
            hash=hash_audit_event(action, entity_type, entity_id, payload_hash, prev_hash),
        )
        session.add(event)
        session.flush()
        return event

    def _get_last_hash(self, session: Session) -> str | None:
        last = session.execute(
            select(AuditEvent.hash).order_by(AuditEvent.id.desc()).limit(1)
        ).scalar_one_or_none()
        return last

    def validate_chain(self) -> bool:
        """
        Recompute every hash in insertion order.

        Returns:
            True if every event's payload hash, chain link and own hash match.
        """
        with self._session_factory() as session:
            events = session.scalars(select(AuditEvent).order_by(AuditEvent.id)).all()

        prev_hash: str | None = None
        for event in events:
            if event.prev_hash != prev_hash:
                return False
            if hash_payload(event.payload or {}) != event.payload_hash:
                return False
            expected = hash_audit_event(
                event.action, event.entity_type, event.entity_id, event.payload_hash, prev_hash
            )
            if expected != event.hash:
                return False
            prev_hash = event.hash
        return True
