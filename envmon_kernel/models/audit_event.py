"""
Module: envmon_kernel.models.audit_event
Responsibility: ORM persistence for the hash-chained audit trail.
Architecture position: Kernel > Models. May import from db/base.py only.

Invariants:
    - Audit records are append-only.
    - hash = H(action | entity_type | entity_id | payload_hash | prev_hash),
      computed by AuditorService. prev_hash is None only for the first row.
"""

from datetime import datetime

from sqlalchemy import JSON, DateTime, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from envmon_kernel.db.base import Base


class AuditEvent(Base):
    """
    One recorded user-visible action (e.g. a bulk measurement import).

    ``action`` follows the "<Entity>.<Verb>" convention, for example
    ``"MeasurementResult.Import"``. ``entity_id`` is free text because bulk
    actions use ``"bulk"`` rather than a row id.
    """

    __tablename__ = "audit_events"

    __table_args__ = (
        Index("idx_audit_entity", "entity_type", "entity_id"),
        Index("idx_audit_action", "action"),
        Index("idx_audit_occurred", "occurred_at"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    action: Mapped[str] = mapped_column(String(100), nullable=False)

    entity_type: Mapped[str] = mapped_column(String(100), nullable=False)

    entity_id: Mapped[str] = mapped_column(String(100), nullable=False)

    message: Mapped[str] = mapped_column(Text, nullable=False)

    payload: Mapped[dict | None] = mapped_column(JSON, nullable=True)

    actor_id: Mapped[str | None] = mapped_column(String(100), nullable=True)

    occurred_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    payload_hash: Mapped[str] = mapped_column(String(64), nullable=False)

    prev_hash: Mapped[str | None] = mapped_column(String(64), nullable=True)

    hash: Mapped[str] = mapped_column(String(64), nullable=False)

    def __repr__(self) -> str:
        return f"<AuditEvent {self.action} on {self.entity_type}:{self.entity_id}>"

    @property
    def is_genesis(self) -> bool:
        """True for the first event of the chain."""
        return self.prev_hash is None
