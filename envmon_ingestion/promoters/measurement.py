"""
Measurement promoter: accepted import row -> MeasurementResult row.

One session and one transaction per record. Constraint and data errors
reject only the record; connection-level errors stop the import.
"""

from __future__ import annotations

from sqlalchemy.exc import DataError, IntegrityError, InterfaceError, OperationalError
from sqlalchemy.orm import Session, sessionmaker

from envmon_ingestion.domain.types import MeasurementRecord
from envmon_ingestion.promoters.base import WriteResult
from envmon_kernel.exceptions import MeasurementStoreUnavailableError
from envmon_kernel.logging_config import get_logger
from envmon_kernel.models.measurement import MeasurementResult

logger = get_logger("ingestion.measurement_writer")


def _db_detail(exc: Exception) -> str:
    orig = getattr(exc, "orig", None)
    return str(orig if orig is not None else exc)


class SqlMeasurementWriter:
    """Writes MeasurementResult rows through an injected session factory."""

    def __init__(self, session_factory: sessionmaker[Session]):
        self._session_factory = session_factory

    def write(self, record: MeasurementRecord) -> WriteResult:
        try:
            with self._session_factory() as session, session.begin():
                row = MeasurementResult(
                    site_id=record.site_id,
                    parameter_code=record.parameter_code,
                    measurement_date=record.measurement_date,
                    value=record.value,
                    unit=record.unit,
                    entry_date=record.entry_date,
                    remark=record.remark,
                    is_approved=record.is_approved,
                    approved_at=record.approved_at,
                )
                session.add(row)
                session.flush()
                entity_id = row.id
        except (IntegrityError, DataError) as exc:
            return WriteResult(success=False, error=_db_detail(exc))
        except (OperationalError, InterfaceError) as exc:
            logger.error(
                "measurement_store_unavailable",
                extra={"error_type": type(exc).__name__},
            )
            raise MeasurementStoreUnavailableError(_db_detail(exc)) from exc

        logger.debug(
            "measurement_written",
            extra={
                "measurement_id": entity_id,
                "site_id": record.site_id,
                "parameter_code": record.parameter_code,
            },
        )
        return WriteResult(success=True, entity_id=entity_id)
