"""
Reference Data Loader - builds the site/parameter snapshot for validation.

The loader queries the database for active (non-deleted) sites and
parameters and returns a ``ReferenceSnapshot`` the pure row validator can
use. Every call opens its own short-lived session, so each snapshot
reflects the latest committed state; nothing is cached between calls.
"""

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from envmon_kernel.domain.clock import Clock, SystemClock
from envmon_kernel.domain.reference_data import (
    ReferenceParameter,
    ReferenceSite,
    ReferenceSnapshot,
)
from envmon_kernel.exceptions import ReferenceDataUnavailableError
from envmon_kernel.logging_config import get_logger
from envmon_kernel.models.parameter import Parameter
from envmon_kernel.models.site import MonitoringSite

logger = get_logger("services.reference_data_loader")


class ReferenceDataLoader:
    """
    SQL-backed catalog accessor.

    Creates a ReferenceSnapshot containing:
    - Active site ids with display names
    - Active parameter codes (upper case) with name, unit and category
    """

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        clock: Clock | None = None,
    ):
        """
        Initialize the loader.

        Args:
            session_factory: Factory for the per-call read session.
            clock: Clock used for ``captured_at``. Defaults to SystemClock.
        """
        self._session_factory = session_factory
        self._clock = clock or SystemClock()

    def load_snapshot(self) -> ReferenceSnapshot:
        """
        Load a fresh snapshot of active sites and parameters.

        Raises:
            ReferenceDataUnavailableError: the store could not be read.
        """
        try:
            with self._session_factory() as session:
                sites = self._load_sites(session)
                parameters = self._load_parameters(session)
        except SQLAlchemyError as exc:
            logger.error(
                "reference_snapshot_failed",
                extra={"error_type": type(exc).__name__},
            )
            detail = getattr(exc, "orig", None) or exc
            raise ReferenceDataUnavailableError(str(detail)) from exc

        snapshot = ReferenceSnapshot.build(
            sites=sites,
            parameters=parameters,
            captured_at=self._clock.now(),
        )
        logger.debug(
            "reference_snapshot_loaded",
            extra={"sites": len(snapshot.sites), "parameters": len(snapshot.parameters)},
        )
        return snapshot

    def _load_sites(self, session: Session) -> list[ReferenceSite]:
        rows = session.execute(
            select(MonitoringSite.id, MonitoringSite.name)
            .where(MonitoringSite.is_deleted.is_(False))
        ).all()
        return [ReferenceSite(id=row.id, name=row.name) for row in rows]

    def _load_parameters(self, session: Session) -> list[ReferenceParameter]:
        rows = session.execute(
            select(Parameter.code, Parameter.name, Parameter.unit, Parameter.category)
            .where(Parameter.is_deleted.is_(False))
        ).all()
        return [
            ReferenceParameter(
                code=row.code,
                name=row.name,
                unit=row.unit,
                category=row.category,
            )
            for row in rows
        ]
