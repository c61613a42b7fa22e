"""
Pytest fixtures for the measurement import test suite.

Provides:
- A fresh in-memory SQLite database per test (StaticPool, foreign keys on)
- Seeded monitoring sites and parameters
- A workbook builder for .xlsx uploads
- Deterministic clock and captured structured logs
"""

import json
import logging
from datetime import datetime, timezone
from io import BytesIO, StringIO
from typing import Any, Callable

import openpyxl
import pytest
from sqlalchemy.orm import Session, sessionmaker

from envmon_kernel.db.engine import (
    create_tables,
    get_session_factory,
    init_engine_from_url,
    reset_engine,
)
from envmon_kernel.domain.clock import DeterministicClock
from envmon_kernel.domain.reference_data import (
    ReferenceParameter,
    ReferenceSite,
    ReferenceSnapshot,
)
from envmon_kernel.logging_config import (
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from envmon_kernel.models.parameter import Parameter
from envmon_kernel.models.site import MonitoringSite

TEST_ACTOR_ID = "analyst-42"


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture
def captured_logs():
    """
    Capture envmon logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, import_service):
            import_service.preview(...)
            logs = captured_logs()
            assert any(r["message"] == "import_preview_completed" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("envmon")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Database fixtures
# =============================================================================


@pytest.fixture
def db_engine():
    """Fresh in-memory database with every table created."""
    reset_engine()
    engine = init_engine_from_url("sqlite:///:memory:")
    create_tables()
    yield engine
    reset_engine()


@pytest.fixture
def session_factory(db_engine) -> sessionmaker[Session]:
    return get_session_factory()


@pytest.fixture
def seeded_reference(session_factory):
    """
    Active sites 1 and 2, deleted site 9.
    Active parameters PM10 (air) and COD (water), deleted parameter NOX.
    """
    with session_factory() as session, session.begin():
        session.add_all([
            MonitoringSite(id=1, name="North Stack"),
            MonitoringSite(id=2, name="River Outfall"),
            MonitoringSite(id=9, name="Decommissioned Kiln", is_deleted=True),
            Parameter(code="PM10", name="Particulate Matter 10", unit="ug/m3", category="air"),
            Parameter(code="COD", name="Chemical Oxygen Demand", unit="mg/L", category="water"),
            Parameter(code="NOX", name="Nitrogen Oxides", unit="mg/Nm3", category="air", is_deleted=True),
        ])
    return session_factory


# =============================================================================
# Domain fixtures
# =============================================================================


@pytest.fixture
def test_actor_id() -> str:
    """Provide a consistent test actor ID."""
    return TEST_ACTOR_ID


@pytest.fixture
def deterministic_clock():
    """Provide a deterministic clock for testing."""
    return DeterministicClock(datetime(2024, 6, 1, 8, 30, 0, tzinfo=timezone.utc))


@pytest.fixture
def snapshot() -> ReferenceSnapshot:
    """In-memory snapshot matching ``seeded_reference``'s active rows."""
    return ReferenceSnapshot.build(
        sites=[ReferenceSite(1, "North Stack"), ReferenceSite(2, "River Outfall")],
        parameters=[
            ReferenceParameter("PM10", "Particulate Matter 10", "ug/m3", "air"),
            ReferenceParameter("COD", "Chemical Oxygen Demand", "mg/L", "water"),
        ],
    )


# =============================================================================
# Workbook builder
# =============================================================================


def build_workbook(rows: list[list[Any]], extra_sheets: int = 0) -> bytes:
    """Serialize rows into the first worksheet of a new .xlsx workbook."""
    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = "Results"
    for row in rows:
        ws.append(row)
    for i in range(extra_sheets):
        other = wb.create_sheet(f"Other{i}")
        other.append(["ignored"])
    buffer = BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


@pytest.fixture
def make_workbook() -> Callable[..., bytes]:
    return build_workbook
