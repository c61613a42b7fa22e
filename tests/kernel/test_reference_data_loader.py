"""Tests for ReferenceDataLoader."""

from datetime import datetime

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from envmon_kernel.domain.reference_data import CatalogAccessor
from envmon_kernel.exceptions import ReferenceDataUnavailableError
from envmon_kernel.models.parameter import Parameter
from envmon_kernel.models.site import MonitoringSite
from envmon_kernel.services.reference_data_loader import ReferenceDataLoader


class TestReferenceDataLoader:
    def test_satisfies_catalog_protocol(self, seeded_reference):
        assert isinstance(ReferenceDataLoader(seeded_reference), CatalogAccessor)

    def test_deleted_rows_excluded(self, seeded_reference):
        snapshot = ReferenceDataLoader(seeded_reference).load_snapshot()

        assert sorted(snapshot.sites) == [1, 2]
        assert sorted(snapshot.parameters) == ["COD", "PM10"]
        assert snapshot.site(9) is None
        assert snapshot.parameter("NOX") is None

    def test_parameter_fields_carried(self, seeded_reference):
        snapshot = ReferenceDataLoader(seeded_reference).load_snapshot()

        cod = snapshot.parameter("COD")
        assert cod.name == "Chemical Oxygen Demand"
        assert cod.unit == "mg/L"
        assert cod.category == "water"

    def test_codes_stored_upper_case(self, seeded_reference):
        with seeded_reference() as session, session.begin():
            session.add(Parameter(code=" so2 ", name="Sulphur Dioxide", category="AIR"))

        snapshot = ReferenceDataLoader(seeded_reference).load_snapshot()

        assert snapshot.parameter("SO2").category == "air"

    def test_each_call_reads_fresh_state(self, seeded_reference):
        loader = ReferenceDataLoader(seeded_reference)
        first = loader.load_snapshot()

        with seeded_reference() as session, session.begin():
            session.get(MonitoringSite, 1).is_deleted = True
            session.add(MonitoringSite(id=3, name="Harbour Buoy"))

        second = loader.load_snapshot()
        assert first.site(1) is not None
        assert second.site(1) is None
        assert second.site(3).name == "Harbour Buoy"

    def test_captured_at_from_clock(self, seeded_reference, deterministic_clock):
        snapshot = ReferenceDataLoader(seeded_reference, clock=deterministic_clock).load_snapshot()

        assert snapshot.captured_at.replace(tzinfo=None) == datetime(2024, 6, 1, 8, 30)

    def test_unreachable_store_raises_typed_error(self, tmp_path):
        engine = create_engine(f"sqlite:///{tmp_path / 'missing' / 'reference.db'}")
        loader = ReferenceDataLoader(sessionmaker(bind=engine))

        with pytest.raises(ReferenceDataUnavailableError) as exc_info:
            loader.load_snapshot()
        assert str(exc_info.value).startswith("Sites and parameters could not be loaded.")
        engine.dispose()
